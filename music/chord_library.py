"""Chord spelling and voicing for strummed playback."""
import logging
from typing import Dict, List, Optional

import mingus.core.chords as chords
import mingus.core.notes as notes

from music.instruments import GUITAR_CHORDS, fret_frequencies
from tuner.note_mapping import note_number_to_frequency

_LOGGER = logging.getLogger("profelofono.chords")


class ChordLibrary:
    """Chord notes for every root and quality, plus playable voicings."""

    # All 12 chromatic roots
    KEYS = ['C', 'C#', 'D', 'D#', 'E', 'F', 'F#', 'G', 'G#', 'A', 'A#', 'B']

    # Qualities shown to students, with their mingus shorthand
    CHORD_TYPES = [
        ('Mayor', 'M'),
        ('Menor', 'm'),
        ('7', '7'),
        ('Maj7', 'M7'),
        ('sus4', 'sus4'),
        ('dim', 'dim'),
        ('aug', 'aug'),
        ('9', '9'),
        ('11', '11'),
        ('13', '13'),
    ]

    def __init__(self):
        self.library: Dict[str, Dict[str, List[str]]] = {}
        self._generate_library()

    def _generate_library(self):
        for key in self.KEYS:
            self.library[key] = {}
            for chord_name, shorthand in self.CHORD_TYPES:
                try:
                    chord_notes = chords.from_shorthand(f"{key}{shorthand}")
                except Exception as e:
                    # mingus rejects a few spellings; those qualities are skipped for the root
                    _LOGGER.debug("No spelling for %s%s: %s", key, shorthand, e)
                    continue
                if chord_notes:
                    self.library[key][chord_name] = chord_notes

    def get_keys(self) -> List[str]:
        return self.KEYS

    def get_chord_types(self, key: str) -> List[str]:
        """Chord qualities available for `key` (empty for unknown keys)."""
        if key in self.library:
            return list(self.library[key].keys())
        return []

    def get_chord_notes(self, key: str, chord_type: str) -> List[str]:
        """Note names of a chord, e.g. ("C", "Mayor") → ["C", "E", "G"]."""
        if key in self.library and chord_type in self.library[key]:
            return self.library[key][chord_type]
        return []

    def chord_frequencies(self, key: str, chord_type: str = 'Mayor', octave: int = 3) -> List[float]:
        """Close voicing starting at `key` in `octave`, each note above the last.

        Returns an empty list for unknown chords, which play_chord ignores.
        """
        chord_notes = self.get_chord_notes(key, chord_type)
        if not chord_notes:
            return []
        midi_notes: List[int] = []
        for name in chord_notes:
            pitch_class = notes.note_to_int(name)
            if not midi_notes:
                midi_notes.append(12 * (octave + 1) + pitch_class)
                continue
            prev = midi_notes[-1]
            candidate = prev - prev % 12 + pitch_class
            while candidate <= prev:
                candidate += 12
            midi_notes.append(candidate)
        return [note_number_to_frequency(m) for m in midi_notes]

    def guitar_voicing(self, key: str, chord_type: str = 'Mayor') -> List[float]:
        """Strum frequencies for a chord, preferring a real guitar fret shape."""
        shape = GUITAR_CHORDS.get(key, {}).get(chord_type)
        if shape is not None:
            return fret_frequencies(shape.frets)
        return self.chord_frequencies(key, chord_type, octave=3)

    def describe(self, key: str, chord_type: str) -> Optional[str]:
        shape = GUITAR_CHORDS.get(key, {}).get(chord_type)
        return shape.explanation if shape is not None else None
