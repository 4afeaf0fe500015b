"""ABOUTME: Instrument layout and chord library tests.
ABOUTME: Checks key/bar/fret frequencies, recorder fingerings and mingus chord spelling."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))

from music.chord_library import ChordLibrary
from music.instruments import (
    GUITAR_TUNING,
    METALLOPHONE_BARS,
    PIANO_KEYS,
    RECORDER_HOLES,
    RECORDER_NOTES,
    fret_frequencies,
    guitar_chord,
    piano_key,
    recorder_duration,
    recorder_frequency,
    recorder_label,
    recorder_note,
)


@pytest.fixture(scope="module")
def library():
    return ChordLibrary()


# ── Piano ────────────────────────────────────────────────────────

def test_piano_has_88_keys_from_a0_to_c8():
    assert len(PIANO_KEYS) == 88
    assert PIANO_KEYS[0].name == "A0"
    assert PIANO_KEYS[0].frequency == pytest.approx(27.5)
    assert PIANO_KEYS[-1].name == "C8"
    assert PIANO_KEYS[-1].frequency == pytest.approx(4186.01, rel=1e-5)
    assert sum(k.is_black for k in PIANO_KEYS) == 36


def test_a4_is_440():
    key = PIANO_KEYS[48]
    assert key.name == "A4"
    assert key.frequency == pytest.approx(440.0)
    assert piano_key(" a4 ") == key
    assert piano_key("C#5").frequency == pytest.approx(554.37, rel=1e-4)
    assert piano_key("H2") is None


# ── Metallophone & guitar ────────────────────────────────────────

def test_metallophone_bars_ascend():
    freqs = [b.frequency for b in METALLOPHONE_BARS]
    assert freqs == sorted(freqs)
    assert METALLOPHONE_BARS[0].label == "DO"
    assert METALLOPHONE_BARS[5].frequency == 880.0


def test_c_major_fret_frequencies():
    shape = guitar_chord("C", "Mayor")
    freqs = fret_frequencies(shape.frets)
    # Low E muted: five strings strummed
    assert len(freqs) == 5
    expected = [130.81, 164.81, 196.00, 261.63, 329.63]
    for got, want in zip(freqs, expected):
        assert got == pytest.approx(want, rel=1e-3)


def test_open_strings_match_tuning():
    assert fret_frequencies([0] * 6) == GUITAR_TUNING
    assert guitar_chord("F#", "Mayor") is None


# ── Recorder ─────────────────────────────────────────────────────

def test_recorder_known_fingerings():
    all_closed = [1] * RECORDER_HOLES
    assert recorder_note(all_closed).frequency == 523.25
    assert recorder_frequency([1, 1, 1, 1, 0, 0, 0, 0]) == 783.99
    assert recorder_label([1, 1, 1, 0, 0, 0, 0, 0]) == "LA (A5)"
    assert all(len(n.holes) == RECORDER_HOLES for n in RECORDER_NOTES)


def test_recorder_unknown_fingerings():
    odd = [0, 1, 0, 1, 0, 1, 0, 1]
    assert recorder_note(odd) is None
    assert recorder_frequency(odd) == pytest.approx(523.25 + 4 * 60)
    assert recorder_label(odd) == "Posición desconocida"
    assert recorder_label([0] * RECORDER_HOLES) == "Silencio (Aire)"


# ── Chord library ────────────────────────────────────────────────

def test_chord_spelling(library):
    assert library.get_chord_notes("C", "Mayor") == ["C", "E", "G"]
    assert library.get_chord_notes("A", "Menor") == ["A", "C", "E"]
    assert library.get_chord_notes("G", "7") == ["G", "B", "D", "F"]
    assert "Mayor" in library.get_chord_types("F#")
    assert library.get_chord_types("H") == []
    assert library.get_chord_notes("C", "Lydian") == []


def test_every_root_has_triads(library):
    for key in library.get_keys():
        types = library.get_chord_types(key)
        assert "Mayor" in types
        assert "Menor" in types


def test_close_voicing_ascends_from_root(library):
    freqs = library.chord_frequencies("C", "Mayor", octave=3)
    assert freqs[0] == pytest.approx(130.81, rel=1e-4)
    assert freqs[1] == pytest.approx(164.81, rel=1e-4)
    assert freqs[2] == pytest.approx(196.00, rel=1e-4)
    wide = library.chord_frequencies("B", "7", octave=2)
    assert wide == sorted(wide)
    assert len(set(wide)) == len(wide)


def test_guitar_voicing_prefers_fret_shape(library):
    shape_freqs = library.guitar_voicing("E", "Menor")
    assert len(shape_freqs) == 6
    assert shape_freqs[0] == pytest.approx(82.41)
    # No fret chart for F#: falls back to a close voicing
    fallback = library.guitar_voicing("F#", "Mayor")
    assert fallback == library.chord_frequencies("F#", "Mayor", octave=3)
    assert library.describe("E", "Menor").startswith("Mi Menor")
    assert library.describe("F#", "Mayor") is None


def test_unknown_chord_gives_no_frequencies(library):
    assert library.chord_frequencies("X", "Mayor") == []
    assert library.guitar_voicing("X", "Mayor") == []


def test_recorder_note_lengths():
    assert recorder_duration([1] * RECORDER_HOLES) == 1.5
    assert recorder_duration([0, 1, 0, 1, 0, 1, 0, 1]) == 0.5
