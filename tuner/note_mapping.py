"""Frequency to note name / cents conversion for the tuner display."""
import math
from dataclasses import dataclass

NOTE_NAMES = ['C', 'C#', 'D', 'D#', 'E', 'F', 'F#', 'G', 'G#', 'A', 'A#', 'B']

A4_FREQUENCY = 440.0
A4_MIDI_NOTE = 69

# |cents| below this counts as in tune
IN_TUNE_CENTS = 5


@dataclass(frozen=True)
class TunerReading:
    """What the tuner shows for one analysis tick.

    note_name and cents only mean something when frequency_hz > 0; the
    neutral reading (no signal) is "-" at 0 Hz and 0 cents.
    """
    note_name: str = "-"
    frequency_hz: float = 0.0
    cents: int = 0
    octave: int = 0

    @property
    def has_signal(self) -> bool:
        return self.frequency_hz > 0

    @property
    def in_tune(self) -> bool:
        return self.has_signal and abs(self.cents) < IN_TUNE_CENTS

    @property
    def display_frequency(self) -> int:
        """Frequency rounded to whole Hz for display."""
        return _round_half_up(self.frequency_hz)


NEUTRAL_READING = TunerReading()


def _round_half_up(value: float) -> int:
    # round() in Python is banker's rounding; a tuner needle must not flip at .5
    return int(math.floor(value + 0.5))


def frequency_to_note_number(frequency: float) -> float:
    """Fractional MIDI note number, A4 = 440 Hz = 69."""
    return 12.0 * math.log2(frequency / A4_FREQUENCY) + A4_MIDI_NOTE


def note_number_to_frequency(note_number: float) -> float:
    return A4_FREQUENCY * (2.0 ** ((note_number - A4_MIDI_NOTE) / 12.0))


def frequency_to_reading(frequency: float) -> TunerReading:
    """Map a detected frequency to the nearest note and its cents deviation.

    Non-positive or non-finite frequencies give the neutral reading.
    """
    if frequency is None or not math.isfinite(frequency) or frequency <= 0:
        return NEUTRAL_READING
    note_number = frequency_to_note_number(frequency)
    nearest = _round_half_up(note_number)
    cents = int(math.floor((note_number - nearest) * 100))
    return TunerReading(
        note_name=NOTE_NAMES[nearest % 12],
        frequency_hz=float(frequency),
        cents=cents,
        octave=nearest // 12 - 1,
    )
