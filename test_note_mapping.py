"""ABOUTME: Note mapping tests - frequency to note name, octave and cents deviation.
ABOUTME: Covers exact pitches, sharp/flat readings and the neutral no-signal reading."""

import math
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from tuner.note_mapping import (
    NEUTRAL_READING,
    NOTE_NAMES,
    frequency_to_note_number,
    frequency_to_reading,
    note_number_to_frequency,
)


def test_a4_is_note_69():
    assert frequency_to_note_number(440.0) == 69.0
    assert math.isclose(note_number_to_frequency(60), 261.6255653, rel_tol=1e-7)


def test_exact_pitches_map_to_their_names():
    for midi_note in range(36, 84):
        reading = frequency_to_reading(note_number_to_frequency(midi_note) * 1.0001)
        assert reading.note_name == NOTE_NAMES[midi_note % 12]
        assert reading.octave == midi_note // 12 - 1
        assert reading.cents == 0


def test_a440_reading():
    reading = frequency_to_reading(440.0)
    assert reading.note_name == "A"
    assert reading.octave == 4
    assert reading.cents == 0
    assert reading.in_tune
    assert reading.display_frequency == 440


def test_sharp_and_flat_cents():
    sharp = frequency_to_reading(445.0)
    assert sharp.note_name == "A"
    assert sharp.cents == 19

    # Floor makes flat readings round away from zero: -19.8 -> -20
    flat = frequency_to_reading(435.0)
    assert flat.note_name == "A"
    assert flat.cents == -20
    assert not flat.in_tune


def test_just_past_quarter_tone_switches_note():
    freq = 440.0 * 2 ** (0.51 / 12)
    reading = frequency_to_reading(freq)
    assert reading.note_name == "A#"
    assert -50 <= reading.cents <= -48


def test_cents_stay_in_range():
    for i in range(200):
        freq = 80.0 * 2 ** (i / 50.0)
        reading = frequency_to_reading(freq)
        assert -50 <= reading.cents <= 50
        assert reading.note_name in NOTE_NAMES


def test_invalid_frequencies_give_neutral_reading():
    for value in (None, 0.0, -440.0, float("nan"), float("inf")):
        reading = frequency_to_reading(value)
        assert reading == NEUTRAL_READING
    assert NEUTRAL_READING.note_name == "-"
    assert NEUTRAL_READING.frequency_hz == 0
    assert NEUTRAL_READING.cents == 0
    assert not NEUTRAL_READING.has_signal
    assert not NEUTRAL_READING.in_tune
