"""ABOUTME: Pitch detector tests - autocorrelation accuracy on clean tones and rejection of silence.
ABOUTME: Signals are generated with numpy so no microphone is needed."""

import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).parent))

from tuner.pitch_detector import PitchDetector, SampleFrame

SAMPLE_RATE = 44100


def sine_frame(freq, amplitude=0.5, size=2048, sample_rate=SAMPLE_RATE, phase=0.0):
    t = np.arange(size) / sample_rate
    return SampleFrame((amplitude * np.sin(2 * np.pi * freq * t + phase)).astype(np.float32), sample_rate)


def test_a440_estimate_in_range():
    estimate = PitchDetector().estimate(sine_frame(440.0, amplitude=0.5))
    assert estimate is not None
    assert 435.0 <= estimate <= 445.0


@pytest.mark.parametrize("freq", [110.0, 196.0, 261.63, 329.63, 440.0, 659.25, 880.0, 1046.5])
@pytest.mark.parametrize("amplitude", [0.1, 0.5, 0.9])
def test_pure_sine_within_one_percent(freq, amplitude):
    estimate = PitchDetector().estimate(sine_frame(freq, amplitude=amplitude))
    assert estimate is not None
    assert abs(estimate - freq) / freq < 0.01


def test_phase_offset_does_not_matter():
    estimate = PitchDetector().estimate(sine_frame(329.63, amplitude=0.6, phase=1.3))
    assert abs(estimate - 329.63) / 329.63 < 0.01


def test_low_string_needs_a_longer_frame():
    # Low E: 2048 samples hold under four periods; a 4096 frame is reliable
    estimate = PitchDetector().estimate(sine_frame(82.41, amplitude=0.5, size=4096))
    assert abs(estimate - 82.41) / 82.41 < 0.01


def test_silent_frame_returns_none():
    frame = SampleFrame(np.zeros(2048, dtype=np.float32), SAMPLE_RATE)
    assert PitchDetector().estimate(frame) is None


def test_below_rms_gate_returns_none():
    # RMS of a 0.01-amplitude sine is ~0.007
    assert PitchDetector().estimate(sine_frame(440.0, amplitude=0.01)) is None
    rng = np.random.default_rng(1)
    noise_floor = SampleFrame(rng.uniform(-0.005, 0.005, 2048).astype(np.float32), SAMPLE_RATE)
    assert PitchDetector().estimate(noise_floor) is None


def test_tiny_and_degenerate_frames_do_not_crash():
    detector = PitchDetector()
    assert detector.estimate_pitch([], SAMPLE_RATE) is None
    assert detector.estimate_pitch([0.5, -0.5], SAMPLE_RATE) is None
    # Constant signal: correlation only decreases, so there is no period to find
    assert detector.estimate_pitch(np.full(2048, 0.5), SAMPLE_RATE) is None
    assert detector.estimate_pitch(np.ones(16) * 0.9, 0) is None


def test_white_noise_returns_float_or_none():
    rng = np.random.default_rng(7)
    frame = SampleFrame(rng.uniform(-0.8, 0.8, 2048).astype(np.float32), SAMPLE_RATE)
    result = PitchDetector().estimate(frame)
    assert result is None or (np.isfinite(result) and result > 0)


def test_custom_rms_threshold():
    quiet = sine_frame(440.0, amplitude=0.05)
    assert PitchDetector(rms_threshold=0.05).estimate(quiet) is None
    assert PitchDetector().estimate(quiet) is not None
