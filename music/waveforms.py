"""Waveform sources: phase-continuous oscillators and white noise."""
from typing import Optional

import numpy as np

WAVEFORMS = ("sine", "triangle", "sawtooth", "square")


def cents_to_ratio(cents: float) -> float:
    return 2.0 ** (cents / 1200.0)


def generate_waveform(waveform: str, phases: np.ndarray) -> np.ndarray:
    """Shape normalised phases (cycles, any range) into one of WAVEFORMS."""
    t_norm = phases % 1.0
    if waveform == "sine":
        samples = np.sin(2 * np.pi * t_norm)
    elif waveform == "triangle":
        samples = 4.0 * np.abs(t_norm - 0.5) - 1.0
    elif waveform == "square":
        samples = np.where(t_norm < 0.5, 1.0, -1.0)
    elif waveform == "sawtooth":
        samples = 2.0 * t_norm - 1.0
    else:
        raise ValueError(f"Unknown waveform: {waveform}")
    return samples.astype(np.float32)


class Vibrato:
    """Sine LFO that bends pitch by ±depth_cents at `rate` Hz."""

    def __init__(self, rate: float = 5.0, depth_cents: float = 5.0):
        self.rate = rate
        self.depth_cents = depth_cents

    def ratio(self, times: np.ndarray) -> np.ndarray:
        return 2.0 ** (self.depth_cents * np.sin(2 * np.pi * self.rate * times) / 1200.0)


class Oscillator:
    """One periodic source at a fixed frequency and detune, scaled by `gain`."""

    def __init__(self, waveform: str, frequency: float, sample_rate: int,
                 detune: float = 0.0, gain: float = 1.0,
                 vibrato: Optional[Vibrato] = None):
        if waveform not in WAVEFORMS:
            raise ValueError(f"Unknown waveform: {waveform}")
        self.waveform = waveform
        self.frequency = frequency
        self.detune = detune
        self.gain = gain
        self.vibrato = vibrato
        self.sample_rate = sample_rate
        self.phase = 0.0

    @property
    def effective_frequency(self) -> float:
        return self.frequency * cents_to_ratio(self.detune)

    def render(self, times: np.ndarray) -> np.ndarray:
        """Render one block; `times` are seconds since the voice started."""
        n = len(times)
        if n == 0:
            return np.zeros(0, dtype=np.float32)
        freq = self.effective_frequency
        if self.vibrato is not None:
            inc = freq * self.vibrato.ratio(times) / self.sample_rate
            phases = self.phase + np.concatenate(([0.0], np.cumsum(inc[:-1])))
            self.phase = (self.phase + float(np.sum(inc))) % 1.0
        else:
            inc = freq / self.sample_rate
            phases = self.phase + np.arange(n) * inc
            self.phase = (self.phase + n * inc) % 1.0
        return generate_waveform(self.waveform, phases) * np.float32(self.gain)


class NoiseSource:
    """Uniform white noise in [-gain, gain]."""

    waveform = "noise"

    def __init__(self, rng: Optional[np.random.Generator] = None, gain: float = 1.0):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.gain = gain

    def render(self, times: np.ndarray) -> np.ndarray:
        return (self.gain * self.rng.uniform(-1.0, 1.0, len(times))).astype(np.float32)
