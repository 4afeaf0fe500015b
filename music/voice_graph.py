"""Per-note synthesis graphs for the four instrument timbres."""
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

import numpy as np

from music.envelope import Envelope
from music.filters import BiquadFilter
from music.waveforms import NoiseSource, Oscillator, Vibrato


class Timbre(Enum):
    METALLOPHONE = "metallophone"
    PIANO = "piano"
    GUITAR = "guitar"
    FLUTE = "flute"

    @classmethod
    def parse(cls, value: Union["Timbre", str, None]) -> "Timbre":
        """Resolve a timbre name; unknown names fall back to the metallophone."""
        if isinstance(value, Timbre):
            return value
        name = (value or "").strip().lower()
        if name == "profelofono":
            return cls.METALLOPHONE
        for timbre in cls:
            if timbre.value == name:
                return timbre
        return cls.METALLOPHONE


# Extra ring time added after the requested duration
TIMBRE_TAILS: Dict[Timbre, float] = {
    Timbre.METALLOPHONE: 0.0,
    Timbre.PIANO: 0.0,
    Timbre.GUITAR: 1.0,
    Timbre.FLUTE: 0.0,
}


class Branch:
    """source → optional filter → envelope."""

    def __init__(self, source, envelope: Envelope,
                 spectral_filter: Optional[BiquadFilter] = None):
        self.source = source
        self.envelope = envelope
        self.filter = spectral_filter

    def render(self, times: np.ndarray) -> np.ndarray:
        samples = self.source.render(times)
        if self.filter is not None:
            samples = self.filter.process(samples, times)
        return self.envelope.apply(samples, times)


class VoiceGraph:
    """One playable note: a set of branches summed over a fixed lifetime.

    start_time and stop_time are on the engine clock (seconds). The voice
    is silent before start_time and finished once the clock reaches
    stop_time; the engine then drops it from the bus.
    """

    def __init__(self, timbre: Timbre, frequency: float, duration: float,
                 start_time: float, branches: List[Branch]):
        self.timbre = timbre
        self.frequency = frequency
        self.duration = duration
        self.start_time = start_time
        self.stop_time = start_time + duration
        self.branches = branches

    @property
    def oscillators(self) -> List[Oscillator]:
        return [b.source for b in self.branches if isinstance(b.source, Oscillator)]

    @property
    def noise_sources(self) -> List[NoiseSource]:
        return [b.source for b in self.branches if isinstance(b.source, NoiseSource)]

    @property
    def filters(self) -> List[BiquadFilter]:
        return [b.filter for b in self.branches if b.filter is not None]

    def is_finished(self, now: float) -> bool:
        return now >= self.stop_time

    def render(self, times: np.ndarray) -> np.ndarray:
        """Mix this voice into a block; `times` are engine-clock seconds."""
        out = np.zeros(len(times), dtype=np.float32)
        active = np.flatnonzero((times >= self.start_time) & (times < self.stop_time))
        if active.size == 0:
            return out
        lo, hi = int(active[0]), int(active[-1]) + 1
        local = times[lo:hi] - self.start_time
        for branch in self.branches:
            out[lo:hi] += branch.render(local)
        return out


# ── Topologies ───────────────────────────────────────────────────

def _metallophone(f: float, d: float, sr: int, rng) -> List[Branch]:
    # Hard attack, long ringing decay
    env = Envelope().set_value(0.0, 0.0).linear_ramp(0.6, 0.005).exponential_ramp(0.001, d)
    return [Branch(Oscillator("sine", f, sr), env)]


def _piano(f: float, d: float, sr: int, rng) -> List[Branch]:
    # Fundamental plus two detuned sines for body resonance. The oscillator
    # carries the level; each branch peaks at its gain and decays to 0.01.
    branches = []
    for waveform, detune, gain in (("triangle", 0.0, 0.4), ("sine", 5.0, 0.3), ("sine", -5.0, 0.3)):
        env = Envelope().set_value(0.0, 0.0).linear_ramp(1.0, 0.02).exponential_ramp(0.01 / gain, d)
        branches.append(Branch(Oscillator(waveform, f, sr, detune=detune, gain=gain), env))
    return branches


def _guitar(f: float, d: float, sr: int, rng) -> List[Branch]:
    # Bright pluck that loses its highs within 300 ms
    cutoff = Envelope(initial=f * 6).set_value(f * 6, 0.0).exponential_ramp(f, 0.3)
    lowpass = BiquadFilter("lowpass", cutoff, sr, q=1.0)
    env = (Envelope().set_value(0.0, 0.0).linear_ramp(0.5, 0.015)
           .exponential_ramp(0.1, 0.5).linear_ramp(0.0, d))
    return [Branch(Oscillator("sawtooth", f, sr), env, spectral_filter=lowpass)]


def _flute(f: float, d: float, sr: int, rng) -> List[Branch]:
    env = (Envelope().set_value(0.0, 0.0).linear_ramp(0.5, 0.1)
           .set_value(0.5, max(0.0, d - 0.2)).linear_ramp(0.0, d))
    tone = Oscillator("sine", f, sr, vibrato=Vibrato(rate=5.0, depth_cents=5.0))
    # Breath noise follows the pitch roughly
    breath = BiquadFilter("bandpass", f * 2, sr, q=1.0)
    noise = NoiseSource(rng, gain=0.05)
    return [Branch(tone, env), Branch(noise, env, spectral_filter=breath)]


TOPOLOGIES: Dict[Timbre, Callable[..., List[Branch]]] = {
    Timbre.METALLOPHONE: _metallophone,
    Timbre.PIANO: _piano,
    Timbre.GUITAR: _guitar,
    Timbre.FLUTE: _flute,
}


def build_voice(timbre: Union[Timbre, str], frequency: float, duration: float,
                sample_rate: int, start_time: float = 0.0,
                rng: Optional[np.random.Generator] = None) -> VoiceGraph:
    """Build the graph for one note; the voice lasts duration plus the timbre tail."""
    timbre = Timbre.parse(timbre)
    length = duration + TIMBRE_TAILS[timbre]
    branches = TOPOLOGIES[timbre](frequency, length, sample_rate, rng)
    return VoiceGraph(timbre, frequency, length, start_time, branches)
