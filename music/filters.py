"""Biquad filters with an automatable cutoff."""
from typing import Union

import numpy as np

from music.envelope import Envelope

FILTER_TYPES = ("lowpass", "bandpass")


class BiquadFilter:
    """RBJ-cookbook biquad (lowpass or 0 dB-peak bandpass).

    The cutoff may be a constant or an Envelope, in which case coefficients
    are recomputed per sample so sweeps stay smooth. Q=1.0 on the lowpass
    gives a flat, resonance-free response suited to plucked strings.
    """

    def __init__(self, filter_type: str, frequency: Union[float, Envelope],
                 sample_rate: int, q: float = 1.0):
        if filter_type not in FILTER_TYPES:
            raise ValueError(f"Unknown filter type: {filter_type}")
        self.filter_type = filter_type
        if not isinstance(frequency, Envelope):
            frequency = Envelope(initial=float(frequency))
        self.frequency = frequency
        self.sample_rate = sample_rate
        self.q = q
        # Direct form I memory
        self.x1 = self.x2 = 0.0
        self.y1 = self.y2 = 0.0

    def coefficients(self, cutoff: np.ndarray) -> tuple:
        """Normalised (b0, b1, b2, a1, a2) arrays for each cutoff value."""
        fc = np.clip(np.asarray(cutoff, dtype=np.float64), 10.0, self.sample_rate * 0.49)
        w0 = 2.0 * np.pi * fc / self.sample_rate
        cos_w = np.cos(w0)
        alpha = np.sin(w0) / (2.0 * self.q)
        a0 = 1.0 + alpha
        if self.filter_type == "lowpass":
            b0 = (1.0 - cos_w) / 2.0
            b1 = 1.0 - cos_w
            b2 = b0
        else:
            b0 = alpha
            b1 = np.zeros_like(alpha)
            b2 = -alpha
        a1 = -2.0 * cos_w
        a2 = 1.0 - alpha
        return b0 / a0, b1 / a0, b2 / a0, a1 / a0, a2 / a0

    def process(self, samples: np.ndarray, times: np.ndarray) -> np.ndarray:
        # Plain lists index much faster than numpy scalars inside the loop
        b0, b1, b2, a1, a2 = (c.tolist() for c in self.coefficients(self.frequency.value_at(times)))
        xs = np.asarray(samples, dtype=np.float64).tolist()
        out = np.zeros(len(xs), dtype=np.float32)
        x1, x2, y1, y2 = self.x1, self.x2, self.y1, self.y2
        for i, x0 in enumerate(xs):
            y0 = b0[i] * x0 + b1[i] * x1 + b2[i] * x2 - a1[i] * y1 - a2[i] * y2
            x2, x1 = x1, x0
            y2, y1 = y1, y0
            out[i] = y0
        self.x1, self.x2, self.y1, self.y2 = x1, x2, y1, y2
        return out
