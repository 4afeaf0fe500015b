"""Fundamental frequency estimation by trimmed autocorrelation."""
from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass
class SampleFrame:
    """One block of mono time-domain samples in [-1, 1]."""
    samples: np.ndarray
    sample_rate: int

    def __len__(self) -> int:
        return len(self.samples)


class PitchDetector:
    """Autocorrelation pitch detector.

    Steps, for a frame of N samples:

    1. Reject frames whose RMS is below `rms_threshold` (silence / noise floor).
    2. Trim the leading and trailing runs that sit above `trim_threshold`
       so the correlation window starts and ends near a zero crossing.
    3. Unnormalised autocorrelation c[i] = sum_j x[j] * x[j + i].
    4. Skip the zero-lag peak: walk forward while c keeps decreasing.
    5. Take the largest correlation after that dip as the period T0.
    6. Refine T0 by fitting a parabola through c[T0-1], c[T0], c[T0+1].

    Frames shorter than a few periods of the lowest pitch give unreliable
    results; 2048 samples at 44.1 kHz resolve down to roughly 60 Hz.
    """

    def __init__(self, rms_threshold: float = 0.01, trim_threshold: float = 0.2):
        self.rms_threshold = rms_threshold
        self.trim_threshold = trim_threshold

    def estimate(self, frame: SampleFrame) -> Optional[float]:
        return self.estimate_pitch(frame.samples, frame.sample_rate)

    def estimate_pitch(self, samples, sample_rate: float) -> Optional[float]:
        """Return the fundamental in Hz, or None when there is no confident pitch."""
        buf = np.asarray(samples, dtype=np.float64)
        size = len(buf)
        if size < 3 or sample_rate <= 0:
            return None

        rms = np.sqrt(np.mean(buf * buf))
        if not np.isfinite(rms) or rms < self.rms_threshold:
            return None

        buf = self._trim(buf)
        size = len(buf)
        if size < 3:
            return None

        # Full correlation is symmetric; the right half holds lags 0..size-1
        c = np.correlate(buf, buf, mode="full")[size - 1:]

        d = 0
        while d < size - 1 and c[d] > c[d + 1]:
            d += 1
        if d >= size - 1:
            return None

        t0 = d + int(np.argmax(c[d:]))
        if t0 <= 0:
            return None

        period = float(t0)
        if t0 < size - 1:
            x1, x2, x3 = c[t0 - 1], c[t0], c[t0 + 1]
            a = (x1 + x3 - 2.0 * x2) / 2.0
            b = (x3 - x1) / 2.0
            if a:
                period = t0 - b / (2.0 * a)

        if period <= 0 or not np.isfinite(period):
            return None
        return sample_rate / period

    def _trim(self, buf: np.ndarray) -> np.ndarray:
        size = len(buf)
        half = size // 2
        quiet = np.abs(buf) < self.trim_threshold

        r1 = 0
        hits = np.flatnonzero(quiet[:half])
        if hits.size:
            r1 = int(hits[0])

        r2 = size - 1
        # Walk back from the end: buf[size - 1], buf[size - 2], ... over the second half
        tail = quiet[size - 1:size - half:-1] if half > 1 else quiet[:0]
        hits = np.flatnonzero(tail)
        if hits.size:
            r2 = size - 1 - int(hits[0])

        return buf[r1:r2]
