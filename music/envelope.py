"""Amplitude / parameter automation curves."""
from typing import List, Tuple

import numpy as np

SET = "set"
LINEAR = "linear"
EXPONENTIAL = "exponential"


class Envelope:
    """Automation timeline evaluated over voice-relative sample times.

    Events follow the usual audio-parameter semantics:

    - set_value(v, t): jump to v at t, hold the previous value before it.
    - linear_ramp(v, t): straight line from the previous event to (t, v).
    - exponential_ramp(v, t): geometric curve from the previous event to
      (t, v). Both ends must be positive; otherwise the previous value is
      held until t.

    Before the first event the curve sits at `initial`; after the last one
    it holds the last value. Events are kept sorted by time.
    """

    def __init__(self, initial: float = 0.0):
        self.initial = initial
        self.events: List[Tuple[str, float, float]] = []

    def _add(self, kind: str, value: float, time: float) -> "Envelope":
        self.events.append((kind, float(time), float(value)))
        # Stable sort keeps insertion order for events at the same time
        self.events.sort(key=lambda e: e[1])
        return self

    def set_value(self, value: float, time: float) -> "Envelope":
        return self._add(SET, value, time)

    def linear_ramp(self, value: float, time: float) -> "Envelope":
        return self._add(LINEAR, value, time)

    def exponential_ramp(self, value: float, time: float) -> "Envelope":
        return self._add(EXPONENTIAL, value, time)

    @property
    def end_time(self) -> float:
        return self.events[-1][1] if self.events else 0.0

    @property
    def peak(self) -> float:
        return max([self.initial] + [v for _, _, v in self.events])

    def value_at(self, times: np.ndarray) -> np.ndarray:
        times = np.asarray(times, dtype=np.float64)
        out = np.full(times.shape, self.initial, dtype=np.float64)
        prev_t, prev_v = 0.0, self.initial
        for kind, t1, v1 in self.events:
            seg = (times >= prev_t) & (times < t1)
            span = t1 - prev_t
            if kind == LINEAR and span > 0:
                out[seg] = prev_v + (v1 - prev_v) * (times[seg] - prev_t) / span
            elif kind == EXPONENTIAL and span > 0 and prev_v > 0 and v1 > 0:
                out[seg] = prev_v * (v1 / prev_v) ** ((times[seg] - prev_t) / span)
            else:
                out[seg] = prev_v
            out[times >= t1] = v1
            prev_t, prev_v = t1, v1
        return out.astype(np.float32)

    def apply(self, samples: np.ndarray, times: np.ndarray) -> np.ndarray:
        return samples * self.value_at(times)
