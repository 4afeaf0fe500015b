"""ABOUTME: Humanize module for strum timing.
ABOUTME: Staggers chord notes like a hand dragging across strings, with a little random drift."""

import random
from typing import List, Optional

STRUM_INTERVAL = 0.05  # seconds between strings
STRUM_JITTER = 0.01    # max extra random delay per string


class Humanizer:
    """Compute per-string start offsets for a strummed chord."""

    def __init__(self, interval: float = STRUM_INTERVAL, jitter: float = STRUM_JITTER,
                 seed: Optional[int] = None):
        """
        Args:
            interval: Nominal gap between consecutive strings in seconds.
            jitter: Upper bound of the random positive delay added per string.
                Must stay below `interval` so string order is preserved.
            seed: Optional random seed (useful for reproducible tests)
        """
        self.interval = interval
        self.jitter = max(0.0, min(jitter, interval * 0.5))
        self._random = random.Random(seed)

    def strum_offset(self, index: int) -> float:
        """Start offset for string `index` (0 = first string hit).

        Examples:
            >>> Humanizer(jitter=0.0).strum_offset(3)
            0.15000000000000002
        """
        if self.jitter <= 0:
            return index * self.interval
        return index * self.interval + self._random.uniform(0.0, self.jitter)

    def strum_offsets(self, count: int) -> List[float]:
        return [self.strum_offset(i) for i in range(count)]
