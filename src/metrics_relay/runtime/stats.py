"""Descriptive statistics over a sliding window of latency samples."""

from __future__ import annotations

import math
from collections import deque
from typing import Deque, Optional


class DescriptiveStatistics:
    """Keeps the most recent samples and answers summary queries.

    ``window_size`` bounds how many samples are retained; ``None`` or ``0``
    keeps every sample added since the last reset. Queries on an empty
    accumulator return ``nan``.
    """

    def __init__(self, window_size: Optional[int] = None) -> None:
        maxlen = window_size if window_size else None
        self._values: Deque[float] = deque(maxlen=maxlen)

    def add(self, value: float) -> None:
        self._values.append(float(value))

    def reset(self) -> None:
        self._values.clear()

    def count(self) -> int:
        return len(self._values)

    def min(self) -> float:
        return min(self._values) if self._values else math.nan

    def max(self) -> float:
        return max(self._values) if self._values else math.nan

    def mean(self) -> float:
        if not self._values:
            return math.nan
        return math.fsum(self._values) / len(self._values)

    def standard_deviation(self) -> float:
        """Sample standard deviation (n - 1 denominator); 0.0 for one sample."""
        n = len(self._values)
        if n == 0:
            return math.nan
        if n == 1:
            return 0.0
        mean = self.mean()
        squares = math.fsum((value - mean) ** 2 for value in self._values)
        return math.sqrt(squares / (n - 1))

    def percentile(self, p: float) -> float:
        """Estimate the p-th percentile, 0 < p <= 100.

        Position ``p * (n + 1) / 100`` in the sorted samples, clamped to the
        extremes and linearly interpolated between neighbours.
        """
        if not 0 < p <= 100:
            raise ValueError(f"percentile must be in (0, 100], got {p}")
        n = len(self._values)
        if n == 0:
            return math.nan
        ordered = sorted(self._values)
        if n == 1:
            return ordered[0]
        pos = p * (n + 1) / 100.0
        if pos < 1:
            return ordered[0]
        if pos >= n:
            return ordered[-1]
        lower_index = int(math.floor(pos))
        fraction = pos - lower_index
        lower = ordered[lower_index - 1]
        upper = ordered[lower_index]
        return lower + fraction * (upper - lower)
