"""Per-endpoint windowed statistics."""

from __future__ import annotations

from typing import Optional

from .records import SampleResult
from .stats import DescriptiveStatistics


class SamplerMetric:
    """Counters and ok/ko/all latency statistics for one endpoint.

    Not thread-safe on its own; callers hold the registry lock.
    """

    def __init__(self, window_size: Optional[int] = None) -> None:
        self.ok = DescriptiveStatistics(window_size)
        self.ko = DescriptiveStatistics(window_size)
        self.all = DescriptiveStatistics(window_size)
        self.successes = 0
        self.failures = 0
        self.hits = 0

    @property
    def total(self) -> int:
        return self.successes + self.failures

    def add(self, result: SampleResult) -> None:
        """Fold one sample into the current window."""
        self.all.add(result.elapsed_ms)
        if result.success:
            self.successes += 1
            self.ok.add(result.elapsed_ms)
        else:
            self.failures += 1
            self.ko.add(result.elapsed_ms)
        self.hits += result.hits

    def reset(self) -> None:
        """Start a new window; identity and window size are kept."""
        self.ok.reset()
        self.ko.reset()
        self.all.reset()
        self.successes = 0
        self.failures = 0
        self.hits = 0
