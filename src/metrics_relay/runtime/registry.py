"""Shared aggregate registry for one test run."""

from __future__ import annotations

import threading
from typing import Dict, Iterable, Iterator, Optional, Tuple

from .aggregate import SamplerMetric
from .filters import SamplerFilter
from .records import SampleResult

CUMULATED_METRICS = "__cumulated__"


class AggregateRegistry:
    """Maps endpoint labels to aggregates, plus one cumulative aggregate.

    ``lock`` guards every aggregate, the grouper's pending buffer and the
    snapshot/reset step of a flush. Methods suffixed ``_locked`` expect the
    caller to hold it.
    """

    def __init__(
        self,
        sampler_filter: Optional[SamplerFilter] = None,
        summary_only: bool = True,
        window_size: Optional[int] = None,
    ) -> None:
        self.lock = threading.Lock()
        self.sampler_filter = sampler_filter
        self.summary_only = summary_only
        self.window_size = window_size
        self._metrics: Dict[str, SamplerMetric] = {}
        self.cumulated = self._get_locked(CUMULATED_METRICS)

    def admits(self, label: str) -> bool:
        """Return True when ``label`` gets its own aggregate."""
        if self.summary_only or self.sampler_filter is None:
            return False
        return self.sampler_filter.matches(label)

    def fold_locked(self, results: Iterable[SampleResult]) -> int:
        """Add samples to their aggregates; returns how many were folded."""
        folded = 0
        for result in results:
            if self.admits(result.label):
                self._get_locked(result.label).add(result)
            self.cumulated.add(result)
            folded += 1
        return folded

    def items_locked(self) -> Iterator[Tuple[str, SamplerMetric]]:
        return iter(list(self._metrics.items()))

    def snapshot(self) -> Dict[str, Dict[str, int]]:
        """Return current-window counters per aggregate without resetting."""
        with self.lock:
            return {
                name: {
                    "successes": metric.successes,
                    "failures": metric.failures,
                    "total": metric.total,
                    "hits": metric.hits,
                }
                for name, metric in self._metrics.items()
            }

    def _get_locked(self, name: str) -> SamplerMetric:
        metric = self._metrics.get(name)
        if metric is None:
            metric = SamplerMetric(self.window_size)
            self._metrics[name] = metric
        return metric

    def __contains__(self, name: object) -> bool:
        return name in self._metrics

    def __len__(self) -> int:
        return len(self._metrics)
