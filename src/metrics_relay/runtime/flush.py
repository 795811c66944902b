"""Snapshot, emit and reset of every aggregate in the registry."""

from __future__ import annotations

import threading
import time
from typing import Callable, List

from .records import MetricTuple
from .registry import CUMULATED_METRICS, AggregateRegistry
from .senders import MetricsSender, sanitize_string
from .taxonomy import PercentileNames, metric_values


class FlushCycle:
    """Turns the current window into metric tuples and hands them to a sender.

    Collection and reset happen under the registry lock; transmission
    happens outside it, serialized by a sender-only lock.
    """

    def __init__(
        self,
        registry: AggregateRegistry,
        sender: MetricsSender,
        names: PercentileNames,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.registry = registry
        self.sender = sender
        self.names = names
        self._clock = clock
        self._send_lock = threading.Lock()

    def run(self) -> int:
        """Flush the current window; returns the number of tuples sent."""
        with self.registry.lock:
            batch = self.collect_locked()
        self.send(batch)
        return len(batch)

    def collect_locked(self) -> List[MetricTuple]:
        """Build tuples for every non-empty aggregate and reset them all."""
        timestamp = int(self._clock())
        batch: List[MetricTuple] = []
        for name, metric in self.registry.items_locked():
            # the cumulated aggregate only feeds internal totals
            if name != CUMULATED_METRICS:
                context = sanitize_string(name)
                for metric_name, value in metric_values(metric, self.names):
                    batch.append(MetricTuple(timestamp, context, metric_name, value))
            metric.reset()
        return batch

    def send(self, batch: List[MetricTuple]) -> None:
        with self._send_lock:
            for item in batch:
                self.sender.add_metric(item.timestamp, item.context, item.metric, item.value)
            self.sender.write_and_send_metrics()
