"""Batch grouping of incoming samples by label."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .flush import FlushCycle
from .records import MetricTuple, SampleResult
from .registry import AggregateRegistry

logger = logging.getLogger(__name__)


class IngestionGrouper:
    """Buffers consecutive samples of one label and folds them as a group.

    While traffic keeps hitting the same label the samples stay in a pending
    buffer, across calls. As soon as a batch brings another label, the
    pending group is folded into the registry and a flush is forced, then
    the remaining samples are grouped the same way. Whatever single-label
    group is left at the end waits for the next call or for ``drain``.
    """

    def __init__(self, registry: AggregateRegistry, flush: FlushCycle) -> None:
        self.registry = registry
        self.flush = flush
        self._pending: List[SampleResult] = []
        self.closed = False

    @property
    def pending_count(self) -> int:
        with self.registry.lock:
            return len(self._pending)

    def ingest(self, results: Sequence[SampleResult]) -> int:
        """Group and fold a batch; returns how many flushes it forced."""
        batch = list(results)
        if not batch:
            return 0
        received = len(batch)
        forced: List[List[MetricTuple]] = []
        with self.registry.lock:
            if self.closed:
                raise RuntimeError("ingestion is closed; the listener has been torn down")
            target: Optional[str] = self._pending[0].label if self._pending else None
            while True:
                run_count = 1
                previous = batch[0].label
                overflow: List[SampleResult] = []
                for result in batch:
                    if result.label != previous:
                        previous = result.label
                        run_count += 1
                    if target is None:
                        target = result.label
                    if result.label == target:
                        self._pending.append(result)
                    else:
                        overflow.append(result)
                if overflow:
                    self.registry.fold_locked(self._pending)
                    self._pending = []
                    forced.append(self.flush.collect_locked())
                    target = None
                batch = overflow
                # a batch spanning several runs always leaves overflow behind
                if run_count <= 1 and not batch:
                    break
        for tuples in forced:
            self.flush.send(tuples)
        if forced:
            logger.debug("Batch of %d samples forced %d flushes", received, len(forced))
        return len(forced)

    def drain(self) -> int:
        """Fold whatever is still pending and refuse further batches.

        Returns the number of samples folded.
        """
        with self.registry.lock:
            self.closed = True
            folded = self.registry.fold_locked(self._pending)
            self._pending = []
        return folded
