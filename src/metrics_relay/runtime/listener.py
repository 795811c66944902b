"""Backend listener coordinating ingestion, scheduled flushes and the sender."""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional, Sequence

from metrics_relay.config.defaults import RelayConfig

from .filters import SamplerFilter
from .flush import FlushCycle
from .grouper import IngestionGrouper
from .records import SampleResult
from .registry import AggregateRegistry
from .scheduler import FlushScheduler
from .senders import MetricsSender, create_sender
from .taxonomy import PercentileNames, parse_percentiles

logger = logging.getLogger(__name__)


class BackendListener:
    """Owns the aggregation pipeline for one test run.

    ``setup_test`` builds the registry, the sender and the flush schedule;
    ``handle_sample_results`` is called by producer threads; ``teardown_test``
    stops the schedule and flushes everything still held.
    """

    def __init__(
        self,
        config: Optional[RelayConfig] = None,
        sender: Optional[MetricsSender] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or RelayConfig()
        self._sender_override = sender
        self._clock = clock
        self.sender: Optional[MetricsSender] = None
        self.sampler_filter: Optional[SamplerFilter] = None
        self.percentiles: Sequence[float] = ()
        self.names = PercentileNames()
        self.registry: Optional[AggregateRegistry] = None
        self.flush: Optional[FlushCycle] = None
        self.grouper: Optional[IngestionGrouper] = None
        self.scheduler: Optional[FlushScheduler] = None

    @property
    def running(self) -> bool:
        return self.grouper is not None

    def setup_test(self) -> None:
        """Prepare aggregation for a new test run and start the flush schedule."""
        if self.running:
            raise RuntimeError("listener already set up")
        listener_cfg = self.config.listener
        self.percentiles = parse_percentiles(listener_cfg.percentiles)
        self.names = PercentileNames.build(list(self.percentiles))

        sampler_filter = None
        if not listener_cfg.summary_only:
            sampler_filter = SamplerFilter.from_samplers_list(
                listener_cfg.samplers_list, listener_cfg.use_regexp_for_samplers_list
            )

        sender = self._sender_override
        if sender is None:
            sender = create_sender(listener_cfg.sender)
        sender.setup(listener_cfg.host, listener_cfg.port, listener_cfg.root_metrics_prefix)

        registry = AggregateRegistry(
            sampler_filter=sampler_filter,
            summary_only=listener_cfg.summary_only,
            window_size=listener_cfg.metrics_window,
        )
        flush = FlushCycle(registry, sender, self.names, clock=self._clock)
        self.sender = sender
        self.sampler_filter = sampler_filter
        self.registry = registry
        self.flush = flush
        self.grouper = IngestionGrouper(registry, flush)
        self.scheduler = FlushScheduler(flush.run, interval_s=self.config.scheduler.interval_s)
        self.scheduler.start()
        logger.info(
            "Backend listener started: sender=%s host=%s port=%s summary_only=%s percentiles=%s",
            type(sender).__name__,
            listener_cfg.host,
            listener_cfg.port,
            listener_cfg.summary_only,
            list(self.percentiles),
        )

    def handle_sample_results(self, results: Sequence[SampleResult]) -> int:
        """Ingest a batch of samples; returns the number of forced flushes."""
        if self.grouper is None:
            raise RuntimeError("listener is not set up")
        return self.grouper.ingest(results)

    def send_metrics(self) -> int:
        """Run one flush cycle now; returns the number of tuples sent."""
        if self.flush is None:
            raise RuntimeError("listener is not set up")
        return self.flush.run()

    def teardown_test(self) -> None:
        """Stop the schedule, flush what is left and release the sender."""
        grouper, scheduler, sender = self.grouper, self.scheduler, self.sender
        if grouper is None or scheduler is None or sender is None:
            logger.info("Backend listener teardown requested but it is not running")
            return
        scheduler.shutdown(self.config.scheduler.shutdown_timeout_s)
        grouper.drain()
        self.send_metrics()
        if self.sampler_filter is not None:
            self.sampler_filter.clear()
        sender.destroy()
        self.grouper = None
        logger.info("Backend listener stopped")

    def status(self) -> Dict[str, object]:
        """Describe the current window for diagnostics."""
        if self.grouper is None or self.registry is None:
            return {"running": False, "pending": 0, "aggregates": {}}
        return {
            "running": True,
            "pending": self.grouper.pending_count,
            "aggregates": self.registry.snapshot(),
        }
