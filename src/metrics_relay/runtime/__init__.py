"""Aggregation pipeline: ingestion, registry, flush schedule and senders."""

from .aggregate import SamplerMetric
from .filters import SamplerFilter
from .flush import FlushCycle
from .grouper import IngestionGrouper
from .listener import BackendListener
from .records import MetricTuple, SampleResult
from .registry import CUMULATED_METRICS, AggregateRegistry
from .scheduler import FlushScheduler
from .senders import (
    InMemoryMetricsSender,
    MetricsSender,
    PickleMetricsSender,
    TextMetricsSender,
    create_sender,
    sanitize_string,
)
from .stats import DescriptiveStatistics

__all__ = [
    "AggregateRegistry",
    "BackendListener",
    "CUMULATED_METRICS",
    "DescriptiveStatistics",
    "FlushCycle",
    "FlushScheduler",
    "InMemoryMetricsSender",
    "IngestionGrouper",
    "MetricTuple",
    "MetricsSender",
    "PickleMetricsSender",
    "SampleResult",
    "SamplerFilter",
    "SamplerMetric",
    "TextMetricsSender",
    "create_sender",
    "sanitize_string",
]
