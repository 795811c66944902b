"""Sample records produced by the test engine."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SampleResult:
    """Outcome of one sampled request."""

    label: str
    success: bool
    elapsed_ms: float
    hits: int = 1


@dataclass(frozen=True)
class MetricTuple:
    """One value handed to a sender for a given window."""

    timestamp: int
    context: str
    metric: str
    value: str
