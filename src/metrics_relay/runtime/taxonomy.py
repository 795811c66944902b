"""Metric names emitted per endpoint and the values behind them.

Every endpoint produces counts (``ok.count``, ``ko.count``, ``a.count``,
``h.count``) and response-time statistics for the success (``ok``), failure
(``ko``) and combined (``a``) partitions. Percentile names are derived once
from the configured percentile list, e.g. ``ok.pct90`` or ``a.pct99-9``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Dict, List, Tuple

from .aggregate import SamplerMetric
from .senders import sanitize_string
from .stats import DescriptiveStatistics

logger = logging.getLogger(__name__)

METRIC_SEPARATOR = "."
METRIC_OK_PREFIX = "ok"
METRIC_KO_PREFIX = "ko"
METRIC_ALL_PREFIX = "a"
METRIC_HITS_PREFIX = "h"

METRIC_STANDARD_DEVIATION = "stddev"
METRIC_COUNT = "count"
METRIC_MIN_RESPONSE_TIME = "min"
METRIC_MAX_RESPONSE_TIME = "max"
METRIC_AVG_RESPONSE_TIME = "avg"
METRIC_PERCENTILE = "pct"

PERCENTILES_SEPARATOR = ";"


def metric_name(prefix: str, suffix: str) -> str:
    return prefix + METRIC_SEPARATOR + suffix


METRIC_OK_COUNT = metric_name(METRIC_OK_PREFIX, METRIC_COUNT)
METRIC_KO_COUNT = metric_name(METRIC_KO_PREFIX, METRIC_COUNT)
METRIC_ALL_COUNT = metric_name(METRIC_ALL_PREFIX, METRIC_COUNT)
METRIC_ALL_HITS_COUNT = metric_name(METRIC_HITS_PREFIX, METRIC_COUNT)


def format_percentile(value: float) -> str:
    """Render with at most two decimals and no trailing zeros."""
    quantized = Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_EVEN)
    text = format(quantized, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def parse_percentiles(text: str) -> List[float]:
    """Parse a semicolon-separated percentile list.

    Blank entries are ignored. Malformed or out-of-range entries are logged
    and skipped. Duplicates keep their first position.
    """
    values: List[float] = []
    for raw in text.split(PERCENTILES_SEPARATOR):
        entry = raw.strip()
        if not entry:
            continue
        try:
            value = float(entry)
        except ValueError:
            logger.error("Error parsing percentile:'%s'", raw)
            continue
        if not 0 < value < 100:
            logger.error("Percentile out of range (0, 100):'%s'", raw)
            continue
        if value not in values:
            values.append(value)
    return values


@dataclass
class PercentileNames:
    """Percentile metric names for each partition, keyed by metric name."""

    ok: Dict[str, float] = field(default_factory=dict)
    ko: Dict[str, float] = field(default_factory=dict)
    all: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def build(cls, percentiles: List[float]) -> "PercentileNames":
        names = cls()
        for value in percentiles:
            suffix = METRIC_PERCENTILE + sanitize_string(format_percentile(value))
            ok_name = metric_name(METRIC_OK_PREFIX, suffix)
            if ok_name in names.ok:
                # formatting rounds to two decimals, so distinct values can collide
                logger.warning(
                    "Percentile %s maps to %s already used by %s; ignoring it",
                    value,
                    suffix,
                    names.ok[ok_name],
                )
                continue
            names.ok[metric_name(METRIC_OK_PREFIX, suffix)] = value
            names.ko[metric_name(METRIC_KO_PREFIX, suffix)] = value
            names.all[metric_name(METRIC_ALL_PREFIX, suffix)] = value
        return names


def metric_values(metric: SamplerMetric, names: PercentileNames) -> List[Tuple[str, str]]:
    """Return (metric name, value text) pairs for one aggregate.

    Nothing is produced for an aggregate that saw no samples in the window.
    """
    if metric.total <= 0:
        return []
    values: List[Tuple[str, str]] = [
        (METRIC_OK_COUNT, str(metric.successes)),
        (METRIC_KO_COUNT, str(metric.failures)),
        (METRIC_ALL_COUNT, str(metric.total)),
        (METRIC_ALL_HITS_COUNT, str(metric.hits)),
    ]
    if metric.successes > 0:
        values.extend(_partition_values(METRIC_OK_PREFIX, metric.ok, names.ok))
    if metric.failures > 0:
        values.extend(_partition_values(METRIC_KO_PREFIX, metric.ko, names.ko))
    values.extend(_partition_values(METRIC_ALL_PREFIX, metric.all, names.all))
    return values


def _partition_values(
    prefix: str, stats: DescriptiveStatistics, percentiles: Dict[str, float]
) -> List[Tuple[str, str]]:
    values = [
        (metric_name(prefix, METRIC_STANDARD_DEVIATION), str(stats.standard_deviation())),
        (metric_name(prefix, METRIC_MIN_RESPONSE_TIME), str(stats.min())),
        (metric_name(prefix, METRIC_MAX_RESPONSE_TIME), str(stats.max())),
        (metric_name(prefix, METRIC_AVG_RESPONSE_TIME), str(stats.mean())),
    ]
    for name, value in percentiles.items():
        values.append((name, str(stats.percentile(value))))
    return values
