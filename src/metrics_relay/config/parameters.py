"""Test-plan parameter names and their mapping onto ListenerConfig.

Parameter names are stored in saved test plans, so they must not change.
Values arrive as strings and are converted with the same leniency the test
plan editor applies: missing values fall back to defaults, booleans compare
case-insensitively against ``"true"``.
"""

from __future__ import annotations

from typing import Dict, Mapping

from metrics_relay.errors import ConfigurationError

from .defaults import (
    DEFAULT_METRICS_PREFIX,
    DEFAULT_PERCENTILES,
    DEFAULT_PLAINTEXT_PROTOCOL_PORT,
    ListenerConfig,
)

GRAPHITE_METRICS_SENDER = "graphiteMetricsSender"
GRAPHITE_HOST = "graphiteHost"
GRAPHITE_PORT = "graphitePort"
ROOT_METRICS_PREFIX = "rootMetricsPrefix"
PERCENTILES = "percentiles"
SAMPLERS_LIST = "samplersList"
USE_REGEXP_FOR_SAMPLERS_LIST = "useRegexpForSamplersList"
SUMMARY_ONLY = "summaryOnly"


def default_parameters() -> Dict[str, str]:
    """Return every recognized parameter with its default value."""
    return {
        GRAPHITE_METRICS_SENDER: "text",
        GRAPHITE_HOST: "",
        GRAPHITE_PORT: str(DEFAULT_PLAINTEXT_PROTOCOL_PORT),
        ROOT_METRICS_PREFIX: DEFAULT_METRICS_PREFIX,
        SUMMARY_ONLY: "true",
        SAMPLERS_LIST: "",
        USE_REGEXP_FOR_SAMPLERS_LIST: "false",
        PERCENTILES: DEFAULT_PERCENTILES,
    }


def listener_config_from_parameters(params: Mapping[str, str]) -> ListenerConfig:
    """Build a ListenerConfig from a string parameter map."""
    defaults = ListenerConfig()
    return ListenerConfig(
        sender=_text(params, GRAPHITE_METRICS_SENDER, defaults.sender),
        host=params.get(GRAPHITE_HOST) or "",
        port=_integer(params, GRAPHITE_PORT, defaults.port),
        root_metrics_prefix=params.get(ROOT_METRICS_PREFIX, defaults.root_metrics_prefix),
        summary_only=_boolean(params, SUMMARY_ONLY, defaults.summary_only),
        samplers_list=params.get(SAMPLERS_LIST) or "",
        use_regexp_for_samplers_list=_boolean(
            params, USE_REGEXP_FOR_SAMPLERS_LIST, defaults.use_regexp_for_samplers_list
        ),
        percentiles=_text(params, PERCENTILES, defaults.percentiles),
    )


def _text(params: Mapping[str, str], name: str, default: str) -> str:
    value = params.get(name)
    if value is None or not value.strip():
        return default
    return value


def _boolean(params: Mapping[str, str], name: str, default: bool) -> bool:
    value = params.get(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() == "true"


def _integer(params: Mapping[str, str], name: str, default: int) -> int:
    value = params.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError as exc:
        raise ConfigurationError(f"Parameter {name} must be an integer, got {value!r}") from exc
