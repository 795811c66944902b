"""Default configuration definitions for the metrics relay."""

from dataclasses import dataclass, field

DEFAULT_PLAINTEXT_PROTOCOL_PORT = 2003
DEFAULT_METRICS_PREFIX = "jmeter."
DEFAULT_PERCENTILES = "90;95;99"


@dataclass
class ListenerConfig:
    """Options of a single backend listener attached to a test run."""

    sender: str = "text"
    host: str = ""
    port: int = DEFAULT_PLAINTEXT_PROTOCOL_PORT
    root_metrics_prefix: str = DEFAULT_METRICS_PREFIX
    summary_only: bool = True
    samplers_list: str = ""
    use_regexp_for_samplers_list: bool = False
    percentiles: str = DEFAULT_PERCENTILES
    metrics_window: int = 100


@dataclass
class SchedulerConfig:
    """Flush cadence and shutdown limits."""

    interval_s: float = 1.0
    shutdown_timeout_s: float = 30.0


@dataclass
class RelayConfig:
    """Base configuration for the relay and its diagnostics service."""

    listener: ListenerConfig = field(default_factory=ListenerConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
