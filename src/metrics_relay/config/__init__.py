"""Relay configuration defaults and persistence."""

from .defaults import ListenerConfig, RelayConfig, SchedulerConfig

__all__ = ["ListenerConfig", "RelayConfig", "SchedulerConfig"]
