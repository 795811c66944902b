"""Helpers to persist and restore relay configuration."""

from __future__ import annotations

import json
from dataclasses import asdict, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Type

from metrics_relay.errors import ConfigurationError

from .defaults import ListenerConfig, RelayConfig, SchedulerConfig

CONFIG_PATH = Path("var/relay_config.json")

_SECTIONS: Dict[str, Type[Any]] = {
    "listener": ListenerConfig,
    "scheduler": SchedulerConfig,
}


def relay_config_to_dict(config: RelayConfig) -> Dict[str, Any]:
    """Convert a RelayConfig to a JSON-ready dict."""
    return asdict(config)


def relay_config_from_dict(data: Dict[str, Any], base: Optional[RelayConfig] = None) -> RelayConfig:
    """Construct a RelayConfig from a dict, merging each section over base values."""
    base_config = base or RelayConfig()
    _reject_unknown(RelayConfig, data)
    sections: Dict[str, Any] = {}
    for name, section_cls in _SECTIONS.items():
        incoming = data.get(name) or {}
        if not isinstance(incoming, dict):
            raise ConfigurationError(f"Section {name!r} must be an object")
        sections[name] = _merge_section(section_cls, incoming, getattr(base_config, name))
    return RelayConfig(**sections)


def save_relay_config(config: RelayConfig, path: Optional[Path] = None) -> None:
    """Persist configuration to disk as JSON."""
    target = path or CONFIG_PATH
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(relay_config_to_dict(config), indent=2), encoding="utf-8")


def load_relay_config(path: Optional[Path] = None, base: Optional[RelayConfig] = None) -> RelayConfig:
    """Load configuration from disk; return defaults when file is absent."""
    source = path or CONFIG_PATH
    base_config = base or RelayConfig()
    if not source.exists():
        return base_config
    data = json.loads(source.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ConfigurationError("relay configuration file must contain a JSON object")
    return relay_config_from_dict(data, base_config)


def _reject_unknown(cls: Type[Any], data: Dict[str, Any]) -> None:
    unknown = set(data) - {field.name for field in fields(cls)}
    if unknown:
        raise ConfigurationError(f"Unknown fields for {cls.__name__}: {', '.join(sorted(unknown))}")


def _merge_section(cls: Type[Any], data: Dict[str, Any], base: Any) -> Any:
    _reject_unknown(cls, data)
    for name, value in data.items():
        expected = type(getattr(base, name))
        if not _matches_type(value, expected):
            raise ConfigurationError(
                f"{cls.__name__}.{name} must be {expected.__name__}, got {type(value).__name__}"
            )
    return replace(base, **data)


def _matches_type(value: Any, expected: type) -> bool:
    # bool subclasses int; accept it only for bool fields
    if isinstance(value, bool):
        return expected is bool
    if expected is float:
        return isinstance(value, (int, float))
    return isinstance(value, expected)
