from __future__ import annotations

import json
from pathlib import Path

import pytest

from metrics_relay.config.defaults import RelayConfig
from metrics_relay.config.runtime_store import (
    load_relay_config,
    relay_config_from_dict,
    relay_config_to_dict,
    save_relay_config,
)
from metrics_relay.errors import ConfigurationError


def test_round_trip(tmp_path: Path) -> None:
    config = RelayConfig()
    config.listener.host = "graphite.local"
    config.listener.summary_only = False
    config.scheduler.shutdown_timeout_s = 5.0
    target = tmp_path / "relay_config.json"

    save_relay_config(config, target)
    loaded = load_relay_config(target)

    assert loaded.listener.host == "graphite.local"
    assert loaded.listener.summary_only is False
    assert loaded.scheduler.shutdown_timeout_s == 5.0


def test_missing_file_returns_base(tmp_path: Path) -> None:
    base = RelayConfig()
    base.listener.port = 2004
    path = tmp_path / "missing.json"

    loaded = load_relay_config(path, base)

    assert loaded.listener.port == 2004


def test_dict_conversion_handles_partials() -> None:
    base = RelayConfig()
    payload = {
        "listener": {"samplers_list": "login;search", "percentiles": "50;99.9"},
        "scheduler": {"interval_s": 2.0},
    }

    merged = relay_config_from_dict(payload, base)
    assert merged.listener.samplers_list == "login;search"
    assert merged.listener.percentiles == "50;99.9"
    assert merged.scheduler.interval_s == 2.0
    assert merged.listener.root_metrics_prefix == base.listener.root_metrics_prefix


def test_unknown_fields_are_rejected() -> None:
    with pytest.raises(ConfigurationError):
        relay_config_from_dict({"listener": {"graphite_host": "x"}})


def test_non_object_file_is_rejected(tmp_path: Path) -> None:
    target = tmp_path / "config.json"
    target.write_text("[1, 2]")

    with pytest.raises(ValueError):
        load_relay_config(target)


def test_save_writes_json(tmp_path: Path) -> None:
    config = RelayConfig()
    target = tmp_path / "config.json"

    save_relay_config(config, target)

    parsed = json.loads(target.read_text())
    assert isinstance(parsed, dict)
    assert parsed["listener"]["port"] == config.listener.port
    assert relay_config_to_dict(config) == parsed


@pytest.mark.parametrize(
    "payload",
    [
        {"listener": {"port": "2004"}},
        {"listener": {"port": True}},
        {"listener": {"summary_only": "no"}},
        {"scheduler": {"interval_s": "fast"}},
        {"listener": ["port"]},
    ],
)
def test_mistyped_values_are_rejected(payload) -> None:
    with pytest.raises(ConfigurationError):
        relay_config_from_dict(payload)


def test_integer_is_accepted_for_float_field() -> None:
    merged = relay_config_from_dict({"scheduler": {"interval_s": 5}})

    assert merged.scheduler.interval_s == 5
    assert merged.listener == RelayConfig().listener


def test_loaded_config_does_not_share_base_sections(tmp_path: Path) -> None:
    base = RelayConfig()
    target = tmp_path / "config.json"
    target.write_text(json.dumps({"scheduler": {"interval_s": 3.0}}))

    loaded = load_relay_config(target, base)

    assert loaded.scheduler.interval_s == 3.0
    assert base.scheduler.interval_s == 1.0
    assert loaded.listener is not base.listener
