from __future__ import annotations

import inspect
import json
import threading
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from metrics_relay.config.defaults import ListenerConfig, RelayConfig, SchedulerConfig
from metrics_relay.runtime.listener import BackendListener
from metrics_relay.runtime.senders import InMemoryMetricsSender
from metrics_relay.service import relay_api


@pytest.fixture
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setattr(relay_api, "CONFIG_PATH", tmp_path / "relay_config.json")
    monkeypatch.setattr(relay_api, "_CONFIG_CACHE", RelayConfig())
    monkeypatch.setattr(relay_api, "API_TOKEN", None)
    relay_api.attach_listener(None)
    return TestClient(relay_api.app)


@pytest.fixture
def listener(client: TestClient):
    config = RelayConfig(
        listener=ListenerConfig(sender="memory", summary_only=False, samplers_list="login;search"),
        scheduler=SchedulerConfig(interval_s=3600.0),
    )
    instance = BackendListener(config, sender=InMemoryMetricsSender())
    instance.setup_test()
    relay_api.attach_listener(instance)
    yield instance
    relay_api.attach_listener(None)
    instance.teardown_test()


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_token_is_enforced_when_configured(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(relay_api, "API_TOKEN", "secret")

    assert client.get("/config").status_code == 401
    assert client.get("/config", headers={"X-Api-Token": "secret"}).status_code == 200


def test_patch_section_persists(client: TestClient, tmp_path: Path) -> None:
    response = client.patch("/config/listener", json={"host": "graphite.internal", "port": 2004})

    assert response.status_code == 200
    assert response.json()["host"] == "graphite.internal"
    saved = json.loads((tmp_path / "relay_config.json").read_text())
    assert saved["listener"]["port"] == 2004
    assert client.get("/config").json()["listener"]["host"] == "graphite.internal"


def test_patch_rejects_unknown_section_and_field(client: TestClient) -> None:
    assert client.patch("/config/voice", json={}).status_code == 404
    assert client.patch("/config/scheduler", json={"period": 2}).status_code == 400


def test_put_replaces_config(client: TestClient) -> None:
    response = client.put("/config", json={"scheduler": {"interval_s": 2.5}})

    assert response.status_code == 200
    assert response.json()["scheduler"]["interval_s"] == 2.5
    assert response.json()["listener"]["port"] == 2003


def test_listener_status_without_listener(client: TestClient) -> None:
    assert client.get("/listener").json() == {"running": False, "pending": 0, "aggregates": {}}
    assert client.post("/listener/samples", json={"samples": []}).status_code == 409


def test_posted_samples_reach_listener(client: TestClient, listener: BackendListener) -> None:
    payload = {
        "samples": [
            {"label": "login", "success": True, "elapsed_ms": 120},
            {"label": "search", "success": False, "elapsed_ms": 80},
        ]
    }

    response = client.post("/listener/samples", json=payload)

    assert response.status_code == 200
    assert response.json() == {"accepted": 2, "forced_flushes": 1}
    status = client.get("/listener").json()
    assert status["running"] is True
    assert status["pending"] == 1
    sent = listener.sender.sent()
    assert {item.context for item in sent} == {"login"}


def test_invalid_sample_is_rejected(client: TestClient, listener: BackendListener) -> None:
    payload = {"samples": [{"label": "login", "success": True, "elapsed_ms": -1}]}

    assert client.post("/listener/samples", json=payload).status_code == 422


def test_listener_status_runs_off_the_event_loop(client: TestClient, listener: BackendListener) -> None:
    # status takes the registry lock, so it must not block the loop serving other requests
    assert not inspect.iscoroutinefunction(relay_api.listener_status)
    registry = listener.registry
    assert registry is not None
    results = {}

    registry.lock.acquire()
    try:
        worker = threading.Thread(target=lambda: results.update(status=client.get("/listener")))
        worker.start()
        assert client.get("/health").status_code == 200
    finally:
        registry.lock.release()
    worker.join(timeout=5.0)

    assert results["status"].json()["running"] is True


def test_samples_after_teardown_are_refused(client: TestClient, listener: BackendListener) -> None:
    listener.teardown_test()
    payload = {"samples": [{"label": "login", "success": True, "elapsed_ms": 1}]}

    assert client.post("/listener/samples", json=payload).status_code == 409
