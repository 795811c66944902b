from __future__ import annotations

import time
from typing import List

import pytest

from metrics_relay.config.defaults import ListenerConfig, RelayConfig, SchedulerConfig
from metrics_relay.errors import ConfigurationError
from metrics_relay.runtime.listener import BackendListener
from metrics_relay.runtime.records import MetricTuple, SampleResult
from metrics_relay.runtime.senders import InMemoryMetricsSender


class RecordingSender(InMemoryMetricsSender):
    """In-memory sender that also records the order of lifecycle calls."""

    def __init__(self) -> None:
        super().__init__()
        self.events: List[str] = []

    def setup(self, host: str, port: int, prefix: str) -> None:
        super().setup(host, port, prefix)
        self.events.append(f"setup {host}:{port} {prefix}")

    def _transmit(self, batch: List[MetricTuple]) -> None:
        super()._transmit(batch)
        self.events.append(f"send {len(batch)}")

    def destroy(self) -> None:
        super().destroy()
        self.events.append("destroy")


def _config(interval_s: float = 3600.0, **listener) -> RelayConfig:
    options = {"sender": "memory", "host": "graphite", "summary_only": False, "samplers_list": "A;B"}
    options.update(listener)
    return RelayConfig(
        listener=ListenerConfig(**options),
        scheduler=SchedulerConfig(interval_s=interval_s, shutdown_timeout_s=2.0),
    )


def test_teardown_flushes_pending_record_before_destroy() -> None:
    sender = RecordingSender()
    listener = BackendListener(_config(), sender=sender)
    listener.setup_test()

    listener.handle_sample_results([SampleResult("A", True, 42)])
    assert sender.batches == []

    listener.teardown_test()

    values = {item.metric: item.value for item in sender.sent() if item.context == "A"}
    assert values["ok.count"] == "1"
    assert values["ok.pct90"] == "42.0"
    assert sender.events == ["setup graphite:2003 jmeter.", f"send {len(sender.sent())}", "destroy"]
    assert listener.running is False


def test_scheduled_flush_sends_folded_window() -> None:
    sender = InMemoryMetricsSender()
    listener = BackendListener(_config(interval_s=0.05), sender=sender)
    listener.setup_test()
    try:
        registry = listener.registry
        assert registry is not None
        with registry.lock:
            registry.fold_locked([SampleResult("A", True, 1), SampleResult("B", False, 2)])
        deadline = time.monotonic() + 2.0
        while time.monotonic() < deadline and not sender.batches:
            time.sleep(0.01)
        scheduled = list(sender.batches)
    finally:
        listener.teardown_test()

    assert scheduled
    assert {item.context for item in scheduled[0]} == {"A", "B"}


def test_sender_is_selected_from_config() -> None:
    listener = BackendListener(_config())
    listener.setup_test()
    try:
        assert isinstance(listener.sender, InMemoryMetricsSender)
        assert listener.sender.prefix == "jmeter."
    finally:
        listener.teardown_test()


def test_unknown_sender_fails_setup() -> None:
    listener = BackendListener(_config(sender="org.example.Missing"))

    with pytest.raises(ConfigurationError):
        listener.setup_test()
    assert listener.running is False


def test_invalid_regexp_fails_setup() -> None:
    listener = BackendListener(_config(samplers_list="(", use_regexp_for_samplers_list=True))

    with pytest.raises(ConfigurationError):
        listener.setup_test()


def test_malformed_percentiles_are_skipped() -> None:
    listener = BackendListener(_config(percentiles="50;oops;99.9"))
    listener.setup_test()
    try:
        assert list(listener.percentiles) == [50.0, 99.9]
        assert list(listener.names.all) == ["a.pct50", "a.pct99-9"]
    finally:
        listener.teardown_test()


def test_teardown_clears_filter_and_is_idempotent() -> None:
    listener = BackendListener(_config())
    listener.setup_test()
    sampler_filter = listener.sampler_filter

    listener.teardown_test()
    listener.teardown_test()

    assert sampler_filter is not None
    assert sampler_filter.matches("A") is False


def test_samples_require_setup() -> None:
    with pytest.raises(RuntimeError):
        BackendListener(_config()).handle_sample_results([SampleResult("A", True, 1)])


def test_status_reports_pending_and_window_counts() -> None:
    listener = BackendListener(_config())
    assert listener.status()["running"] is False
    listener.setup_test()
    try:
        listener.handle_sample_results([SampleResult("A", True, 1), SampleResult("B", True, 1)])
        status = listener.status()
    finally:
        listener.teardown_test()

    assert status["running"] is True
    assert status["pending"] == 1
    assert status["aggregates"]["A"]["total"] == 0


def test_grouper_held_past_teardown_cannot_send() -> None:
    sender = InMemoryMetricsSender()
    listener = BackendListener(_config(), sender=sender)
    listener.setup_test()
    grouper = listener.grouper
    assert grouper is not None

    listener.teardown_test()
    sent_before = len(sender.batches)

    with pytest.raises(RuntimeError):
        grouper.ingest([SampleResult("A", True, 1), SampleResult("B", True, 2)])

    assert len(sender.batches) == sent_before
    assert grouper.pending_count == 0
