"""Senders that ship metric tuples to a Graphite collector."""

from __future__ import annotations

import logging
import pickle
import re
import socket
import struct
from typing import Callable, Dict, List, Optional, Tuple

from metrics_relay.errors import ConfigurationError

from .records import MetricTuple

logger = logging.getLogger(__name__)

_UNSAFE_CHARACTERS = re.compile(r"[^A-Za-z0-9_\-]")


def sanitize_string(value: str) -> str:
    """Replace characters Graphite treats as separators or whitespace."""
    return _UNSAFE_CHARACTERS.sub("-", value)


class MetricsSender:
    """Buffers metric tuples and writes them out in one batch.

    Subclasses implement ``_transmit``; a failed transmission is logged and
    the batch is dropped, the buffer is always empty afterwards.
    """

    def __init__(self) -> None:
        self.host = ""
        self.port = 0
        self.prefix = ""
        self._metrics: List[MetricTuple] = []

    def setup(self, host: str, port: int, prefix: str) -> None:
        self.host = host
        self.port = port
        self.prefix = prefix

    def add_metric(self, timestamp: int, context: str, metric: str, value: str) -> None:
        self._metrics.append(MetricTuple(timestamp, context, metric, value))

    def pending(self) -> int:
        return len(self._metrics)

    def write_and_send_metrics(self) -> None:
        """Send every buffered tuple, then clear the buffer."""
        if not self._metrics:
            return
        batch = self._metrics
        self._metrics = []
        try:
            self._transmit(batch)
        except OSError as exc:
            logger.error(
                "Error sending %d metrics to %s:%s: %s", len(batch), self.host, self.port, exc
            )
            self._on_transmit_error()

    def destroy(self) -> None:
        """Release transport resources."""
        self._metrics = []

    def metric_path(self, item: MetricTuple) -> str:
        return f"{self.prefix}{item.context}.{item.metric}"

    def _transmit(self, batch: List[MetricTuple]) -> None:
        raise NotImplementedError

    def _on_transmit_error(self) -> None:
        """Hook for transports that must drop state after a failure."""


class InMemoryMetricsSender(MetricsSender):
    """Keeps every transmitted batch; used for diagnostics and tests."""

    def __init__(self) -> None:
        super().__init__()
        self.batches: List[List[MetricTuple]] = []
        self.destroyed = False

    def _transmit(self, batch: List[MetricTuple]) -> None:
        self.batches.append(list(batch))

    def sent(self) -> List[MetricTuple]:
        return [item for batch in self.batches for item in batch]

    def destroy(self) -> None:
        super().destroy()
        self.destroyed = True


class _SocketMetricsSender(MetricsSender):
    """Keeps one TCP connection to the collector, reopened on demand."""

    def __init__(self, connect_timeout_s: float = 1.0, socket_timeout_s: float = 3.0) -> None:
        super().__init__()
        self.connect_timeout_s = connect_timeout_s
        self.socket_timeout_s = socket_timeout_s
        self._socket: Optional[socket.socket] = None

    def _transmit(self, batch: List[MetricTuple]) -> None:
        payload = self._encode(batch)
        connection = self._connection()
        connection.sendall(payload)
        logger.debug("Sent %d metrics to %s:%s", len(batch), self.host, self.port)

    def _connection(self) -> socket.socket:
        if self._socket is None:
            connection = socket.create_connection((self.host, self.port), timeout=self.connect_timeout_s)
            connection.settimeout(self.socket_timeout_s)
            self._socket = connection
        return self._socket

    def _on_transmit_error(self) -> None:
        self._close()

    def _close(self) -> None:
        if self._socket is None:
            return
        try:
            self._socket.close()
        except OSError as exc:
            logger.warning("Error closing connection to %s:%s: %s", self.host, self.port, exc)
        self._socket = None

    def destroy(self) -> None:
        super().destroy()
        self._close()

    def _encode(self, batch: List[MetricTuple]) -> bytes:
        raise NotImplementedError


class TextMetricsSender(_SocketMetricsSender):
    """Graphite plaintext protocol: ``<path> <value> <timestamp>`` per line."""

    def _encode(self, batch: List[MetricTuple]) -> bytes:
        lines = [f"{self.metric_path(item)} {item.value} {item.timestamp}\n" for item in batch]
        return "".join(lines).encode("utf-8")


class PickleMetricsSender(_SocketMetricsSender):
    """Graphite pickle protocol: length-prefixed pickled list of datapoints."""

    def _encode(self, batch: List[MetricTuple]) -> bytes:
        datapoints: List[Tuple[str, Tuple[int, float]]] = [
            (self.metric_path(item), (item.timestamp, float(item.value))) for item in batch
        ]
        body = pickle.dumps(datapoints, protocol=2)
        return struct.pack("!L", len(body)) + body


SENDERS: Dict[str, Callable[[], MetricsSender]] = {
    "text": TextMetricsSender,
    "pickle": PickleMetricsSender,
    "memory": InMemoryMetricsSender,
}


def create_sender(name: str) -> MetricsSender:
    """Instantiate the sender registered under ``name``."""
    factory = SENDERS.get(name.strip().lower())
    if factory is None:
        known = ", ".join(sorted(SENDERS))
        raise ConfigurationError(f"Unknown metrics sender {name!r}; expected one of: {known}")
    return factory()
