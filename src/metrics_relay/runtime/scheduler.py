"""Fixed-rate background timer driving scheduled flushes."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class FlushScheduler:
    """Runs ``task`` every ``interval_s`` seconds on one daemon thread.

    The first run happens one interval after ``start``. Runs are scheduled
    at a fixed rate, so a slow run is followed by the overdue ones without
    waiting. A run that raises stops the schedule; the exception is kept in
    ``failure``.
    """

    def __init__(
        self,
        task: Callable[[], object],
        interval_s: float = 1.0,
        name: str = "metrics-relay-flush",
    ) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        self.interval_s = interval_s
        self.name = name
        self.failure: Optional[BaseException] = None
        self._task = task
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("scheduler already started")
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def cancel(self) -> bool:
        """Prevent future runs; an in-flight run completes. Returns False if already cancelled."""
        cancelled = not self._stop_event.is_set()
        self._stop_event.set()
        return cancelled

    def shutdown(self, timeout_s: float = 30.0) -> bool:
        """Cancel and wait for the thread; returns False on timeout."""
        cancelled = self.cancel()
        logger.debug("Canceled state:%s", cancelled)
        if self._thread is None:
            return True
        self._thread.join(timeout_s)
        if self._thread.is_alive():
            logger.warning("Flush scheduler did not stop within %.1f seconds", timeout_s)
            return False
        return True

    def _run(self) -> None:
        next_run = time.monotonic() + self.interval_s
        while not self._stop_event.wait(max(0.0, next_run - time.monotonic())):
            try:
                self._task()
            except Exception as exc:
                self.failure = exc
                logger.exception("Scheduled flush failed; no further flushes will be scheduled")
                return
            next_run += self.interval_s
