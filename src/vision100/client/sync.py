"""Debounced, fire-and-forget persistence sync."""

from __future__ import annotations

import threading
from typing import Callable

from ..logging_config import get_logger

logger = get_logger(__name__)

SYNC_DELAY_SECONDS = 1.0


class Debouncer:
    """Run ``action`` once after ``delay`` seconds without a new trigger.

    Failures are logged and swallowed: a failed background sync never rolls
    back the caller's optimistic state.
    """

    def __init__(self, action: Callable[[], None], delay: float = SYNC_DELAY_SECONDS):
        self.action = action
        self.delay = delay
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()
        self.runs = 0
        self.failures = 0

    def trigger(self) -> None:
        """(Re)start the quiet-period timer."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def flush(self) -> None:
        """Run a pending action now instead of waiting for the timer."""
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            self._run()

    def _fire(self) -> None:
        with self._lock:
            if self._timer is not threading.current_thread():
                # superseded by a later trigger or already flushed
                return
            self._timer = None
        self._run()

    def _run(self) -> None:
        self.runs += 1
        try:
            self.action()
        except Exception:  # noqa: BLE001 - background sync must not raise
            self.failures += 1
            logger.exception("Background sync failed")
