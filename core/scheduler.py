"""
Fixed-period timer with a cancellation token.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class CancelToken:
    """Handle returned by Scheduler.every(); cancel() stops further ticks."""
    def __init__(self):
        self._event = threading.Event()
        self.thread: Optional[threading.Thread] = None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        return self._event.wait(timeout)


class Scheduler:
    """
    Runs a callback every `interval` seconds on one daemon thread.

    Fixed-rate: the next deadline is computed from the previous one, not from
    when the callback returned. Periods missed while a callback overran are
    dropped rather than queued, so callbacks never overlap.
    """
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock

    def every(self, interval: float, callback: Callable[[], None], name: str = "scheduler") -> CancelToken:
        token = CancelToken()
        interval = max(0.001, float(interval))

        def _run():
            next_t = self._clock() + interval
            while not token.wait(max(0.0, next_t - self._clock())):
                try:
                    callback()
                except Exception:
                    logger.exception(f"[scheduler] {name} callback failed")
                next_t += interval
                now = self._clock()
                if next_t < now:
                    skipped = int((now - next_t) // interval) + 1
                    logger.debug(f"[scheduler] {name} dropped {skipped} late tick(s)")
                    next_t += skipped * interval

        token.thread = threading.Thread(target=_run, daemon=True, name=name)
        token.thread.start()
        return token
