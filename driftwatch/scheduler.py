"""Interval-based scheduling of a callback until a stop event is set."""

from __future__ import annotations

import logging
import threading
import time
from datetime import timedelta
from typing import Callable, Optional, Union

Duration = Union[float, timedelta]
TickFunc = Callable[[threading.Event], None]

_default_logger = logging.getLogger(__name__)


def _seconds(value: Duration) -> float:
    return value.total_seconds() if isinstance(value, timedelta) else float(value)


class Scheduler:
    """Calls a tick function at a fixed interval; the function receives the stop event."""

    def __init__(
        self,
        interval: Duration,
        fn: TickFunc,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        seconds = _seconds(interval)
        if seconds <= 0:
            raise ValueError("scheduler: interval must be positive")
        self._interval = seconds
        self._fn = fn
        self._log = logger or _default_logger

    def run(self, stop: threading.Event) -> None:
        """Tick once at once, then at every interval, until stop is set."""
        self._log.info("scheduler started interval=%ss", self._interval)
        self._tick(stop)
        next_at = time.monotonic() + self._interval
        while not stop.wait(max(0.0, next_at - time.monotonic())):
            self._tick(stop)
            now = time.monotonic()
            next_at += self._interval
            if next_at <= now:
                missed = int((now - next_at) // self._interval) + 1
                next_at += missed * self._interval
        self._log.info("scheduler stopped")

    def _tick(self, stop: threading.Event) -> None:
        start = time.monotonic()
        try:
            self._fn(stop)
        except Exception as exc:
            self._log.error(
                "tick error err=%s duration=%.3fs", exc, time.monotonic() - start
            )
            return
        self._log.debug("tick completed duration=%.3fs", time.monotonic() - start)