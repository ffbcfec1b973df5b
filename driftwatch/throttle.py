"""A per-service check-rate limiter.

Each service may run at most a fixed number of checks within a window that
starts at its first permitted check.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Union

Duration = Union[float, timedelta]


def _seconds(value: Duration) -> float:
    return value.total_seconds() if isinstance(value, timedelta) else float(value)


@dataclass
class _Bucket:
    count: int
    window_end: float


class Throttle:
    """Enforces a maximum number of checks per service within a window."""

    def __init__(
        self,
        max_checks: int,
        window: Duration,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max = max_checks
        self._window = _seconds(window)
        self._clock = clock
        self._buckets: dict[str, _Bucket] = {}
        self._lock = threading.Lock()

    def allow(self, service: str) -> bool:
        """True if service may run a check now; counts the check if so."""
        with self._lock:
            now = self._clock()
            bucket = self._buckets.get(service)
            if bucket is None or now > bucket.window_end:
                self._buckets[service] = _Bucket(1, now + self._window)
                return True
            if bucket.count >= self._max:
                return False
            bucket.count += 1
            return True

    def remaining(self, service: str) -> int:
        """Checks service may still run in the current window."""
        with self._lock:
            bucket = self._buckets.get(service)
            if bucket is None or self._clock() > bucket.window_end:
                return self._max
            return max(self._max - bucket.count, 0)

    def reset(self, service: str) -> None:
        """Restore the full budget of service."""
        with self._lock:
            self._buckets.pop(service, None)