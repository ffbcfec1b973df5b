"""Suppression of repeated notifications for the same key within a quiet period.

Useful for avoiding alert storms when a service oscillates between drifted
and matched states in rapid succession.
"""

from __future__ import annotations

import threading
import time
from datetime import timedelta
from typing import Callable, Union

Duration = Union[float, timedelta]


def _seconds(value: Duration) -> float:
    return value.total_seconds() if isinstance(value, timedelta) else float(value)


class Debouncer:
    """Lets an event for a key through at most once per quiet period."""

    def __init__(self, quiet: Duration, clock: Callable[[], float] = time.monotonic) -> None:
        self._quiet = _seconds(quiet)
        self._clock = clock
        self._last_seen: dict[str, float] = {}
        self._lock = threading.Lock()

    def allow(self, key: str) -> bool:
        """True for the first event of a key and once the quiet period has elapsed."""
        with self._lock:
            now = self._clock()
            last = self._last_seen.get(key)
            if last is None or now - last >= self._quiet:
                self._last_seen[key] = now
                return True
            return False

    def reset(self, key: str) -> None:
        """Forget key so its next event is allowed."""
        with self._lock:
            self._last_seen.pop(key, None)

    def purge(self) -> None:
        """Drop keys last seen longer ago than the quiet period."""
        with self._lock:
            cutoff = self._clock() - self._quiet
            self._last_seen = {k: t for k, t in self._last_seen.items() if t >= cutoff}

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_seen)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._last_seen