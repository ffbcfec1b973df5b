"""Per-key rate limiting of drift notifications.

A notification for a key is allowed at most once per cooldown window.
"""

from __future__ import annotations

import threading
import time
from datetime import timedelta
from typing import Callable, Union

Duration = Union[float, timedelta]

DEFAULT_COOLDOWN = 60.0


def _seconds(value: Duration) -> float:
    return value.total_seconds() if isinstance(value, timedelta) else float(value)


class Limiter:
    """Enforces a cooldown between successive notifications for the same key."""

    def __init__(
        self,
        cooldown: Duration = DEFAULT_COOLDOWN,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        seconds = _seconds(cooldown)
        self._cooldown = seconds if seconds > 0 else DEFAULT_COOLDOWN
        self._clock = clock
        self._last: dict[str, float] = {}
        self._lock = threading.Lock()

    def allow(self, key: str) -> bool:
        """True if a notification for key is permitted now; records the time if so."""
        with self._lock:
            now = self._clock()
            last = self._last.get(key)
            if last is not None and now - last < self._cooldown:
                return False
            self._last[key] = now
            return True

    def reset(self, key: str) -> None:
        """Forget key so its next notification is allowed immediately."""
        with self._lock:
            self._last.pop(key, None)

    def reset_all(self) -> None:
        """Forget every key."""
        with self._lock:
            self._last.clear()