"""A circuit breaker that stops calls to a failing downstream.

The circuit opens once the number of recorded failures within a rolling
window reaches a threshold, and stays open for a cooldown period.
"""

from __future__ import annotations

import threading
import time
from datetime import timedelta
from enum import Enum
from typing import Callable, Optional, Union

Duration = Union[float, timedelta]


def _seconds(value: Duration) -> float:
    return value.total_seconds() if isinstance(value, timedelta) else float(value)


class CircuitOpenError(Exception):
    """Raised by :meth:`Breaker.allow` while the circuit is open."""

    def __init__(self, message: str = "circuit breaker is open") -> None:
        super().__init__(message)


class BreakerState(Enum):
    """The state of a circuit breaker."""

    CLOSED = 0
    OPEN = 1
    HALF_OPEN = 2


class Breaker:
    """A thread-safe circuit breaker."""

    def __init__(
        self,
        threshold: int,
        window: Duration,
        cooldown: Duration,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._threshold = threshold
        self._window = _seconds(window)
        self._cooldown = _seconds(cooldown)
        self._clock = clock
        self._failures: list[float] = []
        self._open_until: Optional[float] = None
        self._lock = threading.Lock()

    def allow(self) -> None:
        """Raise CircuitOpenError if the circuit is open; otherwise let the call proceed."""
        with self._lock:
            now = self._clock()
            if self._open_until is not None and now < self._open_until:
                raise CircuitOpenError()
            cutoff = now - self._window
            self._failures = [t for t in self._failures if t > cutoff]

    def record_success(self) -> None:
        """Forget all failures and close the circuit."""
        with self._lock:
            self._failures = []
            self._open_until = None

    def record_failure(self) -> None:
        """Record a failure; open the circuit once the threshold is reached."""
        with self._lock:
            now = self._clock()
            self._failures.append(now)
            if len(self._failures) >= self._threshold:
                self._open_until = now + self._cooldown

    def state(self) -> BreakerState:
        """The current state of the breaker."""
        with self._lock:
            if self._open_until is None:
                return BreakerState.CLOSED
            if self._clock() < self._open_until:
                return BreakerState.OPEN
            return BreakerState.HALF_OPEN