"""Retrying of drift check operations with exponential back-off.

Each retry waits base_delay * 2**(attempt - 1), capped at max_delay, up to
max_attempts attempts in all. A cancellation event stops the retries at once.
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import timedelta
from typing import Callable, Optional, TypeVar, Union

Duration = Union[float, timedelta]
T = TypeVar("T")

_default_logger = logging.getLogger(__name__)


def _seconds(value: Duration) -> float:
    return value.total_seconds() if isinstance(value, timedelta) else float(value)


class RetryCancelled(Exception):
    """Raised when a retry loop is cancelled before it completes."""


class PermanentError(Exception):
    """Wraps an error to signal that it should not be retried."""

    def __init__(self, err: BaseException) -> None:
        super().__init__(str(err))
        self.err = err


def is_permanent(err: Optional[BaseException]) -> bool:
    """True if err, or any error it was raised from, is a PermanentError."""
    seen: set[int] = set()
    current = err
    while current is not None and id(current) not in seen:
        if isinstance(current, PermanentError):
            return True
        seen.add(id(current))
        current = current.__cause__
    return False


class RetryPolicy:
    """Runs a callable, retrying it with exponential back-off when it raises."""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: Duration = 0.2,
        max_delay: Duration = 5.0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.max_attempts = max_attempts
        self.base_delay = _seconds(base_delay)
        self.max_delay = _seconds(max_delay)
        self._log = logger or _default_logger

    def run(self, fn: Callable[[], T], cancel: Optional[threading.Event] = None) -> Optional[T]:
        """Call fn until it returns, raising its last error once attempts run out.

        Raises RetryCancelled if cancel is set before an attempt or during a wait.
        """
        last: Optional[Exception] = None
        for attempt in range(1, self.max_attempts + 1):
            if cancel is not None and cancel.is_set():
                raise RetryCancelled("retrypolicy: cancelled")
            try:
                return fn()
            except Exception as exc:
                last = exc
            if attempt == self.max_attempts:
                break
            delay = self.backoff(attempt)
            self._log.warning(
                "retrypolicy: attempt failed, will retry attempt=%d delay=%.3fs err=%s",
                attempt,
                delay,
                last,
            )
            if cancel is not None:
                if cancel.wait(delay):
                    raise RetryCancelled("retrypolicy: cancelled")
            else:
                time.sleep(delay)
        if last is not None:
            raise last
        return None

    def backoff(self, attempt: int) -> float:
        """The delay in seconds before retrying after the given 1-based attempt."""
        delay = self.base_delay
        for _ in range(1, attempt):
            delay *= 2
            if delay > self.max_delay:
                return self.max_delay
        return delay