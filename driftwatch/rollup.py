"""Rolling-window aggregation of drift reports.

Intended for dashboards and alerting pipelines that need trend data, such
as how many drift events occurred in the last five minutes.
"""

from __future__ import annotations

import threading
import time
from collections import Counter, deque
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional, Union

from driftwatch.drift import Report, Status

Duration = Union[float, timedelta]


def _seconds(value: Duration) -> float:
    return value.total_seconds() if isinstance(value, timedelta) else float(value)


@dataclass(frozen=True)
class _Entry:
    at: float
    drifted: int
    missing: int
    matched: int


class RollupWindow:
    """Drift counts of the reports recorded within the last max_age."""

    def __init__(self, max_age: Duration, clock: Callable[[], float] = time.monotonic) -> None:
        self._max_age = _seconds(max_age)
        self._clock = clock
        self._entries: deque[_Entry] = deque()
        self._lock = threading.Lock()

    def record(self, report: Optional[Report]) -> None:
        """Add the counts of report's events to the window."""
        if report is None:
            return
        counts = Counter(event.status for event in report.events)
        with self._lock:
            self._entries.append(
                _Entry(
                    self._clock(),
                    counts[Status.DRIFTED],
                    counts[Status.MISSING],
                    counts[Status.MATCH],
                )
            )
            self._evict()

    def stats(self) -> tuple[int, int, int]:
        """Totals of (drifted, missing, matched) across the window."""
        with self._lock:
            self._evict()
            return (
                sum(e.drifted for e in self._entries),
                sum(e.missing for e in self._entries),
                sum(e.matched for e in self._entries),
            )

    def __len__(self) -> int:
        with self._lock:
            self._evict()
            return len(self._entries)

    def _evict(self) -> None:
        cutoff = self._clock() - self._max_age
        while self._entries and self._entries[0].at < cutoff:
            self._entries.popleft()