"""Thread-safe in-process counters for daemon activity.

After each detection cycle call :meth:`Collector.record_check`; read the
totals with :meth:`Collector.snapshot` or write a readable summary with
:meth:`Collector.write_to`.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional, TextIO


def _now() -> datetime:
    return datetime.now().astimezone()


def _rfc3339(moment: datetime) -> str:
    if moment.utcoffset() == timedelta(0):
        return moment.strftime("%Y-%m-%dT%H:%M:%SZ")
    return moment.isoformat(timespec="seconds")


@dataclass(frozen=True)
class MetricsSnapshot:
    """A point-in-time copy of the collected metrics."""

    checks_total: int = 0
    drifted_total: int = 0
    missing_total: int = 0
    matched_total: int = 0
    last_check_time: Optional[datetime] = None
    last_drift_time: Optional[datetime] = None


class Collector:
    """Accumulates the outcomes of drift-check cycles."""

    def __init__(self) -> None:
        self._state = MetricsSnapshot()
        self._lock = threading.Lock()

    def record_check(self, drifted: int, missing: int, matched: int) -> None:
        """Record the outcome of one drift-check cycle."""
        now = _now()
        with self._lock:
            state = self._state
            self._state = replace(
                state,
                checks_total=state.checks_total + 1,
                drifted_total=state.drifted_total + drifted,
                missing_total=state.missing_total + missing,
                matched_total=state.matched_total + matched,
                last_check_time=now,
                last_drift_time=now if drifted > 0 or missing > 0 else state.last_drift_time,
            )

    def snapshot(self) -> MetricsSnapshot:
        """The current metrics."""
        with self._lock:
            return self._state

    def write_to(self, stream: TextIO) -> None:
        """Write a human-readable summary of the metrics to a text stream."""
        snap = self.snapshot()
        lines = [
            f"checks_total:   {snap.checks_total}\n",
            f"drifted_total:  {snap.drifted_total}\n",
            f"missing_total:  {snap.missing_total}\n",
            f"matched_total:  {snap.matched_total}\n",
        ]
        if snap.last_check_time is not None:
            lines.append(f"last_check:     {_rfc3339(snap.last_check_time)}\n")
        if snap.last_drift_time is not None:
            lines.append(f"last_drift:     {_rfc3339(snap.last_drift_time)}\n")
        stream.write("".join(lines))