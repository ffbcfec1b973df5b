"""Consecutive-drift threshold alerting.

An Alerter counts how many back-to-back check cycles each service has been
drifted or missing. Once a count reaches the threshold, the alert callback
is invoked on every further drifted cycle. A clean (match) result resets the
count to zero.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from driftwatch.drift import Report, Status

AlertFunc = Callable[[str, int], None]

_default_logger = logging.getLogger(__name__)


class Alerter:
    """Tracks consecutive drift counts per service and fires alerts."""

    def __init__(
        self,
        threshold: int,
        alert_fn: Optional[AlertFunc] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._threshold = threshold
        self._alert_fn = alert_fn
        self._log = logger or _default_logger
        self._counts: dict[str, int] = {}
        self._lock = threading.RLock()

    def evaluate(self, report: Optional[Report]) -> None:
        """Update counters from a report and fire alerts at the threshold."""
        if report is None:
            return
        drifted: dict[str, bool] = {}
        for event in report.events:
            is_drift = event.status is not Status.MATCH
            drifted[event.service] = drifted.get(event.service, False) or is_drift

        with self._lock:
            for service, has_drift in drifted.items():
                if not has_drift:
                    self._counts[service] = 0
                    continue
                count = self._counts.get(service, 0) + 1
                self._counts[service] = count
                self._log.warning(
                    "consecutive drift detected service=%s count=%d", service, count
                )
                if count >= self._threshold and self._alert_fn is not None:
                    self._alert_fn(service, count)

    def reset(self, service: str) -> None:
        """Clear the consecutive counter for a service."""
        with self._lock:
            self._counts.pop(service, None)

    def count(self, service: str) -> int:
        """Current consecutive drift count for a service."""
        with self._lock:
            return self._counts.get(service, 0)