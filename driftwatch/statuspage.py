"""An HTTP status page aggregating the latest drift result of every service.

The response is JSON holding a "services" list and a "generated_at"
timestamp. The status code is 200 when every service is clean and 409 when
at least one has drifted.
"""

from __future__ import annotations

import json
import threading
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from itertools import chain
from typing import Callable, Iterable, MutableMapping, Optional

from driftwatch.drift import Report, Status

STATUS_PAGE_PATH = "/statuspage"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _timestamp(moment: datetime) -> str:
    text = moment.isoformat()
    return text[: -len("+00:00")] + "Z" if text.endswith("+00:00") else text


def _summarise(report: Report) -> str:
    counts = Counter(item.status for item in chain(report.results, report.events))
    return (
        f"{counts[Status.MATCH]} matched, "
        f"{counts[Status.DRIFTED]} drifted, "
        f"{counts[Status.MISSING]} missing"
    )


@dataclass(frozen=True)
class ServiceStatus:
    """The last known status of one service."""

    service: str
    has_drift: bool
    checked_at: datetime
    summary: str
    drifted_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        """The status as a JSON-ready mapping; drifted_at only when drifted."""
        data: dict = {"service": self.service, "has_drift": self.has_drift}
        if self.drifted_at is not None:
            data["drifted_at"] = _timestamp(self.drifted_at)
        data["checked_at"] = _timestamp(self.checked_at)
        data["summary"] = self.summary
        return data


class StatusPage:
    """Per-service statuses served as a WSGI application."""

    def __init__(self, clock: Callable[[], datetime] = _utc_now) -> None:
        self._clock = clock
        self._statuses: dict[str, ServiceStatus] = {}
        self._lock = threading.Lock()

    def record(self, report: Optional[Report]) -> None:
        """Store the status of the report's service; keep the first drift time."""
        if report is None:
            return
        now = self._clock()
        has_drift = report.has_drift()
        drifted_at = now if has_drift else None
        with self._lock:
            previous = self._statuses.get(report.service_name)
            if previous is not None and previous.has_drift and has_drift:
                drifted_at = previous.drifted_at
            self._statuses[report.service_name] = ServiceStatus(
                service=report.service_name,
                has_drift=has_drift,
                checked_at=now,
                summary=_summarise(report),
                drifted_at=drifted_at,
            )

    def statuses(self) -> list[ServiceStatus]:
        """A snapshot of every service status."""
        with self._lock:
            return list(self._statuses.values())

    def __call__(self, environ: dict, start_response: Callable) -> Iterable[bytes]:
        statuses = self.statuses()
        status = "409 Conflict" if any(s.has_drift for s in statuses) else "200 OK"
        payload = {
            "services": [s.to_dict() for s in statuses],
            "generated_at": _timestamp(self._clock()),
        }
        body = (json.dumps(payload) + "\n").encode()
        start_response(
            status,
            [("Content-Type", "application/json"), ("Content-Length", str(len(body)))],
        )
        return [body]


def register(mux: MutableMapping[str, Callable], page: StatusPage) -> None:
    """Mount the page at /statuspage in a path-to-app routing table."""
    mux[STATUS_PAGE_PATH] = page