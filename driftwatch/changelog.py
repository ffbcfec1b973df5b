"""A bounded, in-memory history of drift events, with a JSON HTTP view."""

from __future__ import annotations

import json
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from driftwatch.drift import Event, Report

DEFAULT_MAX_ENTRIES = 100


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _timestamp(moment: datetime) -> str:
    text = moment.isoformat()
    return text[: -len("+00:00")] + "Z" if text.endswith("+00:00") else text


@dataclass(frozen=True)
class ChangelogEntry:
    """A single record in the changelog."""

    recorded_at: datetime
    service_name: str
    event: Event


class Changelog:
    """Keeps at most max_entries records, evicting the oldest first."""

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if max_entries <= 0:
            max_entries = DEFAULT_MAX_ENTRIES
        self._entries: deque[ChangelogEntry] = deque(maxlen=max_entries)
        self._clock = clock
        self._lock = threading.Lock()

    def record(self, report: Optional[Report]) -> None:
        """Append every event in report; a missing report is ignored."""
        if report is None:
            return
        now = self._clock()
        with self._lock:
            self._entries.extend(
                ChangelogEntry(now, event.service, event) for event in report.events
            )

    def entries(self) -> list[ChangelogEntry]:
        """A snapshot of the log, newest first."""
        with self._lock:
            return list(reversed(self._entries))

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._entries.clear()


def _entry_json(entry: ChangelogEntry) -> dict:
    data = {
        "recorded_at": _timestamp(entry.recorded_at),
        "service_name": entry.service_name,
        "status": str(entry.event.status),
    }
    if entry.event.path:
        data["file_path"] = entry.event.path
    return data


def changelog_app(log: Changelog) -> Callable:
    """WSGI app: GET serves the log as JSON, DELETE clears it."""

    def app(environ: dict, start_response: Callable) -> Iterable[bytes]:
        method = environ.get("REQUEST_METHOD", "GET")
        if method == "DELETE":
            log.clear()
            start_response("204 No Content", [])
            return [b""]
        if method == "GET":
            body = (json.dumps([_entry_json(e) for e in log.entries()]) + "\n").encode()
            start_response(
                "200 OK",
                [("Content-Type", "application/json"), ("Content-Length", str(len(body)))],
            )
            return [body]
        body = b"method not allowed\n"
        start_response(
            "405 Method Not Allowed",
            [("Content-Type", "text/plain; charset=utf-8"), ("Content-Length", str(len(body)))],
        )
        return [body]

    return app