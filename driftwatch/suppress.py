"""Temporary suppression of drift alerts, with a JSON HTTP view.

A store holds time-bounded entries keyed by service and file path. While an
entry has not expired, drift for that pair is silenced. Expired entries are
kept until :meth:`SuppressionStore.purge` is called.

HTTP routes served by :func:`suppress_app`:

    POST /suppress   add an entry (JSON: service, path, reason, ttl_ns)
    GET  /suppress   list active entries
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Union

SUPPRESS_PATH = "/suppress"
DEFAULT_TTL = timedelta(hours=1)

Duration = Union[float, timedelta]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _timedelta(value: Duration) -> timedelta:
    return value if isinstance(value, timedelta) else timedelta(seconds=float(value))


def _timestamp(moment: datetime) -> str:
    text = moment.isoformat()
    return text[: -len("+00:00")] + "Z" if text.endswith("+00:00") else text


@dataclass(frozen=True)
class Suppression:
    """A single suppression rule."""

    service: str
    path: str
    expiry: datetime
    reason: str = ""


class SuppressionStore:
    """Holds suppression entries and answers whether a pair is silenced."""

    def __init__(self, clock: Callable[[], datetime] = _utc_now) -> None:
        self._clock = clock
        self._entries: list[Suppression] = []
        self._lock = threading.Lock()

    def add(self, service: str, path: str, reason: str, ttl: Duration) -> None:
        """Register a suppression for service and path that expires after ttl."""
        with self._lock:
            expiry = self._clock() + _timedelta(ttl)
            self._entries.append(Suppression(service, path, expiry, reason))

    def is_suppressed(self, service: str, path: str) -> bool:
        """True if an unexpired entry covers service and path."""
        with self._lock:
            now = self._clock()
            return any(
                e.service == service and e.path == path and now < e.expiry
                for e in self._entries
            )

    def purge(self) -> None:
        """Remove every expired entry."""
        with self._lock:
            now = self._clock()
            self._entries = [e for e in self._entries if now < e.expiry]

    def active(self) -> list[Suppression]:
        """The entries that have not expired."""
        with self._lock:
            now = self._clock()
            return [e for e in self._entries if now < e.expiry]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def _entry_json(entry: Suppression) -> dict:
    return {
        "Service": entry.service,
        "Path": entry.path,
        "Expiry": _timestamp(entry.expiry),
        "Reason": entry.reason,
    }


def _string(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key}: expected a string")
    return value


def _parse_add_request(body: bytes) -> tuple[str, str, str, int]:
    data: Any = json.loads(body)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("request must be a JSON object")
    ttl_ns = data.get("ttl_ns")
    if ttl_ns is None:
        ttl_ns = 0
    if isinstance(ttl_ns, bool) or not isinstance(ttl_ns, int):
        raise ValueError("ttl_ns: expected an integer")
    return _string(data, "service"), _string(data, "path"), _string(data, "reason"), ttl_ns


def _read_body(environ: dict) -> bytes:
    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        length = 0
    if length <= 0:
        return b""
    return environ["wsgi.input"].read(length)


def _respond(
    start_response: Callable, status: str, body: bytes = b"", content_type: str = ""
) -> list[bytes]:
    headers = [("Content-Length", str(len(body)))]
    if content_type:
        headers.insert(0, ("Content-Type", content_type))
    start_response(status, headers)
    return [body]


def _error(start_response: Callable, status: str, message: str) -> list[bytes]:
    return _respond(
        start_response, status, f"{message}\n".encode(), "text/plain; charset=utf-8"
    )


def suppress_app(store: SuppressionStore) -> Callable:
    """WSGI app exposing the suppression store at /suppress."""

    def app(environ: dict, start_response: Callable) -> Iterable[bytes]:
        if environ.get("PATH_INFO", "") != SUPPRESS_PATH:
            return _error(start_response, "404 Not Found", "404 page not found")

        method = environ.get("REQUEST_METHOD", "GET")
        if method == "POST":
            try:
                service, path, reason, ttl_ns = _parse_add_request(_read_body(environ))
            except ValueError:
                return _error(start_response, "400 Bad Request", "invalid JSON")
            if not service or not path:
                return _error(
                    start_response, "400 Bad Request", "service and path are required"
                )
            ttl = timedelta(microseconds=ttl_ns / 1000) if ttl_ns > 0 else DEFAULT_TTL
            store.add(service, path, reason, ttl)
            return _respond(start_response, "201 Created")

        if method == "GET":
            body = (json.dumps([_entry_json(e) for e in store.active()]) + "\n").encode()
            return _respond(start_response, "200 OK", body, "application/json")

        return _error(start_response, "405 Method Not Allowed", "method not allowed")

    return app