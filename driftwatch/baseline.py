"""Pinned baseline snapshots for drift comparison, with an HTTP management view.

A baseline is a known-good state captured at a specific git ref, so live
configuration can be compared against a pinned reference rather than HEAD.

HTTP routes served by :func:`baseline_app`:

    GET    /baseline/{service}   retrieve the pinned baseline
    POST   /baseline/{service}   pin a new baseline (JSON body of an entry)
    DELETE /baseline/{service}   remove the pinned baseline
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from os import PathLike
from typing import Any, Callable, Iterable, Optional, Union

_ZERO_TIME = "0001-01-01T00:00:00Z"


class BaselineError(Exception):
    """Raised when the baseline file cannot be loaded or saved."""


def _format_time(moment: Optional[datetime]) -> str:
    if moment is None:
        return _ZERO_TIME
    text = moment.isoformat()
    return text[: -len("+00:00")] + "Z" if text.endswith("+00:00") else text


def _parse_time(value: Any) -> Optional[datetime]:
    if value is None or value == _ZERO_TIME:
        return None
    if not isinstance(value, str):
        raise ValueError(f"pinned_at: expected a timestamp string, got {value!r}")
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    return datetime.fromisoformat(text)


def _string(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key}: expected a string, got {value!r}")
    return value


@dataclass
class BaselineEntry:
    """A pinned baseline for one service; files maps path to content hash."""

    service: str = ""
    ref: str = ""
    pinned_at: Optional[datetime] = None
    files: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """The entry as a JSON-ready mapping."""
        return {
            "service": self.service,
            "ref": self.ref,
            "pinned_at": _format_time(self.pinned_at),
            "files": dict(self.files),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "BaselineEntry":
        """Build an entry from a decoded JSON object; raise ValueError if malformed."""
        if not isinstance(data, dict):
            raise ValueError("baseline entry must be a JSON object")
        files = data.get("files")
        if files is None:
            files = {}
        if not isinstance(files, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in files.items()
        ):
            raise ValueError("files: expected an object of strings")
        return cls(
            service=_string(data, "service"),
            ref=_string(data, "ref"),
            pinned_at=_parse_time(data.get("pinned_at")),
            files=dict(files),
        )


class BaselineStore:
    """Baseline entries persisted as one JSON file, keyed by service."""

    def __init__(self, path: Union[str, PathLike]) -> None:
        self._path = os.fspath(path)
        self._entries: dict[str, BaselineEntry] = {}
        self._lock = threading.RLock()
        if os.path.exists(self._path):
            try:
                self._entries = self._load()
            except (OSError, ValueError) as exc:
                raise BaselineError(f"baseline: load {self._path}: {exc}") from exc

    def pin(self, entry: BaselineEntry) -> None:
        """Record entry for its service, replacing any prior one, and persist."""
        with self._lock:
            stored = replace(
                entry, pinned_at=datetime.now(timezone.utc), files=dict(entry.files)
            )
            self._entries[stored.service] = stored
            self._save()

    def get(self, service: str) -> Optional[BaselineEntry]:
        """A copy of the entry for service, or None if none is pinned."""
        with self._lock:
            entry = self._entries.get(service)
            if entry is None:
                return None
            return replace(entry, files=dict(entry.files))

    def remove(self, service: str) -> None:
        """Delete the entry for service and persist the change."""
        with self._lock:
            self._entries.pop(service, None)
            self._save()

    def _load(self) -> dict[str, BaselineEntry]:
        with open(self._path, encoding="utf-8") as handle:
            data = json.load(handle)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError("baseline file must hold a JSON object")
        return {name: BaselineEntry.from_dict(item) for name, item in data.items()}

    def _save(self) -> None:
        payload = {name: e.to_dict() for name, e in sorted(self._entries.items())}
        directory = os.path.dirname(os.path.abspath(self._path))
        try:
            fd, tmp = tempfile.mkstemp(prefix="baseline-", suffix=".json", dir=directory)
        except OSError as exc:
            raise BaselineError(f"baseline: save {self._path}: {exc}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle)
                handle.write("\n")
            os.replace(tmp, self._path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                os.unlink(tmp)
            raise BaselineError(f"baseline: save {self._path}: {exc}") from exc


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


def _read_body(environ: dict) -> bytes:
    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        length = 0
    if length <= 0:
        return b""
    return environ["wsgi.input"].read(length)


def baseline_app(store: BaselineStore) -> Callable:
    """WSGI app exposing baseline management under /baseline/{service}."""

    def app(environ: dict, start_response: Callable) -> Iterable[bytes]:
        path = environ.get("PATH_INFO", "")
        service = path.removeprefix("/baseline/").strip("/")
        if not service:
            return _error(start_response, "400 Bad Request", "service name required")

        method = environ.get("REQUEST_METHOD", "GET")
        if method == "GET":
            entry = store.get(service)
            if entry is None:
                return _error(start_response, "404 Not Found", "not found")
            body = (json.dumps(entry.to_dict()) + "\n").encode()
            return _respond(start_response, "200 OK", body, "application/json")

        if method == "POST":
            try:
                entry = BaselineEntry.from_dict(json.loads(_read_body(environ)))
            except ValueError:
                return _error(start_response, "400 Bad Request", "invalid JSON")
            try:
                store.pin(replace(entry, service=service))
            except BaselineError:
                return _error(start_response, "500 Internal Server Error", "store error")
            return _respond(start_response, "201 Created")

        if method == "DELETE":
            try:
                store.remove(service)
            except BaselineError:
                return _error(start_response, "500 Internal Server Error", "store error")
            return _respond(start_response, "204 No Content")

        return _error(start_response, "405 Method Not Allowed", "method not allowed")

    return app