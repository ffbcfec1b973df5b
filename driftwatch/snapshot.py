"""Persistence of drift detection baselines.

A snapshot captures the known-good state of a service's configuration files
at a git ref. It is saved as JSON to <dir>/<service>.snapshot.json so the
live state can be compared against the last baseline across restarts.
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from os import PathLike
from typing import Any, Optional, Union

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_TIME_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})$"
)


class SnapshotError(Exception):
    """Raised when a snapshot cannot be saved or loaded."""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _format_time(moment: datetime) -> str:
    text = moment.isoformat()
    return text[: -len("+00:00")] + "Z" if text.endswith("+00:00") else text


def _parse_time(value: Any) -> datetime:
    if value is None:
        return _ZERO_TIME
    if not isinstance(value, str):
        raise ValueError(f"expected a timestamp string, got {value!r}")
    match = _TIME_RE.match(value)
    if match is None:
        raise ValueError(f"invalid timestamp {value!r}")
    base, fraction, zone = match.groups()
    fraction = ((fraction or "") + "000000")[:6]
    zone = "+00:00" if zone == "Z" else zone
    return datetime.fromisoformat(f"{base}.{fraction}{zone}")


def _string(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key}: expected a string, got {value!r}")
    return value


def _file_name(directory: Union[str, PathLike], service_name: str) -> str:
    return os.path.join(os.fspath(directory), f"{service_name}.snapshot.json")


@dataclass(frozen=True)
class SnapshotEntry:
    """One file's content hash and metadata at a point in time."""

    path: str
    digest: str
    ref: str
    recorded_at: datetime

    def _to_dict(self) -> dict:
        return {
            "path": self.path,
            "hash": self.digest,
            "ref": self.ref,
            "recorded_at": _format_time(self.recorded_at),
        }

    @classmethod
    def _from_dict(cls, data: Any) -> "SnapshotEntry":
        if not isinstance(data, dict):
            raise ValueError("snapshot entry must be a JSON object")
        return cls(
            path=_string(data, "path"),
            digest=_string(data, "hash"),
            ref=_string(data, "ref"),
            recorded_at=_parse_time(data.get("recorded_at")),
        )


@dataclass
class Snapshot:
    """The file entries of one service, keyed by path."""

    service_name: str
    entries: dict[str, SnapshotEntry] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_utc_now)

    def set(self, path: str, digest: str, ref: str) -> None:
        """Record or replace the entry for path."""
        self.entries[path] = SnapshotEntry(path, digest, ref, _utc_now())

    def get(self, path: str) -> Optional[SnapshotEntry]:
        """The entry for path, or None if there is none."""
        return self.entries.get(path)

    def save(self, directory: Union[str, PathLike]) -> None:
        """Write the snapshot as indented JSON to <directory>/<service>.snapshot.json."""
        try:
            os.makedirs(directory, mode=0o755, exist_ok=True)
        except OSError as exc:
            raise SnapshotError(f"snapshot: create dir: {exc}") from exc
        payload = {
            "service_name": self.service_name,
            "entries": {path: e._to_dict() for path, e in sorted(self.entries.items())},
            "created_at": _format_time(self.created_at),
        }
        try:
            with open(_file_name(directory, self.service_name), "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, ensure_ascii=False)
                handle.write("\n")
        except OSError as exc:
            raise SnapshotError(f"snapshot: create file: {exc}") from exc


def load_snapshot(directory: Union[str, PathLike], service_name: str) -> Optional[Snapshot]:
    """Read a saved snapshot; None if none has been saved for the service."""
    try:
        with open(_file_name(directory, service_name), encoding="utf-8") as handle:
            text = handle.read()
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise SnapshotError(f"snapshot: open: {exc}") from exc

    try:
        data = json.loads(text)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError("snapshot must be a JSON object")
        raw_entries = data.get("entries")
        if raw_entries is None:
            raw_entries = {}
        if not isinstance(raw_entries, dict):
            raise ValueError("entries: expected a JSON object")
        return Snapshot(
            service_name=_string(data, "service_name"),
            entries={key: SnapshotEntry._from_dict(v) for key, v in raw_entries.items()},
            created_at=_parse_time(data.get("created_at")),
        )
    except ValueError as exc:
        raise SnapshotError(f"snapshot: decode: {exc}") from exc