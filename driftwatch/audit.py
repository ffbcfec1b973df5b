"""Append-only, newline-delimited JSON audit log of drift check results.

One JSON line is written per event, holding the service name, git ref,
file path, drift status and a UTC timestamp.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from os import PathLike
from typing import Optional, TextIO, Union

from driftwatch.drift import Report


class AuditError(Exception):
    """Raised when the audit log cannot be opened or written."""


def _timestamp(moment: datetime) -> str:
    text = moment.isoformat()
    return text[: -len("+00:00")] + "Z" if text.endswith("+00:00") else text


@dataclass(frozen=True)
class AuditEntry:
    """A single audit log record."""

    timestamp: datetime
    service: str
    status: str
    file_path: str
    ref: str
    details: str = ""

    def to_json(self) -> str:
        """The entry as one compact JSON object; empty details are omitted."""
        data = {
            "timestamp": _timestamp(self.timestamp),
            "service": self.service,
            "status": self.status,
            "file_path": self.file_path,
            "ref": self.ref,
        }
        if self.details:
            data["details"] = self.details
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


class AuditLogger:
    """Writes audit entries to a text stream as newline-delimited JSON."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream
        self._owns_stream = False

    def record(self, service: str, ref: str, report: Optional[Report]) -> None:
        """Write one entry per event in report; a missing report writes nothing."""
        if report is None:
            return
        for event in report.events:
            entry = AuditEntry(
                timestamp=datetime.now(timezone.utc),
                service=service,
                status=str(event.status),
                file_path=event.path,
                ref=ref,
                details=event.detail,
            )
            try:
                self._stream.write(entry.to_json() + "\n")
            except OSError as exc:
                raise AuditError(f"audit: write entry: {exc}") from exc
        self._stream.flush()

    def close(self) -> None:
        """Flush the log, and close the file if this logger opened it."""
        self._stream.flush()
        if self._owns_stream:
            self._stream.close()

    def __enter__(self) -> "AuditLogger":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def open_audit_log(path: Union[str, PathLike]) -> AuditLogger:
    """Open the log file at path for appending, creating it if needed."""
    try:
        handle = open(path, "a", encoding="utf-8")
    except OSError as exc:
        raise AuditError(f"audit: open {path}: {exc}") from exc
    logger = AuditLogger(handle)
    logger._owns_stream = True
    return logger