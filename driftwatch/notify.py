"""Notifications for drifted or missing files."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, TextIO

from driftwatch.drift import Report, Status


class Level(str, Enum):
    """Severity of a drift notification."""

    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Notification:
    """The details of a single drift notification."""

    timestamp: datetime
    level: Level
    service: str
    message: str

    def __str__(self) -> str:
        stamp = self.timestamp.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        return f"{stamp} [{self.level}] service={self.service} {self.message}"


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


class Notifier:
    """Writes drift notifications to a text stream (standard output by default)."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream if stream is not None else sys.stdout

    def notify(self, service: str, report: Optional[Report]) -> int:
        """Emit one notification per drifted or missing result; return how many."""
        if report is None:
            raise ValueError(f"notify: nil report for service {_quote(service)}")

        count = 0
        for result in report.results:
            path = _quote(result.file_path)
            if result.status is Status.MATCH:
                continue
            if result.status is Status.MISSING:
                level = Level.ERROR
                message = f"file {path} is missing from the running service"
            elif result.status is Status.DRIFTED:
                level = Level.WARN
                message = f"file {path} has drifted from declared state"
            else:
                level = Level.INFO
                message = f"file {path} has unknown status {_quote(str(result.status))}"

            note = Notification(datetime.now(timezone.utc), level, service, message)
            self._stream.write(f"{note}\n")
            count += 1
        return count