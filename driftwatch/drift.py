"""Drift detection between declared and live file contents, and reports of the outcome."""

from __future__ import annotations

import hashlib
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from itertools import chain
from typing import Mapping, TextIO, Union

Content = Union[str, bytes]


class Status(str, Enum):
    """Drift state of a single file."""

    MATCH = "match"
    DRIFTED = "drifted"
    MISSING = "missing"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Result:
    """Drift detection outcome for one file; hashes are SHA-256 hex digests."""

    file_path: str
    status: Status
    expected: str = ""
    actual: str = ""

    def __str__(self) -> str:
        if self.status is Status.MATCH:
            return f"[OK]      {self.file_path}"
        if self.status is Status.DRIFTED:
            return (
                f"[DRIFT]   {self.file_path} "
                f"(expected {self.expected[:8]}, got {self.actual[:8]})"
            )
        if self.status is Status.MISSING:
            return f"[MISSING] {self.file_path}"
        return f"[UNKNOWN] {self.file_path}"


@dataclass
class Event:
    """A drift observation for one file of one service."""

    service: str = ""
    path: str = ""
    status: Status = Status.MATCH
    expected: str = ""
    actual: str = ""
    detail: str = ""


def _hash_content(content: Content) -> str:
    data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
    return hashlib.sha256(data.rstrip(b"\n")).hexdigest()


class Detector:
    """Compares declared file contents against live contents."""

    def compare(self, file_path: str, declared_content: Content, live_content: Content) -> Result:
        """Compare one file; empty live content means the file is missing."""
        expected = _hash_content(declared_content)
        if not live_content:
            return Result(file_path, Status.MISSING, expected, "")
        actual = _hash_content(live_content)
        status = Status.MATCH if expected == actual else Status.DRIFTED
        return Result(file_path, status, expected, actual)

    def compare_all(
        self, declared: Mapping[str, Content], live: Mapping[str, Content]
    ) -> list[Result]:
        """Compare every declared file against its live counterpart."""
        return [
            self.compare(path, content, live.get(path, ""))
            for path, content in declared.items()
        ]


def _rfc3339(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.astimezone()
    if moment.utcoffset() == timedelta(0):
        return moment.strftime("%Y-%m-%dT%H:%M:%SZ")
    return moment.isoformat(timespec="seconds")


@dataclass
class Report:
    """Drift results for a named service at a point in time."""

    service_name: str = ""
    ref: str = ""
    checked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    results: list[Result] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)

    def has_drift(self) -> bool:
        """True if any result or event is not a match."""
        return any(
            item.status is not Status.MATCH for item in chain(self.results, self.events)
        )

    def summary(self) -> tuple[int, int, int]:
        """Counts of (matched, drifted, missing) results."""
        counts = Counter(result.status for result in self.results)
        return counts[Status.MATCH], counts[Status.DRIFTED], counts[Status.MISSING]

    def write_to(self, stream: TextIO) -> None:
        """Write a human-readable report to a text stream."""
        sep = "-" * 60
        stream.write(
            f"{sep}\nDrift Report: {self.service_name} @ {self.ref}\n"
            f"Checked: {_rfc3339(self.checked_at)}\n{sep}\n"
        )
        for result in self.results:
            stream.write(f"{result}\n")
        matched, drifted, missing = self.summary()
        stream.write(
            f"{sep}\nSummary: {matched} matched, {drifted} drifted, {missing} missing\n"
        )