"""Named policy rules evaluated against drift reports.

A policy matches services by a regular expression searched in the service
name and lists the drift statuses it prohibits. Each policy carries a
severity so callers can decide how to act on the resulting violations. The
HTTP view answers 204 when every policy passes and 409 with the violations
as JSON otherwise.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional, Protocol, Sequence

from driftwatch.drift import Report, Status


class PolicyError(Exception):
    """Raised when a policy cannot be compiled."""


class Severity(str, Enum):
    """Importance of a policy violation."""

    WARN = "warn"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Policy:
    """A rule matching services by name pattern and denying some statuses."""

    name: str
    service_pattern: str
    deny_statuses: Sequence[Status] = ()
    severity: Optional[Severity] = None


@dataclass(frozen=True)
class Violation:
    """A report event that breaches a policy."""

    policy: str
    service: str
    status: Status
    severity: Optional[Severity]

    def to_dict(self) -> dict:
        """The violation as a JSON-ready mapping."""
        return {
            "Policy": self.policy,
            "Service": self.service,
            "Status": str(self.status),
            "Severity": self.severity.value if self.severity is not None else "",
        }


class Checker:
    """Evaluates reports against a set of compiled policies."""

    def __init__(self, policies: Optional[Iterable[Policy]] = None) -> None:
        compiled = []
        for policy in policies or ():
            try:
                pattern = re.compile(policy.service_pattern)
            except re.error as exc:
                raise PolicyError(
                    f"policycheck: invalid pattern {policy.service_pattern!r} "
                    f"in policy {policy.name!r}: {exc}"
                ) from exc
            compiled.append((policy, pattern))
        self._policies = compiled

    def evaluate(self, report: Optional[Report]) -> list[Violation]:
        """Every violation found in the report's events; none for a missing report."""
        if report is None:
            return []
        violations = []
        for event in report.events:
            for policy, pattern in self._policies:
                if not pattern.search(event.service):
                    continue
                if any(event.status == denied for denied in policy.deny_statuses):
                    violations.append(
                        Violation(policy.name, event.service, event.status, policy.severity)
                    )
        return violations


class ReportSource(Protocol):
    """Anything that can hand out the most recent drift report."""

    def latest(self) -> Optional[Report]: ...


def policy_app(checker: Checker, store: ReportSource) -> Callable:
    """WSGI app evaluating the latest report and serving violations as JSON."""

    def app(environ: dict, start_response: Callable) -> Iterable[bytes]:
        violations = checker.evaluate(store.latest())
        if not violations:
            start_response("204 No Content", [("Content-Type", "application/json")])
            return [b""]
        body = (json.dumps([v.to_dict() for v in violations]) + "\n").encode()
        start_response(
            "409 Conflict",
            [("Content-Type", "application/json"), ("Content-Length", str(len(body)))],
        )
        return [body]

    return app