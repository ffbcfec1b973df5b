"""Label-selector filtering of services.

A filter is built from "key=value" selectors and matches services whose
labels satisfy all of them (AND semantics).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

Labels = Mapping[str, str]


@dataclass(frozen=True)
class Selector:
    """A single key=value match expression."""

    key: str
    value: str

    def __str__(self) -> str:
        return f"{self.key}={self.value}"


class LabelFilter:
    """Matches label sets against every selector it holds."""

    def __init__(self, exprs: Optional[Iterable[str]] = None) -> None:
        self.selectors: tuple[Selector, ...] = tuple(
            self._parse(expr) for expr in exprs or ()
        )

    @staticmethod
    def _parse(expr: str) -> Selector:
        key, sep, value = expr.partition("=")
        if not sep or not key:
            raise ValueError(
                f"labelfilter: invalid selector {expr!r}: must be key=value"
            )
        return Selector(key, value)

    def matches(self, labels: Labels) -> bool:
        """True if labels satisfy every selector; an empty filter matches all."""
        return all(
            sel.key in labels and labels[sel.key] == sel.value for sel in self.selectors
        )

    def match_all(self, services: Mapping[str, Labels]) -> list[str]:
        """Names of the services whose labels satisfy the filter."""
        return [name for name, labels in services.items() if self.matches(labels)]

    def __str__(self) -> str:
        if not self.selectors:
            return "<match-all>"
        return ",".join(str(sel) for sel in self.selectors)