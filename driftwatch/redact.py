"""Scrubbing of sensitive values from YAML-like configuration text."""

from __future__ import annotations

import re
from typing import Iterable, Optional

DEFAULT_PATTERNS: tuple[str, ...] = (
    "password",
    "secret",
    "token",
    "api_key",
    "apikey",
    "private_key",
    "credentials",
)

REDACTED_PLACEHOLDER = "[REDACTED]"


class Redactor:
    """Masks the values of "key: value" lines whose keys look sensitive."""

    def __init__(self, patterns: Optional[Iterable[str]] = None) -> None:
        chosen = list(patterns or ())
        if not chosen:
            chosen = list(DEFAULT_PATTERNS)
        self._patterns = [re.compile(re.escape(p), re.IGNORECASE) for p in chosen]

    def apply(self, content: str) -> str:
        """Return content with sensitive values replaced, line by line."""
        return "\n".join(self._redact_line(line) for line in content.split("\n"))

    def is_sensitive_key(self, key: str) -> bool:
        """True if key matches any pattern (case-insensitive substring)."""
        return any(p.search(key) for p in self._patterns)

    def _redact_line(self, line: str) -> str:
        key_part, sep, _ = line.partition(":")
        if not sep:
            return line
        key = key_part.strip()
        if not self.is_sensitive_key(key):
            return line
        leading = line[: len(line) - len(line.lstrip(" \t"))]
        return f"{leading}{key}: {REDACTED_PLACEHOLDER}"