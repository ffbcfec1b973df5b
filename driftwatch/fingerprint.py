"""Content fingerprints for drift detection.

Fingerprints are serialised as "algorithm:hexdigest" strings and can be
round-tripped through :func:`parse`.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum


class Algorithm(str, Enum):
    """Supported hashing algorithms."""

    SHA256 = "sha256"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Fingerprint:
    """The fingerprint of a piece of content."""

    algorithm: Algorithm
    hex: str

    def __str__(self) -> str:
        return f"{self.algorithm.value}:{self.hex}"


def compute(content: str) -> Fingerprint:
    """SHA-256 fingerprint of content with surrounding whitespace removed."""
    digest = hashlib.sha256(content.strip().encode("utf-8")).hexdigest()
    return Fingerprint(Algorithm.SHA256, digest)


def parse(text: str) -> Fingerprint:
    """Parse an "algorithm:hex" string; raise ValueError if it is not recognised."""
    algorithm, sep, digest = text.partition(":")
    if not sep:
        raise ValueError(f"fingerprint: malformed value {text!r}")
    try:
        alg = Algorithm(algorithm)
    except ValueError:
        raise ValueError(f"fingerprint: unknown algorithm {algorithm!r}") from None
    return Fingerprint(alg, digest)


def changed(previous: Fingerprint, content: str) -> bool:
    """True if the fingerprint of content differs from previous."""
    return compute(content) != previous