"""Reading of live files from disk for drift detection.

A watcher searches its base directories in order for a relative path and
returns the first match. Files found in none of them are reported as
missing rather than as errors, so "file differs" and "file absent" stay
distinct.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from os import PathLike
from typing import Iterable, Mapping, Optional, Union

_default_logger = logging.getLogger(__name__)


class WatchCancelled(Exception):
    """Raised when reading is cancelled part way through."""


@dataclass(frozen=True)
class FileState:
    """The raw bytes of a file read from disk, or a note that it is missing."""

    path: str
    content: bytes = b""
    missing: bool = False


class Watcher:
    """Reads live files relative to a list of base directories."""

    def __init__(
        self,
        base_paths: Iterable[Union[str, PathLike]],
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._base_paths = [os.fspath(p) for p in base_paths]
        self._log = logger or _default_logger

    def read_file(self, rel_path: str) -> FileState:
        """Read rel_path from the first base directory that holds it."""
        relative = rel_path.lstrip("/" + os.sep)
        for base in self._base_paths:
            full = os.path.normpath(os.path.join(base, relative))
            try:
                with open(full, "rb") as handle:
                    data = handle.read()
            except OSError:
                continue
            self._log.debug("watcher: read file path=%s", full)
            return FileState(full, data)
        self._log.debug("watcher: file not found rel_path=%s", rel_path)
        return FileState(rel_path, missing=True)

    def read_all(
        self, rel_paths: Iterable[str], cancel: Optional[threading.Event] = None
    ) -> dict[str, FileState]:
        """Read every path, keyed by relative path; raise WatchCancelled if cancelled."""
        result: dict[str, FileState] = {}
        for rel_path in rel_paths:
            if cancel is not None and cancel.is_set():
                raise WatchCancelled("watcher: context cancelled")
            result[rel_path] = self.read_file(rel_path)
        return result


def to_live_content(states: Mapping[str, FileState]) -> dict[str, bytes]:
    """The content of every file that is present, keyed by relative path."""
    return {key: state.content for key, state in states.items() if not state.missing}


def missing_paths(states: Mapping[str, FileState]) -> list[str]:
    """The relative paths of the files that are missing."""
    return [key for key, state in states.items() if state.missing]