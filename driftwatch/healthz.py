"""A liveness endpoint for the daemon.

After each drift-check cycle the runner calls :meth:`Health.record_check`.
The endpoint answers 503 until the first check completes, then 200; the
JSON body carries the RFC 3339 time of the last check and whether drift
was seen in it.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Iterable, MutableMapping, Optional

HEALTHZ_PATH = "/healthz"

_default_logger = logging.getLogger(__name__)


class Health:
    """Health state served as a WSGI application."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._log = logger or _default_logger
        self._last_check: Optional[datetime] = None
        self._last_drifted = False
        self._lock = threading.Lock()

    def record_check(self, drifted: bool) -> None:
        """Note that a check cycle finished, and whether it saw drift."""
        with self._lock:
            self._last_check = datetime.now(timezone.utc)
            self._last_drifted = drifted
        self._log.debug("healthz: check recorded drifted=%s", drifted)

    def __call__(self, environ: dict, start_response: Callable) -> Iterable[bytes]:
        with self._lock:
            last_check = self._last_check
            drifted = self._last_drifted

        if last_check is None:
            status = "503 Service Unavailable"
            payload: dict = {"status": "starting", "drifted_seen": drifted}
        else:
            status = "200 OK"
            payload = {
                "status": "ok",
                "last_check": last_check.strftime("%Y-%m-%dT%H:%M:%SZ"),
                "drifted_seen": drifted,
            }
        body = (json.dumps(payload) + "\n").encode()
        start_response(
            status,
            [("Content-Type", "application/json"), ("Content-Length", str(len(body)))],
        )
        return [body]


def register(mux: MutableMapping[str, Callable], health: Health) -> None:
    """Mount the health endpoint at /healthz in a path-to-app routing table."""
    mux[HEALTHZ_PATH] = health