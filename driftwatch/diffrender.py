"""Human-readable, unified-diff-style rendering of drift reports.

Colour output uses ANSI escape codes and is only emitted on request. The
HTTP view answers 204 when no report is available yet, 200 when the report
shows no drift and 409 when it does; clients that send "text/x-ansi" in
their Accept header receive coloured output.
"""

from __future__ import annotations

import io
from typing import Callable, Iterable, Optional, TextIO

from driftwatch.drift import Event, Report, Status

COLOR_RED = "\033[31m"
COLOR_GREEN = "\033[32m"
COLOR_RESET = "\033[0m"


class Renderer:
    """Writes diff output for drift reports to a text stream."""

    def __init__(self, stream: TextIO, colours: bool = False) -> None:
        self._stream = stream
        self._colours = colours

    def render(self, report: Optional[Report]) -> None:
        """Write a diff summary for every event in report."""
        if report is None:
            return
        for event in report.events:
            self._render_event(event)

    def _render_event(self, event: Event) -> None:
        self._stream.write(f"--- {event.path} [{event.service}]\n")
        if event.status is Status.MATCH:
            self._stream.write("    (no drift)\n")
        elif event.status is Status.MISSING:
            self._write_lines("-", "(file missing from live system)", COLOR_RED)
        elif event.status is Status.DRIFTED:
            self._write_lines("-", event.expected, COLOR_RED)
            self._write_lines("+", event.actual, COLOR_GREEN)

    def _write_lines(self, prefix: str, content: str, colour: str) -> None:
        for line in content.rstrip("\n").split("\n"):
            if self._colours:
                self._stream.write(f"{colour}{prefix} {line}{COLOR_RESET}\n")
            else:
                self._stream.write(f"{prefix} {line}\n")


def diff_app(get_report: Callable[[], Optional[Report]]) -> Callable:
    """WSGI app rendering the report returned by get_report on each request."""

    def app(environ: dict, start_response: Callable) -> Iterable[bytes]:
        report = get_report()
        if report is None:
            start_response("204 No Content", [])
            return [b""]

        colours = "text/x-ansi" in environ.get("HTTP_ACCEPT", "")
        buffer = io.StringIO()
        Renderer(buffer, colours).render(report)
        body = buffer.getvalue().encode("utf-8")

        status = "409 Conflict" if report.has_drift() else "200 OK"
        start_response(
            status,
            [
                ("Content-Type", "text/plain; charset=utf-8"),
                ("Content-Length", str(len(body))),
            ],
        )
        return [body]

    return app