"""Logging sinks that receive forwarded output lines.

A sink is any callable taking ``(message, severity)``. The pipelines are
producers only; sinks own formatting and routing.
"""

from __future__ import annotations

import logging
import sys
import threading
from typing import Protocol, TextIO

from .types import Severity

__all__ = ["LogSink", "LoggingSink", "ConsoleSink", "RecordingSink"]

OUTPUT_LOGGER_NAME = "streamcmd.output"

_LEVELS: dict[Severity, int] = {
    Severity.STATUS: logging.INFO,
    Severity.ERROR: logging.ERROR,
    Severity.TRACE: logging.DEBUG,
}


class LogSink(Protocol):
    def __call__(self, message: str, severity: Severity) -> None: ...


class LoggingSink:
    """Forward lines to the ``streamcmd.output`` logger.

    STATUS maps to INFO, ERROR to ERROR and TRACE to DEBUG.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger(OUTPUT_LOGGER_NAME)

    def __call__(self, message: str, severity: Severity) -> None:
        self.logger.log(_LEVELS[severity], message)


class ConsoleSink:
    """Write status lines to stdout and error lines to stderr.

    Trace lines are written to stderr only when ``verbose`` is set.
    """

    def __init__(
        self,
        verbose: bool = False,
        out: TextIO | None = None,
        err: TextIO | None = None,
    ) -> None:
        self.verbose = verbose
        self._out = out
        self._err = err
        self._lock = threading.Lock()

    def __call__(self, message: str, severity: Severity) -> None:
        if severity is Severity.TRACE and not self.verbose:
            return
        if severity is Severity.STATUS:
            stream = self._out if self._out is not None else sys.stdout
        else:
            stream = self._err if self._err is not None else sys.stderr
        with self._lock:
            stream.write(message + "\n")
            stream.flush()


class RecordingSink:
    """Collect forwarded lines in memory as ``(message, severity)`` pairs."""

    def __init__(self) -> None:
        self.records: list[tuple[str, Severity]] = []

    def __call__(self, message: str, severity: Severity) -> None:
        self.records.append((message, severity))

    def messages(self, severity: Severity | None = None) -> list[str]:
        return [m for m, s in self.records if severity is None or s is severity]
