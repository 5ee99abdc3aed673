"""Process launcher.

Starts a command through the injected process manager and returns the
live handle without waiting for completion. Every launch is traced to
the sink first.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from typing import TYPE_CHECKING

from ..errors import LaunchError
from ..sink import LogSink
from ..types import CommandSpec, Severity
from .process_manager import ProcessHandle, ProcessManager

if TYPE_CHECKING:
    from ..context import FileSystem

__all__ = ["Launcher", "format_trace"]

logger = logging.getLogger(__name__)


def format_trace(argv: Sequence[str], cwd: str | None, separator: str) -> str:
    """Human-readable description of a command and where it runs."""
    args_text = " ".join(argv)
    if cwd is None:
        return f"executing: {args_text}"
    return f"executing: [{cwd}{separator}] {args_text}"


class Launcher:
    """Start processes described by a CommandSpec.

    Attributes:
        process_manager: Creates the OS process
        fs: Path conventions for trace messages
        sink: Receives the trace line
    """

    def __init__(self, process_manager: ProcessManager, fs: FileSystem, sink: LogSink) -> None:
        self.process_manager = process_manager
        self.fs = fs
        self.sink = sink

    def trace(self, spec: CommandSpec) -> None:
        self.sink(format_trace(spec.argv, spec.cwd, self.fs.separator), Severity.TRACE)

    async def launch(self, spec: CommandSpec) -> ProcessHandle:
        """Start ``spec`` and return its handle immediately.

        Raises:
            LaunchError: Missing executable, bad working directory or permission denied
        """
        self.trace(spec)
        try:
            return await self.process_manager.start(spec.argv, cwd=spec.cwd, env=spec.env)
        except OSError as e:
            raise LaunchError(spec.argv, spec.cwd, str(e)) from e

    def run_sync(self, spec: CommandSpec) -> subprocess.CompletedProcess[bytes]:
        """Run ``spec`` to completion via the process manager.

        Raises:
            LaunchError: Missing executable, bad working directory or permission denied
        """
        self.trace(spec)
        try:
            return self.process_manager.run_sync(spec.argv, cwd=spec.cwd, env=spec.env)
        except OSError as e:
            raise LaunchError(spec.argv, spec.cwd, str(e)) from e
