"""Execution context: the dependencies a runner is built from.

The process manager, file system and sink are passed in explicitly. Each
defaults to the real OS-backed implementation and can be replaced with a
fake in tests.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Protocol

from .runtime.process_manager import LocalProcessManager, ProcessManager
from .sink import LoggingSink, LogSink

__all__ = ["FileSystem", "LocalFileSystem", "ExecutionContext"]


class FileSystem(Protocol):
    """Path conventions used when formatting trace messages."""

    @property
    def separator(self) -> str: ...


class LocalFileSystem:
    """The host's path conventions."""

    @property
    def separator(self) -> str:
        return os.sep


@dataclass
class ExecutionContext:
    """Dependencies for launching and reporting commands.

    Attributes:
        process_manager: Creates OS processes (or fakes in tests)
        fs: Supplies the path separator for trace messages
        sink: Receives forwarded output and trace lines
    """

    process_manager: ProcessManager = field(default_factory=LocalProcessManager)
    fs: FileSystem = field(default_factory=LocalFileSystem)
    sink: LogSink = field(default_factory=LoggingSink)
