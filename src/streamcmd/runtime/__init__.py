"""Runtime module for process launching and output streaming.

This module provides isolated process execution, line decoding, the
per-stream filter/transform pipeline and the dual-stream joiner.
"""

from __future__ import annotations

from .decoder import LineDecoder
from .joiner import StreamJoiner
from .launcher import Launcher
from .pipeline import LinePipeline
from .process_manager import (
    LocalProcessManager,
    ProcessHandle,
    ProcessManager,
)

__all__ = [
    "Launcher",
    "LineDecoder",
    "LinePipeline",
    "LocalProcessManager",
    "ProcessHandle",
    "ProcessManager",
    "StreamJoiner",
]
