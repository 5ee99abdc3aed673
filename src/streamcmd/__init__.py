"""streamcmd - run external commands and stream their output line by line.

Environment variables:
    STREAMCMD_LOG_DEBUG: debug logging to a temp file (default false)
    STREAMCMD_DECODE_ERRORS: replace | strict (default replace)
    STREAMCMD_CHUNK_SIZE: stream read size in bytes (default 4096)

Usage:
    streamcmd --prefix "[build] " -- make all
"""

__version__ = "0.1.0"

from .context import ExecutionContext, FileSystem, LocalFileSystem
from .errors import CommandFailedError, DecodeError, LaunchError, StreamCmdError
from .runner import (
    CommandRunner,
    cmd,
    run_command,
    run_command_and_stream_output,
    stream_cmd,
)
from .sink import ConsoleSink, LoggingSink, LogSink, RecordingSink
from .types import (
    DROP,
    CommandSpec,
    Drop,
    Keep,
    PipelineConfig,
    RunResult,
    Severity,
)

__all__ = [
    "__version__",
    "CommandFailedError",
    "CommandRunner",
    "CommandSpec",
    "ConsoleSink",
    "DecodeError",
    "DROP",
    "Drop",
    "ExecutionContext",
    "FileSystem",
    "Keep",
    "LaunchError",
    "LocalFileSystem",
    "LoggingSink",
    "LogSink",
    "PipelineConfig",
    "RecordingSink",
    "RunResult",
    "Severity",
    "StreamCmdError",
    "cmd",
    "run_command",
    "run_command_and_stream_output",
    "stream_cmd",
]
