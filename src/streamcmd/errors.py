"""Exception types for streamcmd.

streamcmd v0.1.0
"""

from __future__ import annotations

from collections.abc import Sequence

__all__ = [
    "StreamCmdError",
    "LaunchError",
    "DecodeError",
    "CommandFailedError",
]


class StreamCmdError(Exception):
    """Base exception for streamcmd."""
    pass


class LaunchError(StreamCmdError):
    """The process could not be started.

    Attributes:
        argv: Command line that was requested
        cwd: Working directory the process would have run in
        reason: Underlying OS error text
    """

    def __init__(self, argv: Sequence[str], cwd: str | None, reason: str) -> None:
        self.argv = list(argv)
        self.cwd = cwd
        self.reason = reason
        super().__init__(
            f"failed to launch cmd='{' '.join(self.argv)}', "
            f"workingDirectory={cwd}: {reason}"
        )


class DecodeError(StreamCmdError):
    """Malformed byte sequence on an output stream (strict decoding only).

    Attributes:
        stream_name: "stdout" or "stderr"
        line_number: 1-based index of the offending line in its stream
        reason: Decoder error text
    """

    def __init__(self, stream_name: str, line_number: int, reason: str) -> None:
        self.stream_name = stream_name
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"cannot decode {stream_name} line {line_number}: {reason}")


class CommandFailedError(StreamCmdError):
    """The process ran but exited with a non-zero code.

    Attributes:
        argv: Command line
        cwd: Working directory
        exit_code: Process exit code
        stderr: Captured stderr (synchronous mode only, empty when streamed)
    """

    def __init__(
        self,
        argv: Sequence[str],
        cwd: str | None,
        exit_code: int,
        stderr: str = "",
    ) -> None:
        self.argv = list(argv)
        self.cwd = cwd
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(
            f"command failed: exitcode={exit_code}, "
            f"cmd='{self.command_line}', workingDirectory={cwd}"
        )

    @property
    def command_line(self) -> str:
        return " ".join(self.argv)
