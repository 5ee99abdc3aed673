"""Process manager boundary with subprocess isolation and reliable termination.

streamcmd runtime module v0.1.0

This module provides:
- ProcessManager: the seam through which OS processes are created
- ProcessHandle: one live child process, its two byte streams and exit code
- LocalProcessManager / LocalProcessHandle: asyncio-backed implementations

Key design points:
- POSIX: start_new_session=True to create new process group
- Windows: CREATE_NEW_PROCESS_GROUP for signal isolation
- stdin is DEVNULL so children never inherit the caller's stdin
- Termination targets the process group, not just the main process
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import subprocess
import sys
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from ..config import get_config

__all__ = [
    "ByteStream",
    "ProcessHandle",
    "ProcessManager",
    "LocalProcessHandle",
    "LocalProcessManager",
]

logger = logging.getLogger(__name__)

# Platform detection
IS_WINDOWS = sys.platform == "win32"


class ByteStream(Protocol):
    """Readable byte source; ``read`` returns b"" at end-of-data."""

    async def read(self, n: int = -1) -> bytes: ...


class ProcessHandle(ABC):
    """A started child process.

    The two output streams may be claimed once, by a single joiner, and the
    exit code may be consumed once.
    """

    def __init__(self) -> None:
        self._streams_claimed = False
        self._exit_code_consumed = False

    @property
    @abstractmethod
    def pid(self) -> int | None: ...

    @property
    @abstractmethod
    def stdout(self) -> ByteStream: ...

    @property
    @abstractmethod
    def stderr(self) -> ByteStream: ...

    @property
    @abstractmethod
    def returncode(self) -> int | None:
        """Exit code if the process has already been reaped, else None."""

    @abstractmethod
    async def _wait(self) -> int: ...

    @abstractmethod
    async def terminate(self) -> None:
        """Stop the process if it is still running."""

    def claim_streams(self) -> tuple[ByteStream, ByteStream]:
        """Take exclusive ownership of (stdout, stderr).

        Raises:
            RuntimeError: If the streams were already claimed
        """
        if self._streams_claimed:
            raise RuntimeError(f"output streams of pid={self.pid} already claimed")
        self._streams_claimed = True
        return self.stdout, self.stderr

    async def wait(self) -> int:
        """Wait for termination and return the exit code.

        Raises:
            RuntimeError: If the exit code was already consumed
        """
        if self._exit_code_consumed:
            raise RuntimeError(f"exit code of pid={self.pid} already consumed")
        self._exit_code_consumed = True
        return await self._wait()


class ProcessManager(ABC):
    """Creates OS processes. Substitute a fake to test without real processes."""

    @abstractmethod
    async def start(
        self,
        argv: Sequence[str],
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ProcessHandle:
        """Start a process with stdout/stderr captured as byte streams."""

    @abstractmethod
    def run_sync(
        self,
        argv: Sequence[str],
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> subprocess.CompletedProcess[bytes]:
        """Run a process to completion, capturing stdout and stderr."""


class LocalProcessHandle(ProcessHandle):
    """Handle over an ``asyncio.subprocess.Process``.

    Termination strategy:
    1. Send SIGTERM to the process group (CTRL_BREAK_EVENT on Windows)
    2. Wait up to term_timeout for graceful exit
    3. Send SIGKILL to the process group (kill() on Windows)
    4. Wait up to kill_timeout for forced exit
    """

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        term_timeout: float,
        kill_timeout: float,
    ) -> None:
        super().__init__()
        self._process = process
        self.term_timeout = term_timeout
        self.kill_timeout = kill_timeout

    @property
    def pid(self) -> int | None:
        return self._process.pid

    @property
    def stdout(self) -> ByteStream:
        assert self._process.stdout is not None
        return self._process.stdout

    @property
    def stderr(self) -> ByteStream:
        assert self._process.stderr is not None
        return self._process.stderr

    @property
    def returncode(self) -> int | None:
        return self._process.returncode

    async def _wait(self) -> int:
        returncode = await self._process.wait()
        logger.debug(f"Subprocess completed pid={self.pid} returncode={returncode}")
        return returncode

    async def terminate(self) -> None:
        process = self._process
        if process.returncode is not None:
            return

        pid = process.pid
        logger.debug(f"Terminating subprocess pid={pid}")

        try:
            # Step 1: Graceful termination
            if IS_WINDOWS:
                self._windows_terminate()
            else:
                self._posix_signal(signal.SIGTERM)

            # Step 2: Wait for graceful exit
            try:
                await asyncio.wait_for(process.wait(), timeout=self.term_timeout)
                logger.debug(
                    f"Subprocess terminated gracefully pid={pid} "
                    f"returncode={process.returncode}"
                )
                return
            except asyncio.TimeoutError:
                pass

            # Step 3: Force kill
            logger.debug(f"Force killing subprocess pid={pid}")
            if IS_WINDOWS:
                process.kill()
            else:
                self._posix_signal(signal.SIGKILL)

            # Step 4: Wait for forced exit
            try:
                await asyncio.wait_for(process.wait(), timeout=self.kill_timeout)
                logger.debug(
                    f"Subprocess killed pid={pid} returncode={process.returncode}"
                )
            except asyncio.TimeoutError:
                logger.warning(f"Subprocess did not exit after kill pid={pid}")

        except ProcessLookupError:
            logger.debug(f"Subprocess already exited pid={pid}")
        except OSError as e:
            logger.warning(f"Error terminating subprocess pid={pid}: {e}")

    def _posix_signal(self, signum: int) -> None:
        """Signal the whole process group, falling back to the process."""
        try:
            # pgid equals pid because of start_new_session
            pgid = os.getpgid(self._process.pid)
            os.killpg(pgid, signum)
            logger.debug(f"Sent {signal.Signals(signum).name} to process group pgid={pgid}")
        except ProcessLookupError:
            pass
        except OSError as e:
            logger.debug(f"killpg failed, falling back to direct signal: {e}")
            self._process.send_signal(signum)

    def _windows_terminate(self) -> None:
        try:
            # Works because of CREATE_NEW_PROCESS_GROUP
            os.kill(self._process.pid, signal.CTRL_BREAK_EVENT)
            logger.debug(f"Sent CTRL_BREAK_EVENT to pid={self._process.pid}")
        except (ProcessLookupError, OSError) as e:
            logger.debug(f"CTRL_BREAK_EVENT failed, falling back: {e}")
            self._process.terminate()


@dataclass
class LocalProcessManager(ProcessManager):
    """Starts real OS processes, each isolated in its own session/group."""

    term_timeout: float = field(default_factory=lambda: get_config().term_timeout)
    kill_timeout: float = field(default_factory=lambda: get_config().kill_timeout)

    async def start(
        self,
        argv: Sequence[str],
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ProcessHandle:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            **self._build_subprocess_kwargs(env),
        )
        logger.debug(f"Started subprocess pid={process.pid} argv={argv[0]} cwd={cwd}")
        return LocalProcessHandle(process, self.term_timeout, self.kill_timeout)

    def run_sync(
        self,
        argv: Sequence[str],
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> subprocess.CompletedProcess[bytes]:
        completed = subprocess.run(
            list(argv),
            stdin=subprocess.DEVNULL,
            capture_output=True,
            cwd=cwd,
            check=False,
            **self._build_subprocess_kwargs(env),
        )
        logger.debug(f"Subprocess completed argv={argv[0]} returncode={completed.returncode}")
        return completed

    def _build_subprocess_kwargs(self, env: Mapping[str, str] | None) -> dict[str, Any]:
        """Build platform-specific subprocess kwargs."""
        kwargs: dict[str, Any] = {}

        # None inherits the parent environment
        if env is not None:
            kwargs["env"] = dict(env)

        if IS_WINDOWS:
            kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP
        else:
            # Equivalent to setsid
            kwargs["start_new_session"] = True

        return kwargs
