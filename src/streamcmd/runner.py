"""Command runner facade.

Entry points:
- cmd(): run to completion, capture output, raise on non-zero exit
- run_command(): start a process and return its handle
- run_command_and_stream_output(): stream both outputs to the sink, return exit code
- stream_cmd(): like the above, raising CommandFailedError on non-zero exit

The module-level functions of the same names use a shared default runner.
"""

from __future__ import annotations

import sys
from collections.abc import Mapping, Sequence

from .config import Config, get_config
from .context import ExecutionContext
from .errors import CommandFailedError
from .runtime.decoder import decode_output
from .runtime.joiner import StreamJoiner
from .runtime.launcher import Launcher
from .runtime.process_manager import ProcessHandle
from .types import (
    CommandSpec,
    DecodePolicy,
    LineFilter,
    LineTransform,
    PipelineConfig,
    RunResult,
)

__all__ = [
    "CommandRunner",
    "cmd",
    "run_command",
    "run_command_and_stream_output",
    "stream_cmd",
]


class CommandRunner:
    """Run commands synchronously or with live output streaming.

    Example:
        runner = CommandRunner()
        result = runner.cmd(["git", "rev-parse", "HEAD"], cwd="/repo")

        await runner.stream_cmd(
            ["make", "test"],
            cwd="/repo",
            prefix="[make] ",
            filter=r"error|warning",
        )
    """

    def __init__(
        self,
        context: ExecutionContext | None = None,
        config: Config | None = None,
    ) -> None:
        self.context = context or ExecutionContext()
        self.config = config or get_config()
        self.launcher = Launcher(
            self.context.process_manager,
            self.context.fs,
            self.context.sink,
        )

    def cmd(
        self,
        argv: Sequence[str],
        *,
        cwd: str | None = ".",
        env: Mapping[str, str] | None = None,
        silent: bool = True,
    ) -> RunResult:
        """Run ``argv`` to completion and return its captured output.

        If ``silent`` is False, captured stdout is echoed to sys.stdout.
        On failure, captured stderr is echoed to sys.stderr.

        Raises:
            LaunchError: If the process could not be started
            CommandFailedError: If the exit code is non-zero
        """
        spec = CommandSpec(argv, cwd=cwd, env=env, silent=silent)
        completed = self.launcher.run_sync(spec)
        decode_errors = self.config.decode_errors
        stdout = decode_output(completed.stdout or b"", stream_name="stdout", errors=decode_errors)
        stderr = decode_output(completed.stderr or b"", stream_name="stderr", errors=decode_errors)

        if not spec.silent:
            sys.stdout.write(stdout)
            sys.stdout.flush()

        if completed.returncode != 0:
            sys.stderr.write(stderr)
            sys.stderr.flush()
            raise CommandFailedError(spec.argv, spec.cwd, completed.returncode, stderr)

        return RunResult(exit_code=completed.returncode, stdout=stdout, stderr=stderr)

    async def run_command(
        self,
        argv: Sequence[str],
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ProcessHandle:
        """Start ``argv`` in the background. Completes once the process has started.

        Raises:
            LaunchError: If the process could not be started
        """
        return await self.launcher.launch(CommandSpec(argv, cwd=cwd, env=env))

    async def run_command_and_stream_output(
        self,
        argv: Sequence[str],
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
        prefix: str = "",
        trace: bool = False,
        filter: LineFilter | str | None = None,
        transform: LineTransform | None = None,
        decode_errors: DecodePolicy | None = None,
    ) -> int:
        """Stream stdout/stderr of ``argv`` to the sink and return the exit code.

        Lines not matching ``filter`` are removed. Lines that pass are given
        to ``transform``, which returns Keep(value), or DROP or None to drop.

        Raises:
            LaunchError: If the process could not be started
            DecodeError: On malformed output under the strict policy
        """
        pipeline_config = PipelineConfig(
            filter=filter,
            transform=transform,
            prefix=prefix,
            trace=trace,
            decode_errors=decode_errors,
        )
        handle = await self.run_command(argv, cwd=cwd, env=env)
        joiner = StreamJoiner(
            pipeline_config,
            self.context.sink,
            decode_errors=self.config.decode_errors,
            chunk_size=self.config.chunk_size,
        )
        return await joiner.join(handle)

    async def stream_cmd(
        self,
        argv: Sequence[str],
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
        prefix: str = "",
        trace: bool = False,
        filter: LineFilter | str | None = None,
        transform: LineTransform | None = None,
        decode_errors: DecodePolicy | None = None,
    ) -> None:
        """Stream ``argv`` like run_command_and_stream_output().

        Raises:
            LaunchError: If the process could not be started
            DecodeError: On malformed output under the strict policy
            CommandFailedError: If the exit code is non-zero
        """
        exit_code = await self.run_command_and_stream_output(
            argv,
            cwd=cwd,
            env=env,
            prefix=prefix,
            trace=trace,
            filter=filter,
            transform=transform,
            decode_errors=decode_errors,
        )
        if exit_code != 0:
            raise CommandFailedError(argv, cwd, exit_code)


_default_runner: CommandRunner | None = None


def get_default_runner() -> CommandRunner:
    """Return the shared runner backed by real processes."""
    global _default_runner
    if _default_runner is None:
        _default_runner = CommandRunner()
    return _default_runner


def cmd(argv: Sequence[str], **kwargs) -> RunResult:
    return get_default_runner().cmd(argv, **kwargs)


async def run_command(argv: Sequence[str], **kwargs) -> ProcessHandle:
    return await get_default_runner().run_command(argv, **kwargs)


async def run_command_and_stream_output(argv: Sequence[str], **kwargs) -> int:
    return await get_default_runner().run_command_and_stream_output(argv, **kwargs)


async def stream_cmd(argv: Sequence[str], **kwargs) -> None:
    await get_default_runner().stream_cmd(argv, **kwargs)
