"""Dual-stream joiner.

Runs the stdout and stderr pipelines of one process as two concurrent
tasks, waits for both to reach end-of-stream, and only then reads the
exit code.

Key design points:
- Both streams are drained from the start; reading them one after the
  other can deadlock when the child fills the pipe nobody is reading
- Task failures are captured, not raised, so the sibling task still runs
  to completion and no output already in flight is lost
- A task whose pipeline failed keeps reading its stream (discarding the
  bytes) so the child never blocks on a full pipe
- The exit code is read after the barrier, so every line the child wrote
  has reached the sink before the caller sees completion
- If the awaiting task is torn down, the child is terminated under a
  shielded cancel scope
"""

from __future__ import annotations

import logging

import anyio

from ..sink import LogSink
from ..types import DecodePolicy, PipelineConfig, Severity
from .decoder import LineDecoder
from .pipeline import LinePipeline
from .process_manager import ByteStream, ProcessHandle

__all__ = ["StreamJoiner"]

logger = logging.getLogger(__name__)


class StreamJoiner:
    """Join both output pipelines of a process, then resolve its exit code.

    Example:
        joiner = StreamJoiner(PipelineConfig(prefix="[build] "), sink)
        exit_code = await joiner.join(handle)
    """

    def __init__(
        self,
        config: PipelineConfig,
        sink: LogSink,
        *,
        decode_errors: DecodePolicy = "replace",
        chunk_size: int = 4096,
    ) -> None:
        self.config = config
        self.sink = sink
        self.decode_errors = config.decode_errors or decode_errors
        self.chunk_size = chunk_size
        self.stdout_pipeline = LinePipeline(
            config, sink, Severity.TRACE if config.trace else Severity.STATUS
        )
        self.stderr_pipeline = LinePipeline(config, sink, Severity.ERROR)
        self._joined = False

    async def join(self, handle: ProcessHandle) -> int:
        """Drain both streams concurrently and return the exit code.

        Raises:
            DecodeError: If a stream failed strict decoding (after both drained)
            RuntimeError: If this joiner or the handle's streams were already used
        """
        if self._joined:
            raise RuntimeError("StreamJoiner.join() may only be called once")
        self._joined = True

        stdout, stderr = handle.claim_streams()
        failures: list[Exception] = []

        try:
            async with anyio.create_task_group() as tg:
                tg.start_soon(self._drain, "stdout", stdout, self.stdout_pipeline, failures)
                tg.start_soon(self._drain, "stderr", stderr, self.stderr_pipeline, failures)

            # Both pipelines have seen end-of-stream
            exit_code = await handle.wait()
        except BaseException:
            with anyio.CancelScope(shield=True):
                await handle.terminate()
            raise

        if failures:
            raise failures[0]
        return exit_code

    async def _drain(
        self,
        stream_name: str,
        source: ByteStream,
        pipeline: LinePipeline,
        failures: list[Exception],
    ) -> None:
        decoder = LineDecoder(
            source,
            stream_name=stream_name,
            errors=self.decode_errors,
            chunk_size=self.chunk_size,
        )
        try:
            await pipeline.run(decoder)
        except Exception as e:
            failures.append(e)
            # Keep reading so the child does not block on a full pipe
            discarded = await decoder.drain()
            logger.debug(
                f"{stream_name} pipeline failed after {decoder.line_count} lines, "
                f"discarded {discarded} bytes: {e}"
            )
