"""Per-stream filter/transform pipeline.

A line rejected by the filter never reaches the transform or the sink.
A transform returning DROP suppresses the line. Surviving lines are
prefixed and forwarded in stream order.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable

from ..sink import LogSink
from ..types import Drop, Keep, PipelineConfig, Severity

__all__ = ["LinePipeline"]

logger = logging.getLogger(__name__)


class LinePipeline:
    """Filter, transform and forward the lines of one stream.

    Attributes:
        config: Filter/transform/prefix settings
        sink: Destination for surviving lines
        severity: Severity every forwarded line is sent with
        forwarded: Number of lines sent to the sink so far
        dropped: Number of lines removed by the filter or transform
    """

    def __init__(self, config: PipelineConfig, sink: LogSink, severity: Severity) -> None:
        self.config = config
        self.sink = sink
        self.severity = severity
        self.forwarded = 0
        self.dropped = 0

    def process(self, line: str) -> str | None:
        """Return the message to forward for ``line``, or None if dropped."""
        predicate = self.config.predicate
        if predicate is not None and not predicate(line):
            return None

        transform = self.config.transform
        if transform is not None:
            result = transform(line)
            if result is None or isinstance(result, Drop):
                return None
            if isinstance(result, Keep):
                line = result.value
            elif isinstance(result, str):
                line = result
            else:
                raise TypeError(
                    f"line transform must return Keep, DROP, str or None, "
                    f"got {type(result).__name__}"
                )

        return f"{self.config.prefix}{line}"

    def feed(self, line: str) -> None:
        message = self.process(line)
        if message is None:
            self.dropped += 1
            return
        self.sink(message, self.severity)
        self.forwarded += 1

    async def run(self, lines: AsyncIterable[str]) -> int:
        """Consume ``lines`` to the end, forwarding survivors. Returns forwarded count."""
        async for line in lines:
            self.feed(line)
        logger.debug(
            f"Pipeline finished severity={self.severity.value} "
            f"forwarded={self.forwarded} dropped={self.dropped}"
        )
        return self.forwarded
