"""Line decoder: byte stream -> ordered text lines.

Lines end at ``\\n``, ``\\r\\n`` or a lone ``\\r``. Splitting happens on
raw bytes before decoding; none of those bytes can occur inside a UTF-8
multi-byte sequence. A trailing line without a terminator is delivered
as the final line once the stream reports end-of-data.
"""

from __future__ import annotations

import logging
import re
from collections.abc import AsyncIterator

from ..errors import DecodeError
from ..types import DecodePolicy
from .process_manager import ByteStream

__all__ = ["LineDecoder", "decode_output", "split_lines"]

logger = logging.getLogger(__name__)

ENCODING = "utf-8"

_LINE_BREAK = re.compile(rb"\r\n|\r|\n")


def split_lines(buffer: bytes) -> tuple[list[bytes], bytes]:
    """Split complete lines off ``buffer``.

    Returns:
        (complete lines without terminators, unterminated remainder)

    A ``\\r`` at the very end stays in the remainder because the next
    chunk may begin with ``\\n``.
    """
    lines: list[bytes] = []
    start = 0
    for match in _LINE_BREAK.finditer(buffer):
        if match.group() == b"\r" and match.end() == len(buffer):
            break
        lines.append(buffer[start:match.start()])
        start = match.end()
    return lines, buffer[start:]


def decode_output(data: bytes, *, stream_name: str, errors: DecodePolicy = "replace") -> str:
    """Decode a whole captured buffer with the same policy as the line decoder."""
    try:
        return data.decode(ENCODING)
    except UnicodeDecodeError as e:
        if errors == "strict":
            line_number = data.count(b"\n", 0, e.start) + 1
            raise DecodeError(stream_name, line_number, str(e)) from e
        logger.warning(f"Malformed {ENCODING} on {stream_name}, replacing: {e}")
        return data.decode(ENCODING, errors="replace")


class LineDecoder:
    """Lazily yields the decoded lines of one byte stream.

    Under the ``replace`` policy malformed bytes become U+FFFD and the
    first occurrence per stream is logged as a warning. Under ``strict``
    the offending line raises DecodeError.

    Example:
        async for line in LineDecoder(process.stdout, stream_name="stdout"):
            handle(line)
    """

    def __init__(
        self,
        source: ByteStream,
        *,
        stream_name: str,
        errors: DecodePolicy = "replace",
        chunk_size: int = 4096,
    ) -> None:
        self.source = source
        self.stream_name = stream_name
        self.errors = errors
        self.chunk_size = chunk_size
        self.line_count = 0
        self.replaced_count = 0
        self.at_eof = False

    def __aiter__(self) -> AsyncIterator[str]:
        return self._iter_lines()

    async def _iter_lines(self) -> AsyncIterator[str]:
        # Pieces of the current unterminated line; only new chunks are scanned
        pending: list[bytes] = []
        while True:
            chunk = await self.source.read(self.chunk_size)
            if not chunk:
                self.at_eof = True
                break
            if pending and pending[-1].endswith(b"\r"):
                # Held "\r" is rescanned with the chunk that may complete "\r\n"
                held = pending.pop()[:-1]
                if held:
                    pending.append(held)
                chunk = b"\r" + chunk
            lines, remainder = split_lines(chunk)
            if lines and pending:
                pending.append(lines[0])
                lines[0] = b"".join(pending)
                pending = []
            for raw in lines:
                yield self._decode(raw)
            if remainder:
                pending.append(remainder)

        if pending:
            buffer = b"".join(pending)
            # Only a lone "\r" can terminate the remainder here
            yield self._decode(buffer[:-1] if buffer.endswith(b"\r") else buffer)

    async def drain(self) -> int:
        """Read and discard the rest of the stream. Returns bytes discarded."""
        discarded = 0
        while not self.at_eof:
            chunk = await self.source.read(self.chunk_size)
            if not chunk:
                self.at_eof = True
                break
            discarded += len(chunk)
        return discarded

    def _decode(self, raw: bytes) -> str:
        self.line_count += 1
        try:
            return raw.decode(ENCODING)
        except UnicodeDecodeError as e:
            if self.errors == "strict":
                raise DecodeError(self.stream_name, self.line_count, str(e)) from e
            if self.replaced_count == 0:
                logger.warning(
                    f"Malformed {ENCODING} on {self.stream_name} line "
                    f"{self.line_count}, replacing: {e}"
                )
            self.replaced_count += 1
            return raw.decode(ENCODING, errors="replace")
