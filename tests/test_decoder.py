"""LineDecoder unit tests.

Test coverage:
- Line splitting on \\n, \\r\\n and lone \\r, across chunk boundaries
- Trailing unterminated line delivery
- Replace and strict decode policies
- Draining the rest of a stream after a failure
"""

from __future__ import annotations

import logging

import pytest

from fake_process import FakeByteStream
from streamcmd.errors import DecodeError
from streamcmd.runtime.decoder import LineDecoder, decode_output, split_lines


async def collect(decoder: LineDecoder) -> list[str]:
    return [line async for line in decoder]


# =============================================================================
# split_lines
# =============================================================================


class TestSplitLines:
    """Test the byte-level splitter."""

    def test_complete_lines(self):
        assert split_lines(b"a\nb\n") == ([b"a", b"b"], b"")

    def test_remainder_kept(self):
        assert split_lines(b"a\nbc") == ([b"a"], b"bc")

    def test_mixed_terminators(self):
        assert split_lines(b"a\r\nb\rc\nd") == ([b"a", b"b", b"c"], b"d")

    def test_trailing_cr_held_back(self):
        """A final \\r may be the first half of \\r\\n."""
        assert split_lines(b"a\r") == ([], b"a\r")

    def test_empty_lines(self):
        assert split_lines(b"\n\n") == ([b"", b""], b"")


# =============================================================================
# LineDecoder
# =============================================================================


class TestLineDecoder:
    """Test decoding a byte stream into lines."""

    @pytest.mark.asyncio
    async def test_lines_in_order(self):
        stream = FakeByteStream([b"one\ntwo\n", b"three\n"])
        decoder = LineDecoder(stream, stream_name="stdout")

        assert await collect(decoder) == ["one", "two", "three"]
        assert decoder.line_count == 3
        assert decoder.at_eof

    @pytest.mark.asyncio
    async def test_line_split_across_chunks(self):
        stream = FakeByteStream([b"hel", b"lo\nwor", b"ld\n"])

        assert await collect(LineDecoder(stream, stream_name="stdout")) == ["hello", "world"]

    @pytest.mark.asyncio
    async def test_crlf_split_across_chunks(self):
        """\\r\\n split over two reads yields a single line break."""
        stream = FakeByteStream([b"a\r", b"\nb\r\n"])

        assert await collect(LineDecoder(stream, stream_name="stdout")) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_lone_cr_is_a_line_break(self):
        stream = FakeByteStream([b"progress 1\rprogress 2\r", b"done\n"])

        assert await collect(LineDecoder(stream, stream_name="stdout")) == [
            "progress 1",
            "progress 2",
            "done",
        ]

    @pytest.mark.asyncio
    async def test_trailing_partial_line_delivered(self):
        stream = FakeByteStream([b"first\nlast"])

        assert await collect(LineDecoder(stream, stream_name="stdout")) == ["first", "last"]

    @pytest.mark.asyncio
    async def test_trailing_cr_at_eof(self):
        stream = FakeByteStream([b"first\r"])

        assert await collect(LineDecoder(stream, stream_name="stdout")) == ["first"]

    @pytest.mark.asyncio
    async def test_empty_stream(self):
        decoder = LineDecoder(FakeByteStream([]), stream_name="stderr")

        assert await collect(decoder) == []
        assert decoder.at_eof

    @pytest.mark.asyncio
    async def test_multibyte_character_split_across_chunks(self):
        data = "héllo wörld\n".encode()
        stream = FakeByteStream([data[:2], data[2:8], data[8:]])

        assert await collect(LineDecoder(stream, stream_name="stdout")) == ["héllo wörld"]

    @pytest.mark.asyncio
    async def test_cr_held_across_several_chunks(self):
        stream = FakeByteStream([b"ab", b"c\r", b"\n", b"d\r", b"e"])

        assert await collect(LineDecoder(stream, stream_name="stdout")) == ["abc", "d", "e"]

    @pytest.mark.asyncio
    @pytest.mark.timeout(10)
    async def test_long_line_spanning_many_chunks(self):
        """An 8 MiB line arriving in 4 KiB reads is assembled in linear time."""
        size = 8 * 1024 * 1024
        chunks = [b"x" * 4096 for _ in range(size // 4096)]
        stream = FakeByteStream(chunks + [b"\nafter"])
        decoder = LineDecoder(stream, stream_name="stdout")

        lines = await collect(decoder)

        assert [len(line) for line in lines] == [size, 5]
        assert lines[1] == "after"

    @pytest.mark.asyncio
    @pytest.mark.timeout(10)
    async def test_long_unterminated_line_at_eof(self):
        chunks = [b"y" * 4096 for _ in range(1024)]

        lines = await collect(LineDecoder(FakeByteStream(chunks), stream_name="stderr"))

        assert len(lines) == 1
        assert len(lines[0]) == 4 * 1024 * 1024

    @pytest.mark.asyncio
    async def test_chunk_size_respected(self):
        stream = FakeByteStream([b"abcdef\n"])
        decoder = LineDecoder(stream, stream_name="stdout", chunk_size=2)

        assert await collect(decoder) == ["abcdef"]
        # 4 data reads + 1 end-of-data read
        assert stream.reads == 5


class TestDecodePolicy:
    """Test malformed byte handling."""

    @pytest.mark.asyncio
    async def test_replace_substitutes_and_warns_once(self, caplog):
        stream = FakeByteStream([b"ok\n", b"bad\xff\n", b"worse\xfe\n"])
        decoder = LineDecoder(stream, stream_name="stderr", errors="replace")

        with caplog.at_level(logging.WARNING, logger="streamcmd.runtime.decoder"):
            lines = await collect(decoder)

        assert lines == ["ok", "bad�", "worse�"]
        assert decoder.replaced_count == 2
        warnings = [r for r in caplog.records if "Malformed" in r.getMessage()]
        assert len(warnings) == 1
        assert "stderr line 2" in warnings[0].getMessage()

    @pytest.mark.asyncio
    async def test_strict_raises_with_line_number(self):
        stream = FakeByteStream([b"ok\nbad\xff\n"])
        decoder = LineDecoder(stream, stream_name="stdout", errors="strict")

        with pytest.raises(DecodeError) as exc_info:
            await collect(decoder)

        assert exc_info.value.stream_name == "stdout"
        assert exc_info.value.line_number == 2
        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)

    @pytest.mark.asyncio
    async def test_drain_after_failure_reads_to_eof(self):
        stream = FakeByteStream([b"bad\xff\n", b"more\n", b"even more\n"])
        decoder = LineDecoder(stream, stream_name="stdout", errors="strict")

        with pytest.raises(DecodeError):
            await collect(decoder)
        discarded = await decoder.drain()

        assert discarded == len(b"more\n") + len(b"even more\n")
        assert decoder.at_eof
        assert "stream:eof" in stream.events


class TestDecodeOutput:
    """Test whole-buffer decoding used by the synchronous runner."""

    def test_valid(self):
        assert decode_output(b"hello\n", stream_name="stdout") == "hello\n"

    def test_replace(self, caplog):
        with caplog.at_level(logging.WARNING, logger="streamcmd.runtime.decoder"):
            assert decode_output(b"a\xffb", stream_name="stdout") == "a�b"
        assert any("Malformed" in r.getMessage() for r in caplog.records)

    def test_strict_reports_line(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_output(b"one\ntwo\n\xff", stream_name="stderr", errors="strict")
        assert exc_info.value.line_number == 3
