"""LineDecoder: reassembles newline-delimited text from raw byte chunks."""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator


class LineDecoder:
    """Splits a byte stream into complete text lines.

    Chunks may break anywhere, including in the middle of a multi-byte
    character. Bytes are only decoded once a whole line has been
    reassembled, so the output does not depend on how the input was chunked.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding
        self._buffer = bytearray()

    def feed(self, chunk: bytes) -> list[str]:
        """Append *chunk* and return every line it completed."""
        if not chunk:
            return []
        self._buffer.extend(chunk)
        if b"\n" not in chunk:
            return []

        *complete, rest = self._buffer.split(b"\n")
        self._buffer = bytearray(rest)
        return [self._decode(segment) for segment in complete]

    def flush(self) -> list[str]:
        """Return the unterminated tail, if any, and reset."""
        if not self._buffer:
            return []
        tail = self._decode(self._buffer)
        self._buffer = bytearray()
        return [tail]

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet part of a complete line."""
        return len(self._buffer)

    def _decode(self, segment: bytes | bytearray) -> str:
        if segment.endswith(b"\r"):
            segment = segment[:-1]
        return bytes(segment).decode(self._encoding, errors="replace")


async def iter_lines(
    chunks: AsyncIterable[bytes], encoding: str = "utf-8",
) -> AsyncIterator[str]:
    """Yield complete lines from an async source of byte chunks."""
    decoder = LineDecoder(encoding)
    async for chunk in chunks:
        for line in decoder.feed(chunk):
            yield line
    for line in decoder.flush():
        yield line
