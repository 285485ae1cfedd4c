"""Search a byte pattern in a stream, and read fixed-size slices afterwards."""

from __future__ import annotations

from typing import IO, Union

SEARCH_BUFFER_SIZE = 32 * 1024

_Readable = Union[IO[bytes], "SliceReader"]


class SliceReader:
    """A reader that returns some bytes already read, then the rest of a stream."""

    def __init__(self, stream: _Readable, prefix: bytes = b"") -> None:
        self._stream = stream
        self._prefix = bytes(prefix)
        self._pos = 0

    def _take_prefix(self, size: int) -> bytes:
        if size < 0:
            end = len(self._prefix)
        else:
            end = min(len(self._prefix), self._pos + size)
        data = self._prefix[self._pos : end]
        self._pos = end
        return data

    def read(self, size: int | None = -1) -> bytes:
        """Read up to `size` bytes, or everything left when size is negative."""
        if size is None or size < 0:
            head = self._take_prefix(-1)
            rest = self._stream.read()
            return head + (rest or b"")
        out = bytearray(self._take_prefix(size))
        while len(out) < size:
            chunk = self._stream.read(size - len(out))
            if not chunk:
                break
            out += chunk
        return bytes(out)

    def read_slice(self, length: int) -> bytes:
        """Read exactly `length` bytes; raise EOFError when the stream ends first."""
        data = self.read(length)
        if len(data) < length:
            raise EOFError(f"expected {length} bytes, got {len(data)}")
        return data

    def read_byte(self) -> int:
        """Read one byte; raise EOFError at the end of the stream."""
        return self.read_slice(1)[0]


def search_pattern(
    stream: _Readable, pattern: bytes, buffer_size: int = SEARCH_BUFFER_SIZE
) -> SliceReader:
    """Return a reader positioned on the first occurrence of `pattern`.

    The stream is read in chunks of at most `buffer_size` bytes; a pattern that
    spans two chunks is still found. Raises EOFError when the pattern is absent.
    """
    pattern = bytes(pattern)
    if not pattern:
        raise ValueError("empty pattern")
    if buffer_size < len(pattern):
        raise ValueError("buffer smaller than the pattern")
    keep = len(pattern) - 1
    tail = b""
    while True:
        chunk = stream.read(buffer_size - len(tail))
        if not chunk:
            raise EOFError("pattern not found")
        window = tail + chunk
        index = window.find(pattern)
        if index >= 0:
            return SliceReader(stream, prefix=window[index:])
        tail = window[-keep:] if keep else b""