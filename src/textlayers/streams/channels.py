"""Channel implementations: in-memory buffers and binary file objects."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, BinaryIO

from textlayers._config import get_config
from textlayers.types import ChunkSize, check

if TYPE_CHECKING:
    from collections.abc import Iterable

__all__ = ['FileChannel', 'MemoryChannel']


def _chunk_size(chunk_size: int | None) -> int:
    if chunk_size is None:
        return get_config().chunk_size
    return check(chunk_size, ChunkSize, 'chunk_size')


class MemoryChannel:
    """In-memory channel: a scripted read side and a recording write side.

    Reads hand out `initial` in chunks of at most `chunk_size` bytes, or the
    exact chunks given to `from_chunks`, then signal EOF. Writes are collected
    and available from `getvalue()`, also after `close()`.

    Example:
        ```python
        channel = MemoryChannel(b'\\xc3\\xbe', chunk_size=1)
        channel.read_chunk()  # b'\\xc3'
        channel.read_chunk()  # b'\\xbe'
        channel.read_chunk()  # b''
        ```
    """

    def __init__(self, initial: bytes = b'', *, chunk_size: int | None = None) -> None:
        size = _chunk_size(chunk_size)
        self._chunks: deque[bytes] = deque(initial[i : i + size] for i in range(0, len(initial), size))
        self._written = bytearray()
        self._writes = 0
        self._closed = False

    @classmethod
    def from_chunks(cls, chunks: Iterable[bytes]) -> MemoryChannel:
        """Create a channel whose reads return exactly `chunks` (empty ones skipped)."""
        channel = cls()
        channel._chunks.extend(bytes(chunk) for chunk in chunks if chunk)
        return channel

    def _check_open(self) -> None:
        if self._closed:
            msg = 'I/O operation on closed channel'
            raise ValueError(msg)

    def read_chunk(self) -> bytes:
        self._check_open()
        if self._chunks:
            return self._chunks.popleft()
        return b''

    def write_chunk(self, data: bytes) -> None:
        self._check_open()
        self._written += data
        self._writes += 1

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def write_count(self) -> int:
        """Number of `write_chunk` calls received."""
        return self._writes

    def getvalue(self) -> bytes:
        """Return everything written so far."""
        return bytes(self._written)


class FileChannel:
    """Channel over a binary file object (`open(path, 'rb')`, `sys.stdin.buffer`, ...).

    The channel does not open paths; it adapts an object the host already
    opened. `close()` closes that object unless `close_file` is false, in
    which case it is only flushed (useful for the standard streams).
    """

    def __init__(self, file: BinaryIO, *, chunk_size: int | None = None, close_file: bool = True) -> None:
        self._file = file
        self._read = getattr(file, 'read1', file.read)
        self._chunk_size = _chunk_size(chunk_size)
        self._close_file = close_file

    def read_chunk(self) -> bytes:
        data = self._read(self._chunk_size)
        return data or b''

    def write_chunk(self, data: bytes) -> None:
        self._file.write(data)

    def close(self) -> None:
        if self._close_file:
            self._file.close()
        elif hasattr(self._file, 'flush'):
            self._file.flush()

    @property
    def name(self) -> str:
        return str(getattr(self._file, 'name', '<file>'))
