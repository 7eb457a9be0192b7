"""Channel protocol: the raw byte source/sink a layer stack is bound to.

A channel knows nothing about characters. It hands out chunks of whatever
size suits it (one byte is legal) and accepts whole chunks for writing.
Errors are `OSError`s and reach the stack's caller unchanged.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol, runtime_checkable

__all__ = ['Channel']


@runtime_checkable
class Channel(Protocol):
    """Protocol for byte-oriented channels (files, pipes, memory buffers)."""

    @abstractmethod
    def read_chunk(self) -> bytes:
        """Read the next chunk, blocking until one is available.

        Returns:
            Between 1 and the channel's chunk size bytes, or `b''` at EOF.

        Raises:
            OSError: If the underlying source fails.
        """
        ...

    @abstractmethod
    def write_chunk(self, data: bytes) -> None:
        """Write all of `data`.

        Raises:
            OSError: If the underlying sink fails.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the channel.

        Raises:
            OSError: If releasing the underlying resource fails.
        """
        ...
