"""Constrained type aliases for decode-time validation.

msgspec checks these constraints whenever a struct that uses them is built
through `msgspec.convert` or decoded from JSON/MessagePack, so a bad option
is rejected where it is loaded rather than deep inside a read loop.

Usage:
    >>> import msgspec
    >>> from textlayers.types import ChunkSize
    >>>
    >>> class ReaderOptions(msgspec.Struct):
    ...     chunk_size: ChunkSize
    >>>
    >>> msgspec.convert({'chunk_size': 0}, ReaderOptions)
    # ValidationError: Expected `int` >= 1 - at `$.chunk_size`
"""

from __future__ import annotations

from typing import Annotated, Any, TypeVar

import msgspec

__all__ = [
    'BufferSize',
    'ChunkSize',
    'CodecName',
    'Codepoint',
    'Octet',
    'check',
]

T = TypeVar('T')

# -----------------------------------------------------------------------------
# Element Ranges
# -----------------------------------------------------------------------------

Codepoint = Annotated[int, msgspec.Meta(ge=0, le=0x10FFFF)]
"""One element of a Character-domain value."""

Octet = Annotated[int, msgspec.Meta(ge=0, le=0xFF)]
"""One element of an Octet-domain value."""

# -----------------------------------------------------------------------------
# Stream Sizes
# -----------------------------------------------------------------------------

ChunkSize = Annotated[int, msgspec.Meta(ge=1, le=16 * 1024 * 1024)]
"""Bytes requested from a channel per read.

Valid range: 1 byte to 16 MiB. One-byte chunks are legal and are what the
streaming tests use to split every multi-byte sequence.
"""

BufferSize = Annotated[int, msgspec.Meta(ge=0, le=64 * 1024 * 1024)]
"""Write buffer threshold in bytes.

Zero means every write goes straight to the channel.
"""

# -----------------------------------------------------------------------------
# Names
# -----------------------------------------------------------------------------

CodecName = Annotated[
    str,
    msgspec.Meta(
        min_length=1,
        max_length=64,
        pattern=r'^[A-Za-z0-9][A-Za-z0-9_ .:-]*$',
    ),
]
"""Registry key as typed by a user, before alias normalisation.

Valid: "utf-8", "UTF8", "latin_1", "ISO-8859-1"
Invalid: "", "-utf8", "utf/8"
"""

# -----------------------------------------------------------------------------
# Checking
# -----------------------------------------------------------------------------


def check(value: Any, type_: type[T] | Any, what: str) -> T:
    """Convert `value` to one of the aliases above, raising ValueError.

    Example:
        >>> check(300, Octet, 'octet')
        # ValueError: invalid octet: Expected `int` <= 255
    """
    try:
        return msgspec.convert(value, type=type_)
    except msgspec.ValidationError as exc:
        msg = f'invalid {what}: {exc}'
        raise ValueError(msg) from exc
