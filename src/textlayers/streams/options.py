"""Per-stack options and statistics.

Line endings, record separators and flushing are explicit fields of the
stack they belong to, set at construction or through the stack's setters.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Literal

import msgspec

from textlayers.types import BufferSize

__all__ = ['StackOptions', 'StackStats']

RecordSeparator = Annotated[str, msgspec.Meta(min_length=1)]


class StackOptions(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    """Options of one layer stack.

    Constraints are enforced by `from_mapping` (and any msgspec decode);
    direct construction trusts its arguments.

    Attributes:
        autoflush: Forward every write to the channel immediately.
        buffer_size: Flush once this many encoded bytes are buffered.
        newline: Program-side line ending. `'\\r\\n'` translates CRLF to LF
            on read and LF to CRLF on write.
        record_separator: What `read_line` splits on; None reads the
            remaining stream as one record.
    """

    autoflush: bool = False
    buffer_size: BufferSize = 8192
    newline: Literal['\n', '\r\n'] = '\n'
    record_separator: RecordSeparator | None = '\n'

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> StackOptions:
        """Build validated options from a plain mapping (e.g. parsed TOML/JSON).

        Raises:
            msgspec.ValidationError: On unknown keys or out-of-range values.
        """
        return msgspec.convert(dict(mapping), cls)


class StackStats(msgspec.Struct, frozen=True, gc=False):
    """Statistics snapshot for a layer stack."""

    bytes_read: int
    bytes_written: int
    values_read: int
    values_written: int
    pending: int
    buffered: int
    closed: bool
