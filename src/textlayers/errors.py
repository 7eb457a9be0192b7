"""Error types: dual struct+exception for marker-returning and raise-based code.

Struct variants are plain data (they travel inside `DecodeResult` as error
markers); exception variants are what raise-based callers see. Each converts
into the other.

Channel failures are not wrapped: an `OSError` raised by a channel reaches the
caller unmodified.
"""

from __future__ import annotations

import msgspec

__all__ = [
    'MalformedInput',
    'MalformedInputError',
    'RegistryFrozen',
    'RegistryFrozenError',
    'StackClosed',
    'StackClosedError',
    'TruncatedStream',
    'TruncatedStreamError',
    'UnknownCodec',
    'UnknownCodecError',
    'UnrepresentableCharacter',
    'UnrepresentableCharacterError',
]


# --- Codec Errors ---


class UnknownCodec(msgspec.Struct, frozen=True, gc=False):
    """No codec registered under a name - struct variant."""

    name: str

    def to_exception(self) -> UnknownCodecError:
        """Convert to exception for raise-based code."""
        return UnknownCodecError(self.name)


class UnknownCodecError(LookupError):
    """No codec registered under a name - exception variant."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown codec: '{name}'")

    def to_struct(self) -> UnknownCodec:
        """Convert to struct for marker-based code."""
        return UnknownCodec(self.name)


class MalformedInput(msgspec.Struct, frozen=True, gc=False):
    """Decoding stopped at a byte offset - struct variant.

    `incomplete` distinguishes a sequence cut off by the end of the buffer
    (more bytes may complete it) from a sequence that can never be valid.
    """

    codec: str
    offset: int
    incomplete: bool = False

    def to_exception(self, prefix: str = '') -> MalformedInputError:
        """Convert to exception for raise-based code."""
        return MalformedInputError(self.codec, self.offset, incomplete=self.incomplete, prefix=prefix)


class MalformedInputError(ValueError):
    """Decoding stopped at a byte offset - exception variant.

    Attributes:
        codec: Canonical codec name.
        offset: Byte offset of the first byte that could not be decoded.
        incomplete: True if the input ended inside a multi-byte sequence.
        prefix: The text decoded before `offset`.
    """

    def __init__(self, codec: str, offset: int, *, incomplete: bool = False, prefix: str = '') -> None:
        self.codec = codec
        self.offset = offset
        self.incomplete = incomplete
        self.prefix = prefix
        kind = 'incomplete sequence' if incomplete else 'invalid sequence'
        super().__init__(f'{codec}: {kind} at byte offset {offset}')

    def to_struct(self) -> MalformedInput:
        """Convert to struct for marker-based code."""
        return MalformedInput(self.codec, self.offset, self.incomplete)


class UnrepresentableCharacter(msgspec.Struct, frozen=True, gc=False):
    """A codepoint has no encoding in a character set - struct variant."""

    codec: str
    index: int
    codepoint: int

    def to_exception(self) -> UnrepresentableCharacterError:
        """Convert to exception for raise-based code."""
        return UnrepresentableCharacterError(self.codec, self.index, self.codepoint)


class UnrepresentableCharacterError(ValueError):
    """A codepoint has no encoding in a character set - exception variant."""

    def __init__(self, codec: str, index: int, codepoint: int) -> None:
        self.codec = codec
        self.index = index
        self.codepoint = codepoint
        super().__init__(f'{codec}: cannot encode U+{codepoint:04X} at index {index}')

    def to_struct(self) -> UnrepresentableCharacter:
        """Convert to struct for marker-based code."""
        return UnrepresentableCharacter(self.codec, self.index, self.codepoint)


class RegistryFrozen(msgspec.Struct, frozen=True, gc=False):
    """Registration attempted after freeze - struct variant."""

    name: str

    def to_exception(self) -> RegistryFrozenError:
        """Convert to exception for raise-based code."""
        return RegistryFrozenError(self.name)


class RegistryFrozenError(RuntimeError):
    """Registration attempted after freeze - exception variant."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Codec registry is frozen; cannot register '{name}'")

    def to_struct(self) -> RegistryFrozen:
        """Convert to struct for marker-based code."""
        return RegistryFrozen(self.name)


# --- Stream Errors ---


class TruncatedStream(msgspec.Struct, frozen=True, gc=False):
    """Channel hit EOF inside a multi-byte sequence - struct variant."""

    codec: str
    pending: int

    def to_exception(self) -> TruncatedStreamError:
        """Convert to exception for raise-based code."""
        return TruncatedStreamError(self.codec, self.pending)


class TruncatedStreamError(EOFError):
    """Channel hit EOF inside a multi-byte sequence - exception variant."""

    def __init__(self, codec: str, pending: int) -> None:
        self.codec = codec
        self.pending = pending
        super().__init__(f'{codec}: stream ended with {pending} byte(s) of an incomplete sequence')

    def to_struct(self) -> TruncatedStream:
        """Convert to struct for marker-based code."""
        return TruncatedStream(self.codec, self.pending)


class StackClosed(msgspec.Struct, frozen=True, gc=False):
    """Layer stack has been closed - struct variant."""

    reason: str | None = None

    def to_exception(self) -> StackClosedError:
        """Convert to exception for raise-based code."""
        return StackClosedError(self.reason)


class StackClosedError(ValueError):
    """Layer stack has been closed - exception variant."""

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason
        super().__init__(reason or 'Stack closed')

    def to_struct(self) -> StackClosed:
        """Convert to struct for marker-based code."""
        return StackClosed(self.reason)
