"""Codec registry: encoding names mapped to pure decode/encode functions.

A `Codec` pairs a `decode_fn` (bytes -> `DecodeResult`) with an `encode_fn`
(str -> bytes). Decoding never raises inside the codec: it reports how far it
got and why it stopped, so streaming readers can tell a sequence cut off by a
chunk boundary (`INCOMPLETE`) from one that is simply invalid (`MALFORMED`).

Registries are ordinary objects. `create_default_registry()` builds one with
the built-in codecs that callers may extend and freeze; `get_default_registry()`
returns a shared, already-frozen instance used by the free functions below.

Usage:
    >>> from textlayers.registry import get_default_registry
    >>> registry = get_default_registry()
    >>> registry.encode('utf-8', 'þ').data
    b'\\xc3\\xbe'
    >>> registry.decode_partial('utf-8', b'\\xc3').status
    <DecodeStatus.INCOMPLETE: 'incomplete'>
"""

from __future__ import annotations

import codecs
import threading
from collections.abc import Callable, Iterable
from enum import Enum

import msgspec

from textlayers._logging import get_logger
from textlayers.errors import (
    MalformedInput,
    RegistryFrozenError,
    UnknownCodecError,
    UnrepresentableCharacterError,
)
from textlayers.types import CodecName, check
from textlayers.values import CharString, OctetString

__all__ = [
    'Codec',
    'CodecRegistry',
    'DecodeResult',
    'DecodeStatus',
    'create_default_registry',
    'decode',
    'encode',
    'get_default_registry',
    'lookup',
    'normalize_name',
    'python_codec',
]

logger = get_logger(__name__)


class DecodeStatus(Enum):
    """Why a decode call stopped."""

    COMPLETE = 'complete'
    """Every input byte was decoded."""

    INCOMPLETE = 'incomplete'
    """Input ends inside a multi-byte sequence; more bytes may complete it."""

    MALFORMED = 'malformed'
    """Input contains a sequence that is invalid for the codec."""


class DecodeResult(msgspec.Struct, frozen=True, gc=False):
    """Outcome of decoding one buffer.

    Attributes:
        text: The successfully decoded prefix.
        consumed: Input bytes accounted for by `text`. For a malformed buffer
            this is the byte offset of the failure.
        status: Why decoding stopped.
        error: Marker carrying the offset when status is not COMPLETE.
    """

    text: str
    consumed: int
    status: DecodeStatus = DecodeStatus.COMPLETE
    error: MalformedInput | None = None

    @property
    def ok(self) -> bool:
        return self.status is DecodeStatus.COMPLETE


DecodeFn = Callable[[bytes], DecodeResult]
EncodeFn = Callable[[str], bytes]


class Codec(msgspec.Struct, frozen=True):
    """A named transcoding scheme.

    Invariant: `encode_fn(decode_fn(b).text) == b` for every `b` that
    `decode_fn` accepts completely.

    Attributes:
        name: Canonical (normalised) registry key.
        decode_fn: bytes -> DecodeResult; must not raise on bad input.
        encode_fn: str -> bytes; raises UnrepresentableCharacterError.
        max_bytes_per_char: Longest encoded form of one codepoint.
        aliases: Normalised alternative names.
    """

    name: str
    decode_fn: DecodeFn
    encode_fn: EncodeFn
    max_bytes_per_char: int = 4
    aliases: tuple[str, ...] = ()

    def decode(self, data: bytes | bytearray | memoryview) -> DecodeResult:
        return self.decode_fn(bytes(data))

    def encode(self, text: str) -> bytes:
        return self.encode_fn(text)


def normalize_name(name: str) -> str:
    """Normalise an encoding name: case-insensitive, `_`/space/`-` equivalent.

    Example:
        >>> normalize_name(' Latin_1 ')
        'latin-1'
    """
    return '-'.join(name.strip().lower().replace('_', ' ').replace('-', ' ').split())


def python_codec(
    name: str,
    python_name: str | None = None,
    *,
    max_bytes_per_char: int = 4,
    aliases: Iterable[str] = (),
) -> Codec:
    """Build a Codec backed by one of the interpreter's strict codecs.

    Decoding runs a fresh incremental decoder with `final=False`: bytes it
    holds back at the end are an incomplete sequence, an exception is an
    invalid one.

    Args:
        name: Registry name for the codec.
        python_name: Name understood by the `codecs` module, if different.
        max_bytes_per_char: Longest encoded form of one codepoint.
        aliases: Alternative names.

    Returns:
        The Codec, not yet registered anywhere.
    """
    canonical = normalize_name(name)
    target = python_name or canonical

    def decode_fn(data: bytes) -> DecodeResult:
        decoder = codecs.getincrementaldecoder(target)('strict')
        try:
            text = decoder.decode(data, final=False)
        except UnicodeDecodeError as exc:
            prefix = data[: exc.start].decode(target)
            return DecodeResult(prefix, exc.start, DecodeStatus.MALFORMED, MalformedInput(canonical, exc.start))
        held, _ = decoder.getstate()
        if held:
            consumed = len(data) - len(held)
            marker = MalformedInput(canonical, consumed, incomplete=True)
            return DecodeResult(text, consumed, DecodeStatus.INCOMPLETE, marker)
        return DecodeResult(text, len(data))

    def encode_fn(text: str) -> bytes:
        try:
            return text.encode(target)
        except UnicodeEncodeError as exc:
            raise UnrepresentableCharacterError(canonical, exc.start, ord(text[exc.start])) from None

    return Codec(
        name=canonical,
        decode_fn=decode_fn,
        encode_fn=encode_fn,
        max_bytes_per_char=max_bytes_per_char,
        aliases=tuple(normalize_name(alias) for alias in aliases),
    )


class CodecRegistry:
    """Name -> Codec mapping with alias resolution and an optional freeze.

    Registration is expected to finish before the registry is shared; after
    `freeze()` further registration raises `RegistryFrozenError`. Lookups
    never mutate, so a frozen registry can be read from any thread.

    Example:
        >>> registry = CodecRegistry()
        >>> codec = registry.add(python_codec('utf-8', aliases=['utf8']))
        >>> registry.lookup('UTF8').name
        'utf-8'
    """

    __slots__ = ('_aliases', '_codecs', '_frozen')

    def __init__(self) -> None:
        self._codecs: dict[str, Codec] = {}
        self._aliases: dict[str, str] = {}
        self._frozen = False

    # --- Registration ---

    def register(
        self,
        name: str,
        decode_fn: DecodeFn,
        encode_fn: EncodeFn,
        *,
        max_bytes_per_char: int = 4,
        aliases: Iterable[str] = (),
    ) -> Codec:
        """Insert or replace the codec for `name`; the last writer wins.

        A name that is already an alias replaces the codec it points to.

        Raises:
            ValueError: If `name` is not a valid codec name.
            RegistryFrozenError: If the registry has been frozen.
        """
        codec = Codec(
            name=check(name, CodecName, 'codec name'),
            decode_fn=decode_fn,
            encode_fn=encode_fn,
            max_bytes_per_char=max_bytes_per_char,
            aliases=tuple(normalize_name(alias) for alias in aliases),
        )
        return self.add(codec)

    def add(self, codec: Codec) -> Codec:
        """Register a prebuilt Codec under its name and aliases.

        The name is normalised and resolved through existing aliases first, so
        adding `'UTF8'` replaces the `utf-8` codec. Returns the codec as stored.
        """
        if self._frozen:
            raise RegistryFrozenError(codec.name)
        name = self.resolve(codec.name)
        if name != codec.name:
            codec = msgspec.structs.replace(codec, name=name)
        replaced = name in self._codecs
        self._codecs[name] = codec
        for alias in codec.aliases:
            if alias != name:
                self._aliases[alias] = name
        logger.debug('codec_registered', codec=name, aliases=list(codec.aliases), replaced=replaced)
        return codec

    def freeze(self) -> None:
        """Refuse any further registration."""
        self._frozen = True
        logger.debug('codec_registry_frozen', codecs=self.names())

    @property
    def frozen(self) -> bool:
        return self._frozen

    # --- Lookup ---

    def resolve(self, name: str) -> str:
        """Return the canonical key for `name` (it need not be registered)."""
        key = normalize_name(name)
        return self._aliases.get(key, key)

    def get(self, name: str) -> Codec | None:
        return self._codecs.get(self.resolve(name))

    def lookup(self, name: str) -> Codec:
        """Return the codec registered for `name`.

        Raises:
            UnknownCodecError: If no codec matches after alias normalisation.
        """
        codec = self.get(name)
        if codec is None:
            raise UnknownCodecError(name)
        return codec

    def names(self) -> list[str]:
        return sorted(self._codecs)

    def codecs(self) -> list[Codec]:
        return [self._codecs[name] for name in self.names()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __len__(self) -> int:
        return len(self._codecs)

    # --- Transcoding ---

    def decode_partial(self, name: str, data: bytes | bytearray | memoryview) -> DecodeResult:
        """Decode `data`, reporting the prefix and stopping point instead of raising."""
        return self.lookup(name).decode(data)

    def decode(self, name: str, data: bytes | bytearray | memoryview | OctetString) -> CharString:
        """Decode a whole buffer into a Character value.

        Raises:
            UnknownCodecError: If `name` is not registered.
            MalformedInputError: At the first invalid or incomplete sequence;
                the exception carries the offset and the decoded prefix.
        """
        if isinstance(data, OctetString):
            data = data.data
        result = self.decode_partial(name, data)
        if result.error is not None:
            raise result.error.to_exception(prefix=result.text)
        return CharString(result.text)

    def encode(self, name: str, text: str | CharString) -> OctetString:
        """Encode characters into an Octet value.

        Raises:
            UnknownCodecError: If `name` is not registered.
            UnrepresentableCharacterError: With the index of the first codepoint
                the character set cannot represent.
        """
        if isinstance(text, CharString):
            text = text.text
        return OctetString(self.lookup(name).encode(text))


# -----------------------------------------------------------------------------
# Built-in Codecs
# -----------------------------------------------------------------------------

_BUILTIN_CODECS: tuple[tuple[str, int, tuple[str, ...]], ...] = (
    ('utf-8', 4, ('utf8', 'utf-8-strict')),
    ('latin-1', 1, ('latin1', 'iso-8859-1', 'iso8859-1', 'l1')),
    ('ascii', 1, ('us-ascii', 'ansi-x3.4-1968')),
    ('cp1252', 1, ('windows-1252',)),
    ('utf-16-le', 4, ('utf-16le', 'utf16le')),
    ('utf-16-be', 4, ('utf-16be', 'utf16be')),
    ('utf-32-le', 4, ('utf-32le', 'utf32le')),
    ('utf-32-be', 4, ('utf-32be', 'utf32be')),
)


def create_default_registry() -> CodecRegistry:
    """Create an unfrozen registry holding the built-in codecs."""
    registry = CodecRegistry()
    for name, width, aliases in _BUILTIN_CODECS:
        registry.add(python_codec(name, max_bytes_per_char=width, aliases=aliases))
    return registry


# -----------------------------------------------------------------------------
# Module-Level Singleton
# -----------------------------------------------------------------------------

_default_registry: CodecRegistry | None = None
_default_registry_lock = threading.Lock()


def get_default_registry() -> CodecRegistry:
    """Get the shared, frozen registry of built-in codecs.

    Uses double-checked locking for thread-safe lazy initialization.
    """
    global _default_registry  # noqa: PLW0603
    if _default_registry is None:
        with _default_registry_lock:
            if _default_registry is None:
                registry = create_default_registry()
                registry.freeze()
                _default_registry = registry
    return _default_registry


# -----------------------------------------------------------------------------
# Convenience Functions
# -----------------------------------------------------------------------------


def lookup(name: str) -> Codec:
    """Look up a codec in the default registry."""
    return get_default_registry().lookup(name)


def decode(name: str, data: bytes | bytearray | memoryview | OctetString) -> CharString:
    """Decode bytes with a codec from the default registry.

    Example:
        >>> decode('utf-8', b'\\xc3\\xbe').elements()
        [254]
    """
    return get_default_registry().decode(name, data)


def encode(name: str, text: str | CharString) -> OctetString:
    """Encode characters with a codec from the default registry.

    Example:
        >>> encode('utf-8', 'þ').elements()
        [195, 190]
    """
    return get_default_registry().encode(name, text)
