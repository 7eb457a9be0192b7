"""String values tagged with their domain: characters or octets.

A `CharString` holds codepoints, an `OctetString` holds bytes 0-255, and a
value never changes domain on its own. Crossing domains is either explicit
(`CharString.encode`, `OctetString.decode`) or goes through the coercion
policy, which is where every implicit conversion happens.

Usage:
    >>> from textlayers.values import CharString, OctetString
    >>> len(CharString('þ')), len(OctetString(b'\\xc3\\xbe'))
    (1, 2)
    >>> CharString('Hi') == OctetString(b'Hi')
    False
    >>> CharString('x') + OctetString(b'\\xc3\\xa9')
    CharString(text='xÃ©')
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING, ClassVar

import msgspec

from textlayers.types import Codepoint, Octet, check

if TYPE_CHECKING:
    from textlayers.coercion import CoercionPolicy
    from textlayers.registry import CodecRegistry

__all__ = [
    'CharString',
    'Domain',
    'OctetString',
    'StringValue',
    'as_value',
    'concat',
    'domain_of',
    'from_literal',
    'length',
]


class Domain(Enum):
    """Which kind of elements a string value holds."""

    CHARACTER = 'character'
    OCTET = 'octet'


class CharString(msgspec.Struct, frozen=True, gc=False):
    """Character-domain value: an ordered sequence of codepoints."""

    text: str

    domain: ClassVar[Domain] = Domain.CHARACTER

    def __len__(self) -> int:
        return len(self.text)

    def __add__(self, other: StringValue | str | bytes) -> StringValue:
        return concat(self, as_value(other))

    def __radd__(self, other: str | bytes) -> StringValue:
        return concat(as_value(other), self)

    def __str__(self) -> str:
        return self.text

    def elements(self) -> list[int]:
        """Return the codepoints."""
        return [ord(char) for char in self.text]

    def encode(self, name: str, registry: CodecRegistry | None = None) -> OctetString:
        """Encode into a new Octet value.

        Raises:
            UnknownCodecError: If `name` is not registered.
            UnrepresentableCharacterError: If a codepoint has no encoding.
        """
        from textlayers.registry import get_default_registry

        return (registry or get_default_registry()).encode(name, self.text)


class OctetString(msgspec.Struct, frozen=True, gc=False):
    """Octet-domain value: an ordered sequence of bytes."""

    data: bytes

    domain: ClassVar[Domain] = Domain.OCTET

    def __len__(self) -> int:
        return len(self.data)

    def __add__(self, other: StringValue | str | bytes) -> StringValue:
        return concat(self, as_value(other))

    def __radd__(self, other: str | bytes) -> StringValue:
        return concat(as_value(other), self)

    def __bytes__(self) -> bytes:
        return self.data

    def elements(self) -> list[int]:
        """Return the byte values."""
        return list(self.data)

    def decode(self, name: str, registry: CodecRegistry | None = None) -> CharString:
        """Decode into a new Character value.

        Raises:
            UnknownCodecError: If `name` is not registered.
            MalformedInputError: At the first invalid or incomplete sequence.
        """
        from textlayers.registry import get_default_registry

        return (registry or get_default_registry()).decode(name, self.data)


StringValue = CharString | OctetString
"""Either domain of string value."""


def _domain(domain: Domain | str) -> Domain:
    if isinstance(domain, Domain):
        return domain
    return Domain(domain.lower())


def from_literal(source: str | bytes | bytearray | Iterable[int], domain: Domain | str) -> StringValue:
    """Build a value of `domain` from literal elements.

    Only element ranges are checked: codepoints 0..0x10FFFF for characters,
    0..255 for octets. A `str` given for the Octet domain contributes its
    codepoints as byte values; `bytes` given for the Character domain
    contribute their byte values as codepoints.

    Raises:
        ValueError: If an element is out of range for the domain.

    Example:
        >>> from_literal([72, 105], 'octet')
        OctetString(data=b'Hi')
    """
    target = _domain(domain)
    if target is Domain.CHARACTER:
        if isinstance(source, str):
            return CharString(source)
        if isinstance(source, (bytes, bytearray)):
            return CharString(bytes(source).decode('latin-1'))
        return CharString(''.join(chr(cp) for cp in check(list(source), list[Codepoint], 'codepoints')))
    if isinstance(source, (bytes, bytearray)):
        return OctetString(bytes(source))
    if isinstance(source, str):
        source = [ord(char) for char in source]
    return OctetString(bytes(check(list(source), list[Octet], 'octets')))


def as_value(obj: StringValue | str | bytes | bytearray) -> StringValue:
    """Wrap a host `str`/`bytes` as a Character/Octet value; values pass through."""
    if isinstance(obj, (CharString, OctetString)):
        return obj
    if isinstance(obj, str):
        return CharString(obj)
    if isinstance(obj, (bytes, bytearray)):
        return OctetString(bytes(obj))
    msg = f'expected a string value, str or bytes, got {type(obj).__name__}'
    raise TypeError(msg)


def concat(a: StringValue, b: StringValue, policy: CoercionPolicy | None = None) -> StringValue:
    """Concatenate two values.

    Same-domain operands append element-wise and keep their domain. Mixed
    operands go through the coercion policy (the default one unless given).
    """
    if isinstance(a, CharString) and isinstance(b, CharString):
        return CharString(a.text + b.text)
    if isinstance(a, OctetString) and isinstance(b, OctetString):
        return OctetString(a.data + b.data)
    if policy is None:
        from textlayers.coercion import get_default_policy

        policy = get_default_policy()
    return policy.concat(a, b)


def length(value: StringValue) -> int:
    """Element count in the value's own domain."""
    return len(value)


def domain_of(value: StringValue) -> Domain:
    return value.domain
