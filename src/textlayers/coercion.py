"""Coercion policy: what happens when values of different domains meet.

Rules:
    - Character + Octet (either order): the octets are upgraded to characters
      by decoding them as Latin-1, then the operation runs on characters.
    - Octet + Octet: byte-wise, no decoding, result stays octets. Nothing
      checks that both sides share an encoding.
    - Character + Character: unchanged.

Latin-1 maps every byte 0-255 to the codepoint of the same number, so the
upgrade cannot fail. It is also silently wrong whenever the octets were not
Latin-1 to begin with:

    >>> policy = CoercionPolicy(get_default_registry())
    >>> policy.concat(OctetString(b'\\xc3\\xa9'), CharString('x'))
    CharString(text='Ã©x')

That result is the defined behaviour and is kept as is. Each upgrade logs an
`implicit_upgrade` debug event so the places where it happens can be found.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from textlayers._logging import get_logger
from textlayers.registry import CodecRegistry, get_default_registry
from textlayers.values import CharString, OctetString, StringValue, as_value

if TYPE_CHECKING:
    from collections.abc import Iterable

__all__ = [
    'FALLBACK_ENCODING',
    'CoercionPolicy',
    'get_default_policy',
]

logger = get_logger(__name__)

FALLBACK_ENCODING = 'latin-1'
"""Encoding used for every implicit octet -> character upgrade."""


class CoercionPolicy:
    """The single place where implicit domain conversions happen.

    Pure and total: no method raises for any pair of string values. Host
    `str`/`bytes` operands are accepted and wrapped as Character/Octet values.

    Attributes:
        registry: Registry providing the fallback codec.
    """

    __slots__ = ('_fallback', 'registry')

    def __init__(self, registry: CodecRegistry) -> None:
        self.registry = registry
        self._fallback = registry.lookup(FALLBACK_ENCODING)

    def upgrade(self, value: OctetString, *, operation: str = 'upgrade') -> CharString:
        """Reinterpret octets as characters via the fallback encoding."""
        result = self._fallback.decode(value.data)
        logger.debug('implicit_upgrade', operation=operation, encoding=FALLBACK_ENCODING, octets=len(value))
        return CharString(result.text)

    def _unify(self, a: StringValue, b: StringValue, operation: str) -> tuple[StringValue, StringValue]:
        if isinstance(a, CharString) and isinstance(b, OctetString):
            return a, self.upgrade(b, operation=operation)
        if isinstance(a, OctetString) and isinstance(b, CharString):
            return self.upgrade(a, operation=operation), b
        return a, b

    def concat(self, a: StringValue | str | bytes, b: StringValue | str | bytes) -> StringValue:
        """Concatenate; mixed domains produce characters, octets stay octets."""
        left, right = self._unify(as_value(a), as_value(b), 'concat')
        if isinstance(left, CharString) and isinstance(right, CharString):
            return CharString(left.text + right.text)
        return OctetString(left.data + right.data)  # type: ignore[union-attr]

    def compare(self, a: StringValue | str | bytes, b: StringValue | str | bytes) -> int:
        """String comparison by element value: -1, 0 or 1.

        Unlike `==` on values, this coerces first, so the octets b'\\xe9'
        compare equal to the character 'é'.
        """
        left, right = self._unify(as_value(a), as_value(b), 'compare')
        x, y = left.elements(), right.elements()
        return (x > y) - (x < y)

    def equals(self, a: StringValue | str | bytes, b: StringValue | str | bytes) -> bool:
        return self.compare(a, b) == 0

    def join(self, separator: StringValue | str | bytes, values: Iterable[StringValue | str | bytes]) -> StringValue:
        """Join values with a separator, left to right through `concat`.

        The result is octets only when the separator and every part are octets.
        """
        sep = as_value(separator)
        result: StringValue | None = None
        for value in values:
            result = as_value(value) if result is None else self.concat(self.concat(result, sep), value)
        if result is None:
            return CharString('') if isinstance(sep, CharString) else OctetString(b'')
        return result

    def interpolate(self, *parts: StringValue | str | bytes) -> StringValue:
        """Build a value from template pieces, as string interpolation does.

        Literal template text is Character-domain, so any interpolated octets
        are upgraded:

            >>> policy.interpolate('name=', OctetString(b'caf\\xc3\\xa9'))
            CharString(text='name=cafÃ©')
        """
        result: StringValue = CharString('')
        for part in parts:
            value = as_value(part)
            if isinstance(value, OctetString):
                value = self.upgrade(value, operation='interpolate')
            result = self.concat(result, value)
        return result


# -----------------------------------------------------------------------------
# Module-Level Singleton
# -----------------------------------------------------------------------------

_default_policy: CoercionPolicy | None = None
_default_policy_lock = threading.Lock()


def get_default_policy() -> CoercionPolicy:
    """Get the policy bound to the default registry (used by `+` on values)."""
    global _default_policy  # noqa: PLW0603
    if _default_policy is None:
        with _default_policy_lock:
            if _default_policy is None:
                _default_policy = CoercionPolicy(get_default_registry())
    return _default_policy
