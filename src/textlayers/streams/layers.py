"""Layer descriptors and the open-mode / layer-spec mini language.

A layer spec is a sequence of `:name` or `:name(argument)` items:

    :raw                 drop every layer (and CRLF translation)
    :utf8                push a utf-8 codec layer
    :encoding(NAME)      push a codec layer for NAME
    :crlf                translate CRLF <-> LF on the program side

An open mode is an access prefix optionally followed by a layer spec, e.g.
`'<:encoding(UTF-8)'`, `'>>:raw'` or `'r:utf8'`.
"""

from __future__ import annotations

import re
from enum import Enum

import msgspec

__all__ = [
    'Access',
    'Direction',
    'Layer',
    'LayerSpec',
    'parse_layers',
    'parse_mode',
]


class Direction(Enum):
    """Which side of the stack a layer takes part in."""

    READ = 'read'
    """Decode on read only."""

    WRITE = 'write'
    """Encode on write only."""

    BOTH = 'both'

    @property
    def reads(self) -> bool:
        return self is not Direction.WRITE

    @property
    def writes(self) -> bool:
        return self is not Direction.READ


class Access(Enum):
    """Access mode of a stack, named by its open-mode prefix."""

    READ = '<'
    WRITE = '>'
    APPEND = '>>'
    READ_WRITE = '+<'

    @property
    def readable(self) -> bool:
        return self in (Access.READ, Access.READ_WRITE)

    @property
    def writable(self) -> bool:
        return self is not Access.READ


class Layer(msgspec.Struct, frozen=True, gc=False):
    """One codec layer: decode on read, encode on write, or both.

    Attributes:
        codec: Canonical codec name.
        direction: Which operations the layer applies to.
    """

    codec: str
    direction: Direction = Direction.BOTH

    def __str__(self) -> str:
        suffix = '' if self.direction is Direction.BOTH else f'[{self.direction.value}]'
        return f':encoding({self.codec}){suffix}'


class LayerSpec(msgspec.Struct, frozen=True, gc=False):
    """Parsed layer spec.

    Attributes:
        clear: A `:raw` item was present; layers before it are discarded.
        codecs: Codec names to push, in order, after clearing.
        newline: `'\\r\\n'` for `:crlf`, `'\\n'` if `:raw` came last, else None.
    """

    clear: bool = False
    codecs: tuple[str, ...] = ()
    newline: str | None = None


_ITEM = re.compile(r'\s*:\s*([A-Za-z_][A-Za-z0-9_]*)\s*(?:\(\s*([^()]*?)\s*\))?\s*')

_MODE = re.compile(r'^\s*(\+<|\+>|>>|<|>|r\+|w\+|a\+|r|w|a)(.*)$', re.DOTALL)

_ACCESS = {
    '<': Access.READ,
    'r': Access.READ,
    '>': Access.WRITE,
    'w': Access.WRITE,
    '>>': Access.APPEND,
    'a': Access.APPEND,
    '+<': Access.READ_WRITE,
    '+>': Access.READ_WRITE,
    'r+': Access.READ_WRITE,
    'w+': Access.READ_WRITE,
    'a+': Access.READ_WRITE,
}


def parse_layers(spec: str) -> LayerSpec:
    """Parse a layer spec such as `':raw:encoding(UTF-16LE)'`.

    Codec names are returned as written; the stack resolves them against
    its registry when they are pushed.

    Raises:
        ValueError: On syntax errors or unknown layer names.

    Example:
        >>> parse_layers(':raw :encoding(latin-1) :crlf')
        LayerSpec(clear=True, codecs=('latin-1',), newline='\\r\\n')
    """
    clear = False
    codecs: list[str] = []
    newline: str | None = None
    pos = 0
    text = spec.rstrip()
    while pos < len(text):
        match = _ITEM.match(text, pos)
        if match is None:
            msg = f'invalid layer spec {spec!r} at position {pos}'
            raise ValueError(msg)
        name, argument = match.group(1).lower(), match.group(2)
        if name == 'raw':
            clear, codecs, newline = True, [], '\n'
        elif name == 'crlf':
            newline = '\r\n'
        elif name == 'utf8':
            codecs.append('utf-8')
        elif name == 'encoding':
            if not argument:
                msg = ':encoding needs a codec name, e.g. :encoding(UTF-8)'
                raise ValueError(msg)
            codecs.append(argument)
        else:
            msg = f'unknown layer :{name}'
            raise ValueError(msg)
        pos = match.end()
    return LayerSpec(clear=clear, codecs=tuple(codecs), newline=newline)


def parse_mode(mode: str) -> tuple[Access, str]:
    """Split an open mode into its access and its layer spec.

    Raises:
        ValueError: If the mode does not start with a known access prefix.

    Example:
        >>> parse_mode('<:encoding(UTF-8)')
        (<Access.READ: '<'>, ':encoding(UTF-8)')
    """
    match = _MODE.match(mode)
    if match is None:
        msg = f'invalid open mode {mode!r}'
        raise ValueError(msg)
    return _ACCESS[match.group(1)], match.group(2).strip()
