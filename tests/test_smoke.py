"""Smoke tests: the package imports and the headline behaviours hold."""

from __future__ import annotations

import textlayers
from textlayers import CharString, MemoryChannel, OctetString, decode, encode, open_stack


def test_public_names_exist() -> None:
    for name in textlayers.__all__:
        assert hasattr(textlayers, name), name


def test_version() -> None:
    assert textlayers.__version__ == '0.1.0'


def test_thorn_round_trip() -> None:
    encoded = encode('utf-8', 'þ')
    assert encoded == OctetString(b'\xc3\xbe')
    assert decode('utf-8', encoded) == CharString('þ')


def test_mojibake_is_the_defined_result() -> None:
    assert CharString('x') + OctetString(b'\xc3\xa9') == CharString('xÃ©')


def test_stream_read() -> None:
    with open_stack(MemoryChannel('þorn\n'.encode(), chunk_size=1), '<:encoding(UTF-8)') as stack:
        assert stack.read_line() == CharString('þorn\n')
        assert stack.read_line() is None
