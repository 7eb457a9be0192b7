"""Tests for the coercion policy."""

from __future__ import annotations

from typing import Any

from hypothesis import given
from textlayers._logging import add_log_hook
from textlayers.coercion import FALLBACK_ENCODING, CoercionPolicy, get_default_policy
from textlayers.registry import create_default_registry, get_default_registry
from textlayers.values import CharString, OctetString

from tests.strategies import char_strings, latin1_texts, octet_strings, string_values


def make_policy() -> CoercionPolicy:
    return CoercionPolicy(get_default_registry())


class TestUpgrade:
    """Tests for the Latin-1 upgrade."""

    def test_fallback_is_latin1(self) -> None:
        assert FALLBACK_ENCODING == 'latin-1'

    def test_upgrade_maps_bytes_to_codepoints(self) -> None:
        assert make_policy().upgrade(OctetString(b'\x00\xe9\xff')) == CharString('\x00é\xff')

    def test_upgrade_is_logged(self) -> None:
        events: list[dict[str, Any]] = []
        add_log_hook(events.append)

        make_policy().concat(CharString('a'), OctetString(b'b'))

        upgrades = [e for e in events if e.get('event') == 'implicit_upgrade']
        assert len(upgrades) == 1
        assert upgrades[0]['operation'] == 'concat'
        assert upgrades[0]['encoding'] == 'latin-1'

    def test_same_domain_is_not_logged(self) -> None:
        events: list[dict[str, Any]] = []
        add_log_hook(events.append)

        make_policy().concat(OctetString(b'a'), OctetString(b'b'))

        assert not [e for e in events if e.get('event') == 'implicit_upgrade']

    def test_policy_over_custom_registry(self) -> None:
        policy = CoercionPolicy(create_default_registry())
        assert policy.concat(b'\xfe', 'x') == CharString('þx')


class TestConcat:
    """Tests for CoercionPolicy.concat()."""

    def test_utf8_octets_are_misread(self) -> None:
        """UTF-8 octets mixed with characters come out as mojibake."""
        assert make_policy().concat(OctetString(b'\xc3\xa9'), CharString('x')) == CharString('Ã©x')

    def test_octets_stay_octets(self) -> None:
        assert make_policy().concat(OctetString(b'\xc3'), OctetString(b'\xa9')) == OctetString(b'\xc3\xa9')

    @given(a=octet_strings, b=char_strings)
    def test_mixed_concat_is_total(self, a: OctetString, b: CharString) -> None:
        result = make_policy().concat(a, b)
        assert isinstance(result, CharString)
        assert result.elements() == a.elements() + b.elements()


class TestCompare:
    """Tests for compare() and equals()."""

    def test_compare_coerces(self) -> None:
        assert make_policy().compare(OctetString(b'\xe9'), CharString('é')) == 0
        assert make_policy().equals(b'\xe9', 'é')

    def test_compare_does_not_decode_utf8(self) -> None:
        assert not make_policy().equals(OctetString(b'\xc3\xa9'), CharString('é'))

    def test_ordering(self) -> None:
        policy = make_policy()
        assert policy.compare('a', 'b') == -1
        assert policy.compare(b'b', 'a') == 1
        assert policy.compare('ab', b'a') == 1

    @given(text=latin1_texts)
    def test_latin1_octets_equal_their_characters(self, text: str) -> None:
        assert make_policy().equals(text.encode('latin-1'), text)

    @given(a=string_values, b=string_values)
    def test_compare_is_antisymmetric(self, a: CharString | OctetString, b: CharString | OctetString) -> None:
        policy = make_policy()
        assert policy.compare(a, b) == -policy.compare(b, a)


class TestJoinInterpolate:
    """Tests for join() and interpolate()."""

    def test_join_mixed(self) -> None:
        assert make_policy().join(',', [b'a', 'b']) == CharString('a,b')

    def test_join_octets(self) -> None:
        assert make_policy().join(b',', [b'a', b'b']) == OctetString(b'a,b')

    def test_join_empty(self) -> None:
        policy = make_policy()
        assert policy.join(',', []) == CharString('')
        assert policy.join(b',', []) == OctetString(b'')

    def test_join_single_keeps_domain(self) -> None:
        assert make_policy().join(',', [b'a']) == OctetString(b'a')

    def test_interpolate_upgrades_octets(self) -> None:
        result = make_policy().interpolate('name=', OctetString(b'caf\xc3\xa9'))
        assert result == CharString('name=cafÃ©')

    def test_interpolate_of_only_octets_is_characters(self) -> None:
        assert make_policy().interpolate(b'ab') == CharString('ab')

    def test_default_policy_is_shared(self) -> None:
        assert get_default_policy() is get_default_policy()
