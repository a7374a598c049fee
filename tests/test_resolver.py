"""Unit tests for tcping.resolver address resolution."""

import socket

import pytest

from tcping import resolver
from tcping.errors import (
    AddressFamilyMismatch,
    NoAddressFound,
    NoAddressOfFamily,
    ResolutionFailure,
    UnsupportedNumericFormat,
)
from tcping.models import AddressFamily
from tcping.resolver import (
    is_ipv4_host,
    is_ipv6_host,
    parse_numeric_ipv4,
    resolve_address,
    resolve_target,
)


def _fake_getaddrinfo(answers):
    """Build a getaddrinfo replacement returning (family, ip) answers."""

    def getaddrinfo(host, port, family=0, type=0, proto=0, flags=0):
        infos = []
        for fam, ip in answers:
            sockaddr = (ip, 0) if fam == socket.AF_INET else (ip, 0, 0, 0)
            infos.append((fam, socket.SOCK_STREAM, 6, "", sockaddr))
        return infos

    return getaddrinfo


class TestParseNumericIPv4:
    """Test decimal and hexadecimal IPv4 shorthand."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("3232235777", "192.168.1.1"),
            ("0xc0a80101", "192.168.1.1"),
            ("0XC0A80101", "192.168.1.1"),
            ("c0a80101", "192.168.1.1"),
            ("0x08080808", "8.8.8.8"),
            ("134744072", "8.8.8.8"),
            ("0", "0.0.0.0"),
            ("4294967295", "255.255.255.255"),
        ],
    )
    def test_valid_numeric_forms(self, text, expected):
        """Test numeric shorthand maps to the big-endian dotted quad."""
        assert parse_numeric_ipv4(text) == expected

    @pytest.mark.parametrize(
        "text",
        ["notanip", "", "0x", "4294967296", "0x100000000", "-1", "+5", "1_000", "8.8.8.8", " 42"],
    )
    def test_invalid_numeric_forms(self, text):
        """Test non-numeric, signed, oversized and decorated input is rejected."""
        assert parse_numeric_ipv4(text) is None


class TestResolveAddressNumeric:
    """Test numeric shorthand handling in resolve_address()."""

    def test_decimal_without_family(self):
        """Test decimal shorthand resolves without any family flag."""
        assert resolve_address("3232235777") == "192.168.1.1"

    def test_hex_with_ipv4_flag(self):
        """Test hex shorthand resolves when IPv4 is forced."""
        assert resolve_address("0xc0a80101", use_ipv4=True) == "192.168.1.1"

    def test_ipv6_rejects_decimal(self):
        """Test IPv6 mode rejects decimal shorthand."""
        with pytest.raises(UnsupportedNumericFormat) as exc_info:
            resolve_address("3232235777", use_ipv6=True)
        assert exc_info.value.notation == "decimal"
        assert "decimal" in str(exc_info.value)

    def test_ipv6_rejects_prefixed_hex(self):
        """Test IPv6 mode rejects 0x-prefixed hexadecimal shorthand."""
        with pytest.raises(UnsupportedNumericFormat) as exc_info:
            resolve_address("0xc0a80101", use_ipv6=True)
        assert exc_info.value.notation == "hexadecimal"

    @pytest.mark.parametrize("text", ["c0a80101", "C0A80101", "cafe"])
    def test_ipv6_rejects_bare_hex(self, text, monkeypatch):
        """Test IPv6 mode rejects unprefixed hexadecimal before any DNS lookup."""

        def fail_lookup(*args, **kwargs):
            raise AssertionError("DNS should not be queried")

        monkeypatch.setattr(resolver.socket, "getaddrinfo", fail_lookup)
        with pytest.raises(UnsupportedNumericFormat) as exc_info:
            resolve_address(text, use_ipv6=True)
        assert exc_info.value.notation == "hexadecimal"
        assert str(exc_info.value) == "IPv6 addresses do not support hexadecimal format"

    def test_resolve_target_ipv6_bare_hex(self):
        with pytest.raises(UnsupportedNumericFormat):
            resolve_target("c0a80101", 80, use_ipv6=True)

    def test_numeric_shorthand_skips_dns(self, monkeypatch):
        """Test numeric shorthand never reaches the DNS lookup."""

        def fail_lookup(*args, **kwargs):
            raise AssertionError("DNS should not be queried")

        monkeypatch.setattr(resolver.socket, "getaddrinfo", fail_lookup)
        assert resolve_address("134744072") == "8.8.8.8"


class TestResolveAddressLiterals:
    """Test IP literal handling in resolve_address()."""

    def test_ipv4_literal(self):
        assert resolve_address("8.8.8.8", use_ipv4=True) == "8.8.8.8"

    def test_ipv6_literal_is_bracketed(self):
        assert resolve_address("::1", use_ipv6=True) == "[::1]"

    def test_ipv6_literal_is_canonicalized(self):
        """Test IPv6 literals come back in compressed form."""
        assert resolve_address("2001:0db8:0000:0000:0000:0000:0000:0001") == "[2001:db8::1]"

    def test_ipv4_mapped_ipv6_counts_as_ipv4(self):
        assert resolve_address("::ffff:192.0.2.1") == "192.0.2.1"

    def test_ipv6_literal_with_ipv4_flag(self):
        """Test an IPv6 literal is refused when IPv4 is forced."""
        with pytest.raises(AddressFamilyMismatch) as exc_info:
            resolve_address("::1", use_ipv4=True)
        assert exc_info.value.requested == AddressFamily.IPV4

    def test_ipv4_literal_with_ipv6_flag(self):
        """Test an IPv4 literal is refused when IPv6 is forced."""
        with pytest.raises(AddressFamilyMismatch):
            resolve_address("8.8.8.8", use_ipv6=True)


class TestResolveAddressDNS:
    """Test DNS fallback with a patched resolver."""

    def test_first_result_without_family(self, monkeypatch):
        monkeypatch.setattr(
            resolver.socket,
            "getaddrinfo",
            _fake_getaddrinfo([(socket.AF_INET6, "2001:db8::1"), (socket.AF_INET, "192.0.2.10")]),
        )
        assert resolve_address("example.test") == "[2001:db8::1]"

    def test_first_matching_ipv4(self, monkeypatch):
        monkeypatch.setattr(
            resolver.socket,
            "getaddrinfo",
            _fake_getaddrinfo([(socket.AF_INET6, "2001:db8::1"), (socket.AF_INET, "192.0.2.10")]),
        )
        assert resolve_address("example.test", use_ipv4=True) == "192.0.2.10"

    def test_first_matching_ipv6(self, monkeypatch):
        monkeypatch.setattr(
            resolver.socket,
            "getaddrinfo",
            _fake_getaddrinfo([(socket.AF_INET, "192.0.2.10"), (socket.AF_INET6, "2001:db8::2")]),
        )
        assert resolve_address("example.test", use_ipv6=True) == "[2001:db8::2]"

    def test_no_address_of_family(self, monkeypatch):
        monkeypatch.setattr(resolver.socket, "getaddrinfo", _fake_getaddrinfo([(socket.AF_INET, "192.0.2.10")]))
        with pytest.raises(NoAddressOfFamily) as exc_info:
            resolve_address("example.test", use_ipv6=True)
        assert exc_info.value.family == AddressFamily.IPV6
        assert str(exc_info.value) == "No IPv6 address found for example.test"

    def test_empty_answer(self, monkeypatch):
        monkeypatch.setattr(resolver.socket, "getaddrinfo", _fake_getaddrinfo([]))
        with pytest.raises(NoAddressFound):
            resolve_address("example.test")

    def test_lookup_failure_keeps_cause(self, monkeypatch):
        """Test DNS errors are wrapped with the original error attached."""
        cause = socket.gaierror(socket.EAI_NONAME, "Name or service not known")

        def getaddrinfo(*args, **kwargs):
            raise cause

        monkeypatch.setattr(resolver.socket, "getaddrinfo", getaddrinfo)
        with pytest.raises(ResolutionFailure) as exc_info:
            resolve_address("nonexistent.invalid")

        assert exc_info.value.cause is cause
        assert exc_info.value.__cause__ is cause
        assert "nonexistent.invalid" in str(exc_info.value)

    def test_duplicate_answers_collapsed(self, monkeypatch):
        """Test repeated answers do not change which address is picked."""
        monkeypatch.setattr(
            resolver.socket,
            "getaddrinfo",
            _fake_getaddrinfo([(socket.AF_INET, "192.0.2.10"), (socket.AF_INET, "192.0.2.10")]),
        )
        assert resolve_address("example.test") == "192.0.2.10"


class TestFamilyHints:
    """Test host-derived family hints."""

    def test_ipv4_hints(self):
        assert is_ipv4_host("8.8.8.8")
        assert is_ipv4_host("134744072")
        assert not is_ipv4_host("::1")
        assert not is_ipv4_host("example.com")

    def test_ipv6_hints(self):
        assert is_ipv6_host("::1")
        assert is_ipv6_host("2001:db8::1")
        assert not is_ipv6_host("8.8.8.8")

    def test_ipv4_mapped_hints(self):
        """Test an IPv4-mapped literal hints IPv4 despite its colons."""
        assert is_ipv4_host("::ffff:192.0.2.1")
        assert not is_ipv6_host("::ffff:192.0.2.1")

    def test_resolve_target_ipv4_mapped(self):
        target = resolve_target("::ffff:192.0.2.1", 80)

        assert target.address == "192.0.2.1"
        assert target.family == AddressFamily.IPV4

    def test_resolve_target_ipv4(self):
        target = resolve_target("3232235777", 443)

        assert target.original == "3232235777"
        assert target.address == "192.168.1.1"
        assert target.family == AddressFamily.IPV4
        assert target.port == 443

    def test_resolve_target_ipv6(self):
        target = resolve_target("::1", 22)

        assert target.address == "[::1]"
        assert target.ip == "::1"
        assert target.family == AddressFamily.IPV6

    def test_resolve_target_ipv6_literal_with_ipv4_flag(self):
        """Test the forced flag still wins over the literal's own family."""
        with pytest.raises(AddressFamilyMismatch):
            resolve_target("::1", 80, use_ipv4=True)
