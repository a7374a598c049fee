"""Address resolution for tcping targets.

Resolution order is numeric shorthand, then IP literal, then DNS. Concrete
addresses never cost a DNS round-trip, and strings valid both as a number
and as a host name always resolve the same way.
"""

import ipaddress
import logging
import re
import socket

from tcping.errors import (
    AddressFamilyMismatch,
    NoAddressFound,
    NoAddressOfFamily,
    ResolutionFailure,
    UnsupportedNumericFormat,
)
from tcping.models import AddressFamily, ResolvedTarget

logger = logging.getLogger(__name__)

_DECIMAL_RE = re.compile(r"[0-9]+", re.ASCII)
_HEX_RE = re.compile(r"[0-9a-f]+", re.ASCII)

_MAX_U32 = 0xFFFFFFFF


def _parse_u32(text: str, base: int) -> int | None:
    pattern = _DECIMAL_RE if base == 10 else _HEX_RE
    if not pattern.fullmatch(text):
        return None
    value = int(text, base)
    if value > _MAX_U32:
        return None
    return value


def _parse_numeric(address: str) -> tuple[str, int] | None:
    """Return (notation, value) for decimal or optionally 0x-prefixed hex input."""
    value = _parse_u32(address, 10)
    if value is not None:
        return "decimal", value

    hex_digits = address.lower()
    if hex_digits.startswith("0x"):
        hex_digits = hex_digits[2:]
    value = _parse_u32(hex_digits, 16)
    if value is not None:
        return "hexadecimal", value
    return None


def parse_numeric_ipv4(address: str) -> str | None:
    """Parse a 32-bit decimal or hexadecimal IPv4 shorthand.

    Decimal is tried first, then hexadecimal with or without a ``0x``
    prefix. The value is split big-endian into a dotted quad.

    Args:
        address: Candidate string such as ``"3232235777"`` or ``"0xc0a80101"``

    Returns:
        Dotted-quad string, or None if ``address`` is not a 32-bit number

    Examples:
        >>> parse_numeric_ipv4("3232235777")
        '192.168.1.1'
        >>> parse_numeric_ipv4("0xc0a80101")
        '192.168.1.1'
        >>> parse_numeric_ipv4("example.com") is None
        True
    """
    parsed = _parse_numeric(address)
    if parsed is None:
        return None

    return str(ipaddress.IPv4Address(parsed[1]))


def _reject_ipv6_numeric(address: str) -> None:
    parsed = _parse_numeric(address)
    if parsed is not None:
        raise UnsupportedNumericFormat(address, parsed[0])


def _parse_ip_literal(address: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return None
    # ::ffff:a.b.c.d is an IPv4 address in disguise
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        return ip.ipv4_mapped
    return ip


def _format_ip(ip: str, family: AddressFamily) -> str:
    if family == AddressFamily.IPV6:
        return f"[{ip}]"
    return ip


def _lookup(host: str) -> list[tuple[AddressFamily, str]]:
    """Return unique (family, address) pairs for ``host`` in resolver order."""
    try:
        infos = socket.getaddrinfo(host, None, socket.AF_UNSPEC, socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as e:
        raise ResolutionFailure(host, e) from e

    results = []
    for family, _type, _proto, _canonname, sockaddr in infos:
        if family == socket.AF_INET:
            entry = (AddressFamily.IPV4, sockaddr[0])
        elif family == socket.AF_INET6:
            entry = (AddressFamily.IPV6, sockaddr[0])
        else:
            continue
        if entry not in results:
            results.append(entry)
    return results


def resolve_address(address: str, use_ipv4: bool = False, use_ipv6: bool = False) -> str:
    """Turn a host string into a single numeric target address.

    Args:
        address: Host name, IP literal, or 32-bit numeric shorthand
        use_ipv4: Only accept IPv4 results
        use_ipv6: Only accept IPv6 results

    Returns:
        Numeric address; IPv6 addresses are wrapped in brackets

    Raises:
        UnsupportedNumericFormat: Numeric shorthand combined with IPv6
        AddressFamilyMismatch: IP literal of the wrong family
        ResolutionFailure: DNS lookup failed
        NoAddressFound: DNS returned nothing
        NoAddressOfFamily: DNS returned nothing of the requested family
    """
    if use_ipv6:
        _reject_ipv6_numeric(address)

    if use_ipv4 or not use_ipv6:
        numeric = parse_numeric_ipv4(address)
        if numeric is not None:
            logger.debug("Numeric IPv4 shorthand: %s -> %s", address, numeric)
            return numeric

    ip = _parse_ip_literal(address)
    if ip is not None:
        is_v4 = ip.version == 4
        if use_ipv4 and not is_v4:
            raise AddressFamilyMismatch(address, AddressFamily.IPV4)
        if use_ipv6 and is_v4:
            raise AddressFamilyMismatch(address, AddressFamily.IPV6)
        family = AddressFamily.IPV4 if is_v4 else AddressFamily.IPV6
        return _format_ip(str(ip), family)

    logger.debug("Resolving %s via DNS (ipv4=%s, ipv6=%s)", address, use_ipv4, use_ipv6)
    results = _lookup(address)
    if not results:
        raise NoAddressFound(address)

    wanted = None
    if use_ipv4:
        wanted = AddressFamily.IPV4
    elif use_ipv6:
        wanted = AddressFamily.IPV6

    if wanted is not None:
        for family, ip_text in results:
            if family == wanted:
                return _format_ip(ip_text, family)
        raise NoAddressOfFamily(address, wanted)

    family, ip_text = results[0]
    return _format_ip(ip_text, family)


def is_ipv4_host(address: str) -> bool:
    """True for numeric shorthand and IPv4 literals, including IPv4-mapped IPv6."""
    if parse_numeric_ipv4(address) is not None:
        return True
    ip = _parse_ip_literal(address)
    return ip is not None and ip.version == 4


def is_ipv6_host(address: str) -> bool:
    """True for anything that looks like an IPv6 literal."""
    if address.count(":") < 2:
        return False
    ip = _parse_ip_literal(address)
    return ip is None or ip.version == 6


def family_of(address: str) -> AddressFamily:
    """Family of a string returned by :func:`resolve_address`."""
    if address.startswith("["):
        return AddressFamily.IPV6
    return AddressFamily.IPV4


def resolve_target(host: str, port: int, use_ipv4: bool = False, use_ipv6: bool = False) -> ResolvedTarget:
    """Resolve a TCP target once, before the probe loop starts.

    Family hints are derived from the host itself when no flag forces one:
    IPv4 literals (IPv4-mapped included) imply IPv4, other strings with two
    or more colons imply IPv6.
    """
    want_ipv4 = use_ipv4 or (not use_ipv6 and is_ipv4_host(host))
    want_ipv6 = use_ipv6 or is_ipv6_host(host)

    address = resolve_address(host, want_ipv4, want_ipv6)
    target = ResolvedTarget(original=host, address=address, family=family_of(address), port=port)
    logger.info("Resolved %s -> %s (%s)", host, target.address, target.family.value)
    return target
