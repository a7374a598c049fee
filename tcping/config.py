"""Run configuration and argument validation for tcping."""

import ipaddress
import logging
import re
from dataclasses import dataclass
from urllib.parse import urlsplit

from tcping.errors import ValidationError
from tcping.models import AddressFamily, ResolvedTarget

logger = logging.getLogger(__name__)

DEFAULT_COUNT = 4
DEFAULT_PORT = 80
DEFAULT_INTERVAL_MS = 1000
DEFAULT_TIMEOUT_MS = 1000

_HTTP_DEFAULT_PORTS = {"http": 80, "https": 443}
_PORT_RE = re.compile(r"[+-]?[0-9]+", re.ASCII)


@dataclass(frozen=True)
class Options:
    """Resolved command-line configuration; read-only for the whole run."""

    use_ipv4: bool = False
    use_ipv6: bool = False
    count: int = DEFAULT_COUNT  # 0 = unbounded
    interval_ms: int = DEFAULT_INTERVAL_MS
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    port: int | None = None
    http_mode: bool = False
    insecure: bool = False
    color: bool = False
    verbose: bool = False
    language: str | None = None
    show_help: bool = False
    show_version: bool = False

    def validate(self):
        """Check flag combinations and numeric ranges.

        Raises:
            ValidationError: On the first problem found
        """
        if self.use_ipv4 and self.use_ipv6:
            raise ValidationError("error_both_families")
        if self.count < 0:
            raise ValidationError("error_negative_count")
        if self.interval_ms < 0:
            raise ValidationError("error_negative_interval")
        if self.timeout_ms < 0:
            raise ValidationError("error_negative_timeout")
        if self.port is not None:
            validate_port(str(self.port))


def validate_port(port: str) -> int:
    """Parse a port string and check it is within 1-65535.

    Examples:
        >>> validate_port("80")
        80

    Raises:
        ValidationError: Not an integer, or out of range
    """
    if not _PORT_RE.fullmatch(port):
        raise ValidationError("error_invalid_port")
    value = int(port)
    if value <= 0 or value > 65535:
        raise ValidationError("error_port_range")
    return value


def tcp_endpoint(options: Options, args: list[str]) -> tuple[str, int]:
    """Pick host and port for TCP mode.

    Port precedence: positional argument, then ``-p``, then 80.
    """
    if not args or not args[0].strip():
        raise ValidationError("error_host_required")

    host = args[0].strip()
    if len(args) > 1:
        port = validate_port(args[1])
    elif options.port is not None:
        port = validate_port(str(options.port))
    else:
        port = DEFAULT_PORT

    return host, port


def http_target(args: list[str]) -> ResolvedTarget:
    """Validate the URI argument of HTTP mode.

    The host inside the URI is left for the HTTP client to resolve; only
    literal IP hosts get a family.

    Raises:
        ValidationError: Missing URI, unparsable URI or non-HTTP(S) scheme
    """
    if not args or not args[0].strip():
        raise ValidationError("error_uri_required")

    uri = args[0].strip()
    try:
        parts = urlsplit(uri)
        port = parts.port
    except ValueError as e:
        raise ValidationError("error_invalid_uri", cause=e) from e

    scheme = parts.scheme.lower()
    if scheme not in _HTTP_DEFAULT_PORTS:
        raise ValidationError("error_uri_scheme")
    if not parts.hostname:
        raise ValidationError("error_invalid_uri", cause=f"missing host in {uri}")

    host = parts.hostname
    family = None
    address = host
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        ip = None
    if ip is not None and ip.version == 6:
        family = AddressFamily.IPV6
        address = f"[{host}]"
    elif ip is not None:
        family = AddressFamily.IPV4

    return ResolvedTarget(
        original=uri,
        address=address,
        family=family,
        port=port or _HTTP_DEFAULT_PORTS[scheme],
    )
