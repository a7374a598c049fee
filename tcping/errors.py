"""Exception hierarchy for tcping.

Every :class:`TcpingError` carries a message key and parameters so the
reporter can render it in the operator's language. ``str(error)`` gives the
English text.
"""

from tcping.messages import DEFAULT_LANGUAGE, Messages
from tcping.models import AddressFamily


class TcpingError(Exception):
    """Base class for errors that end a run before probing starts."""

    key = "error_generic"

    def __init__(self, key: str | None = None, **params):
        if key is not None:
            self.key = key
        self.params = params
        super().__init__(self.render(Messages(DEFAULT_LANGUAGE)))

    def render(self, messages: Messages) -> str:
        """Return the error text in the language of ``messages``."""
        return messages.format(self.key, **self.params)


class ValidationError(TcpingError, ValueError):
    """Invalid flags, port, host or URI."""


class ResolutionError(TcpingError):
    """The target could not be turned into an address."""


class UnsupportedNumericFormat(ResolutionError):
    """Decimal or hexadecimal shorthand used while IPv6 was requested."""

    def __init__(self, host: str, notation: str):
        self.host = host
        self.notation = notation
        key = "error_ipv6_decimal" if notation == "decimal" else "error_ipv6_hex"
        super().__init__(key, host=host)


class AddressFamilyMismatch(ResolutionError):
    """An IP literal does not belong to the requested family."""

    def __init__(self, host: str, requested: AddressFamily):
        self.host = host
        self.requested = requested
        key = "error_not_ipv4" if requested == AddressFamily.IPV4 else "error_not_ipv6"
        super().__init__(key, host=host)


class ResolutionFailure(ResolutionError):
    """DNS lookup failed; the underlying error is kept in ``cause``."""

    key = "error_resolve"

    def __init__(self, host: str, cause: BaseException):
        self.host = host
        self.cause = cause
        super().__init__(host=host, cause=cause)


class NoAddressFound(ResolutionError):
    """DNS returned an empty answer."""

    key = "error_no_ip"

    def __init__(self, host: str):
        self.host = host
        super().__init__(host=host)


class NoAddressOfFamily(ResolutionError):
    """DNS answered, but with no address of the requested family."""

    def __init__(self, host: str, family: AddressFamily):
        self.host = host
        self.family = family
        key = "error_no_ipv4" if family == AddressFamily.IPV4 else "error_no_ipv6"
        super().__init__(key, host=host)


class ProbeCancelled(Exception):
    """Raised by a prober that observed cancellation while in flight.

    Not an error: the scheduler treats it as the end of the run and the
    interrupted attempt is not recorded.
    """

    def __init__(self, seq: int):
        self.seq = seq
        super().__init__(f"probe {seq} cancelled")
