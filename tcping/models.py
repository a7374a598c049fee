"""Data models for tcping probes and statistics."""

from dataclasses import dataclass, field
from enum import Enum


class ProbeMode(str, Enum):
    """Kind of probe issued on every iteration."""

    TCP = "tcp"
    HTTP = "http"


class AddressFamily(str, Enum):
    """Address family of a resolved target."""

    IPV4 = "IPv4"
    IPV6 = "IPv6"


class FailureKind(str, Enum):
    """Stage at which a probe attempt failed."""

    CONSTRUCTION = "construction"  # socket or request could not be built
    EXECUTION = "execution"  # connect/send failed or timed out
    READ = "read"  # response body could not be read


@dataclass(frozen=True)
class ResolvedTarget:
    """A probe target, resolved once before the loop starts."""

    original: str  # host or URI exactly as entered
    address: str  # numeric address, bracketed for IPv6; host name for HTTP URIs
    family: AddressFamily | None
    port: int

    @property
    def ip(self) -> str:
        """Address without IPv6 brackets, suitable for socket calls."""
        if self.address.startswith("[") and self.address.endswith("]"):
            return self.address[1:-1]
        return self.address


@dataclass
class ProbeOutcome:
    """Normalized result of a single probe attempt."""

    seq: int
    mode: ProbeMode
    success: bool
    elapsed_ms: float
    bytes_transferred: int = 0
    status_code: int | None = None
    failure: FailureKind | None = None
    error: str | None = None
    timed_out: bool = False
    # Presentation details, only used by the reporter
    local_address: str | None = None
    reason: str | None = None
    headers: list[tuple[str, str]] = field(default_factory=list)

    def __post_init__(self):
        """Keep failure, success and byte count consistent."""
        if self.seq < 0:
            raise ValueError("seq must be non-negative")
        if self.failure is not None:
            self.success = False
            self.bytes_transferred = 0

    @property
    def answered(self) -> bool:
        """True if the target answered at all (any HTTP status, or a TCP connect)."""
        return self.failure is None


@dataclass(frozen=True)
class Statistics:
    """Point-in-time snapshot of aggregated probe results."""

    sent: int = 0
    responded: int = 0
    min_time: float = 0.0
    max_time: float = 0.0
    avg_time: float = 0.0
    total_bytes: int = 0
    min_bandwidth: float = 0.0
    max_bandwidth: float = 0.0
    avg_bandwidth: float = 0.0

    @property
    def lost(self) -> int:
        return self.sent - self.responded

    @property
    def loss_rate(self) -> float:
        """Loss as a percentage of sent probes (0.0 when nothing was sent)."""
        if self.sent == 0:
            return 0.0
        return self.lost / self.sent * 100
