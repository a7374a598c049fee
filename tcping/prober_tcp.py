"""TCP connect prober for tcping."""

import errno
import logging
import os
import select
import socket
import time

from tcping.cancellation import CancellationToken
from tcping.errors import ProbeCancelled
from tcping.models import AddressFamily, FailureKind, ProbeMode, ProbeOutcome, ResolvedTarget

logger = logging.getLogger(__name__)

# Longest single blocking wait while a connect is pending; bounds how late
# a cancellation is noticed.
POLL_INTERVAL_SECONDS = 0.05

_IN_PROGRESS = {errno.EINPROGRESS, errno.EALREADY, errno.EWOULDBLOCK}
if hasattr(errno, "WSAEWOULDBLOCK"):
    _IN_PROGRESS.add(errno.WSAEWOULDBLOCK)


class ConnectTimeout(OSError):
    """The connect did not finish before the probe deadline."""


class TcpProber:
    """Prober that measures how long a TCP handshake takes.

    The connect runs on a non-blocking socket and is polled in short slices,
    checking the cancellation token between slices, so an interrupt aborts
    an in-flight attempt without waiting out the full timeout. No data is
    exchanged; the socket is closed as soon as the result is known.
    """

    mode = ProbeMode.TCP

    def __init__(self, socket_factory=socket.socket):
        """Initialize TCP prober.

        Args:
            socket_factory: Callable creating sockets, ``socket.socket`` by default
        """
        self._socket_factory = socket_factory

    def execute(
        self,
        token: CancellationToken,
        target: ResolvedTarget,
        timeout_ms: int,
        seq: int = 0,
    ) -> ProbeOutcome:
        """Connect once to ``target`` and report the handshake time.

        Args:
            token: Run cancellation token
            target: Resolved numeric target
            timeout_ms: Per-attempt deadline; 0 disables the deadline
            seq: Sequence number of this probe

        Returns:
            ProbeOutcome; failed connects are returned, not raised

        Raises:
            ProbeCancelled: The token was cancelled before the connect finished
        """
        family = socket.AF_INET6 if target.family == AddressFamily.IPV6 else socket.AF_INET

        try:
            sockaddr = self._sockaddr(target, family)
            sock = self._socket_factory(family, socket.SOCK_STREAM)
        except OSError as e:
            logger.warning("Socket setup failed: target=%s, error=%s", target.address, e)
            return ProbeOutcome(
                seq=seq,
                mode=self.mode,
                success=False,
                elapsed_ms=0.0,
                failure=FailureKind.CONSTRUCTION,
                error=str(e),
            )

        start = time.perf_counter()
        deadline = start + timeout_ms / 1000.0 if timeout_ms > 0 else None

        try:
            sock.setblocking(False)
            result = sock.connect_ex(sockaddr)
            if result in _IN_PROGRESS:
                self._wait_connected(sock, token, deadline, seq)
            elif result != 0:
                raise OSError(result, os.strerror(result))

            elapsed_ms = (time.perf_counter() - start) * 1000.0
            if token.cancelled:
                raise ProbeCancelled(seq)

            local_address = self._local_address(sock)
            logger.debug("Connected: target=%s:%d, seq=%d, time=%.2fms", target.ip, target.port, seq, elapsed_ms)
            return ProbeOutcome(
                seq=seq,
                mode=self.mode,
                success=True,
                elapsed_ms=elapsed_ms,
                local_address=local_address,
            )

        except ConnectTimeout:
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            logger.debug("Connect timeout: target=%s:%d, seq=%d, timeout=%dms", target.ip, target.port, seq, timeout_ms)
            return ProbeOutcome(
                seq=seq,
                mode=self.mode,
                success=False,
                elapsed_ms=elapsed_ms,
                failure=FailureKind.EXECUTION,
                error="Connection timeout",
                timed_out=True,
            )
        except OSError as e:
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            logger.debug("Connect failed: target=%s:%d, seq=%d, error=%s", target.ip, target.port, seq, e)
            return ProbeOutcome(
                seq=seq,
                mode=self.mode,
                success=False,
                elapsed_ms=elapsed_ms,
                failure=FailureKind.EXECUTION,
                error=e.strerror or str(e),
            )
        finally:
            sock.close()

    def _sockaddr(self, target: ResolvedTarget, family: int):
        # Numeric host only: never triggers a DNS lookup, but fills in the
        # IPv6 flow info and scope id.
        infos = socket.getaddrinfo(target.ip, target.port, family, socket.SOCK_STREAM, 0, socket.AI_NUMERICHOST)
        return infos[0][4]

    def _wait_connected(self, sock, token: CancellationToken, deadline: float | None, seq: int):
        """Poll a pending connect until it completes, fails, times out or is cancelled."""
        while True:
            if token.cancelled:
                raise ProbeCancelled(seq)

            wait = POLL_INTERVAL_SECONDS
            if deadline is not None:
                remaining = deadline - time.perf_counter()
                if remaining <= 0:
                    raise ConnectTimeout(errno.ETIMEDOUT, "timeout")
                wait = min(wait, remaining)

            _, writable, errored = select.select([], [sock], [sock], wait)
            if writable or errored:
                err = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
                if err != 0:
                    raise OSError(err, os.strerror(err))
                return

    def _local_address(self, sock) -> str | None:
        try:
            local = sock.getsockname()
        except OSError:
            return None
        if sock.family == socket.AF_INET6:
            return f"[{local[0]}]:{local[1]}"
        return f"{local[0]}:{local[1]}"
