"""HTTP(S) GET prober for tcping, built on requests."""

import logging
import socket
import threading
import time
from collections.abc import Iterable

import requests
import urllib3

from tcping.cancellation import CancellationToken
from tcping.errors import ProbeCancelled
from tcping.models import FailureKind, ProbeMode, ProbeOutcome, ResolvedTarget
from tcping.stats import bandwidth_mbps
from tcping.version import user_agent

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4096

# How often a probe waiting on its request checks for cancellation
POLL_INTERVAL_SECONDS = 0.05


class BodyReadTimeout(Exception):
    """The response body was still arriving when the probe deadline passed."""


def header_overhead(headers: Iterable[tuple[str, str]]) -> int:
    """Approximate on-the-wire size of response header fields.

    Each field counts its name plus ``": "`` and its value plus ``"\\r\\n"``.
    The status line is not included.

    Examples:
        >>> header_overhead([("Content-Length", "1024")])
        20
    """
    return sum(len(name) + 2 + len(value) + 2 for name, value in headers)


def is_success_status(status_code: int) -> bool:
    """Statuses in [200, 400) count as a successful probe."""
    return 200 <= status_code < 400


class _Exchange:
    """One request in flight, shared by the probe and its I/O thread."""

    def __init__(self):
        self.done = threading.Event()
        self.response: requests.Response | None = None
        self.outcome: ProbeOutcome | None = None
        self.error: Exception | None = None


class HttpProber:
    """Prober that times an HTTP GET and measures the transferred payload.

    Redirects are never followed: the first response is the result. The
    whole body is read so the byte count reflects what was actually sent.
    Elapsed time covers the request up to the response headers.

    The request runs on a short-lived I/O thread while the calling thread
    watches the cancellation token, so an interrupt ends the probe within
    one poll interval even when the server never answers and no timeout is
    set. On cancellation the response socket is shut down and pooled
    connections are dropped.

    One ``requests.Session`` is reused across probes so keep-alive
    connections behave the way a real client would.
    """

    mode = ProbeMode.HTTP

    def __init__(
        self,
        insecure: bool = False,
        session: requests.Session | None = None,
        agent: str | None = None,
    ):
        """Initialize HTTP prober.

        Args:
            insecure: Skip TLS certificate verification
            session: Session to send requests with; a new one by default
            agent: User-Agent value; the tcping client tag by default
        """
        self.insecure = insecure
        self.session = session if session is not None else requests.Session()
        self.agent = agent or user_agent()

        if insecure:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        logger.debug("HttpProber initialized: insecure=%s, agent=%s", insecure, self.agent)

    def execute(
        self,
        token: CancellationToken,
        target: ResolvedTarget,
        timeout_ms: int,
        seq: int = 0,
    ) -> ProbeOutcome:
        """Send one GET to ``target.original`` and measure the response.

        Args:
            token: Run cancellation token
            target: Target whose ``original`` is the URI
            timeout_ms: Deadline for the whole exchange; 0 disables it
            seq: Sequence number of this probe

        Returns:
            ProbeOutcome; transport failures are returned, not raised

        Raises:
            ProbeCancelled: The token was cancelled while the request was in flight
        """
        uri = target.original
        timeout = timeout_ms / 1000.0 if timeout_ms > 0 else None

        try:
            request = self.session.prepare_request(requests.Request("GET", uri, headers={"User-Agent": self.agent}))
        except (requests.RequestException, ValueError) as e:
            logger.warning("Request preparation failed: uri=%s, error=%s", uri, e)
            return self._failure(seq, 0.0, FailureKind.CONSTRUCTION, e)

        exchange = _Exchange()
        thread = threading.Thread(
            target=self._run,
            args=(exchange, request, token, timeout, seq),
            name=f"tcping-http-{seq}",
            daemon=True,
        )
        thread.start()

        while not exchange.done.wait(POLL_INTERVAL_SECONDS):
            if token.cancelled:
                self._abort(exchange, seq)
                raise ProbeCancelled(seq)

        if exchange.error is not None:
            raise exchange.error
        return exchange.outcome

    def _run(
        self,
        exchange: _Exchange,
        request: requests.PreparedRequest,
        token: CancellationToken,
        timeout: float | None,
        seq: int,
    ):
        try:
            exchange.outcome = self._exchange(exchange, request, token, timeout, seq)
        except Exception as e:
            # Re-raised on the probing thread unless the probe was abandoned
            exchange.error = e
        finally:
            exchange.done.set()

    def _exchange(
        self,
        exchange: _Exchange,
        request: requests.PreparedRequest,
        token: CancellationToken,
        timeout: float | None,
        seq: int,
    ) -> ProbeOutcome:
        uri = request.url
        start = time.perf_counter()
        deadline = start + timeout if timeout is not None else None

        try:
            response = self.session.send(
                request,
                timeout=timeout,
                allow_redirects=False,
                verify=not self.insecure,
                stream=True,
            )
        except requests.RequestException as e:
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            if token.cancelled:
                raise ProbeCancelled(seq) from e
            logger.debug("Request failed: uri=%s, seq=%d, error=%s", uri, seq, e)
            return self._failure(seq, elapsed_ms, FailureKind.EXECUTION, e, timed_out=isinstance(e, requests.Timeout))

        elapsed_ms = (time.perf_counter() - start) * 1000.0
        exchange.response = response

        try:
            body_bytes = self._drain(response, token, deadline, seq)
        except (requests.RequestException, OSError, BodyReadTimeout) as e:
            if token.cancelled:
                raise ProbeCancelled(seq) from e
            logger.debug("Response read failed: uri=%s, seq=%d, error=%s", uri, seq, e)
            return self._failure(seq, elapsed_ms, FailureKind.READ, e, timed_out=isinstance(e, BodyReadTimeout))
        finally:
            response.close()

        headers = list(response.headers.items())
        total_bytes = body_bytes + header_overhead(headers)

        logger.debug(
            "Response: uri=%s, seq=%d, status=%d, time=%.2fms, bytes=%d, bandwidth=%.2fMbps",
            uri,
            seq,
            response.status_code,
            elapsed_ms,
            total_bytes,
            bandwidth_mbps(total_bytes, elapsed_ms),
        )

        return ProbeOutcome(
            seq=seq,
            mode=self.mode,
            success=is_success_status(response.status_code),
            elapsed_ms=elapsed_ms,
            bytes_transferred=total_bytes,
            status_code=response.status_code,
            reason=response.reason,
            headers=headers,
        )

    def _drain(self, response: requests.Response, token: CancellationToken, deadline: float | None, seq: int) -> int:
        """Read the body to completion and return its size in bytes."""
        total = 0
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            total += len(chunk)
            if token.cancelled:
                raise ProbeCancelled(seq)
            if deadline is not None and time.perf_counter() > deadline:
                raise BodyReadTimeout(f"body not complete after {total} bytes")
        return total

    def _abort(self, exchange: _Exchange, seq: int):
        """Stop the I/O of an abandoned exchange."""
        logger.debug("Aborting HTTP request in flight: seq=%d", seq)
        response = exchange.response
        if response is not None:
            connection = getattr(response.raw, "connection", None)
            sock = getattr(connection, "sock", None)
            if sock is not None:
                try:
                    sock.shutdown(socket.SHUT_RDWR)
                except OSError as e:
                    logger.debug("Socket already closed: seq=%d, error=%s", seq, e)
        self.session.close()

    def _failure(
        self,
        seq: int,
        elapsed_ms: float,
        kind: FailureKind,
        error: BaseException,
        timed_out: bool = False,
    ) -> ProbeOutcome:
        return ProbeOutcome(
            seq=seq,
            mode=self.mode,
            success=False,
            elapsed_ms=elapsed_ms,
            failure=kind,
            error=str(error),
            timed_out=timed_out,
        )
