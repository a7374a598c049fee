"""Prober abstraction shared by the TCP and HTTP probe kinds."""

import os
from typing import Protocol

from tcping.cancellation import CancellationToken
from tcping.config import Options
from tcping.models import ProbeMode, ProbeOutcome, ResolvedTarget


class Prober(Protocol):
    """Protocol defining the interface for probe executors."""

    mode: ProbeMode

    def execute(
        self,
        token: CancellationToken,
        target: ResolvedTarget,
        timeout_ms: int,
        seq: int = 0,
    ) -> ProbeOutcome:
        """Issue one probe and return its outcome.

        Connect, request and read failures are returned as failed outcomes.

        Raises:
            ProbeCancelled: The token was cancelled while the probe was in flight
        """
        ...


def create_prober(options: Options) -> Prober:
    """Build the prober for ``options``.

    ``TCPING_PROBER=fake`` swaps in the seeded fake prober, which needs no
    network access.
    """
    mode = ProbeMode.HTTP if options.http_mode else ProbeMode.TCP

    if os.environ.get("TCPING_PROBER", "").lower() == "fake":
        from tcping.fake_prober import FakeProber

        return FakeProber(mode=mode)

    if mode == ProbeMode.HTTP:
        from tcping.prober_http import HttpProber

        return HttpProber(insecure=options.insecure)

    from tcping.prober_tcp import TcpProber

    return TcpProber()
