"""Fake prober for tcping testing and offline simulation."""

import random

from tcping.cancellation import CancellationToken
from tcping.errors import ProbeCancelled
from tcping.models import FailureKind, ProbeMode, ProbeOutcome, ResolvedTarget


class FakeProber:
    """Generates simulated probe outcomes without touching the network."""

    def __init__(self, mode: ProbeMode = ProbeMode.TCP, seed: int | None = None):
        """Initialize with optional random seed for deterministic behavior."""
        self.mode = mode
        # Isolated random instance for thread safety
        self._random = random.Random(seed)
        self.calls = []  # sequence numbers, in call order

        # Simulation parameters
        self.base_latency = 25.0  # ms
        self.latency_variance = 5.0
        self.loss_probability = 0.02
        self.base_payload = 1024  # bytes, HTTP only
        self.error_status_probability = 0.05  # HTTP only, 503 instead of 200

    def execute(
        self,
        token: CancellationToken,
        target: ResolvedTarget,
        timeout_ms: int,
        seq: int = 0,
    ) -> ProbeOutcome:
        """Generate a single simulated outcome for ``target``."""
        if token.cancelled:
            raise ProbeCancelled(seq)

        self.calls.append(seq)

        if self._random.random() < self.loss_probability:
            elapsed = float(timeout_ms)
            return ProbeOutcome(
                seq=seq,
                mode=self.mode,
                success=False,
                elapsed_ms=elapsed,
                failure=FailureKind.EXECUTION,
                error="Connection timeout",
                timed_out=True,
            )

        latency = max(0.1, self.base_latency + self._random.gauss(0, self.latency_variance))
        latency = round(latency, 2)

        if self.mode == ProbeMode.TCP:
            return ProbeOutcome(
                seq=seq,
                mode=self.mode,
                success=True,
                elapsed_ms=latency,
                local_address="127.0.0.1:50000",
            )

        status = 503 if self._random.random() < self.error_status_probability else 200
        return ProbeOutcome(
            seq=seq,
            mode=self.mode,
            success=200 <= status < 400,
            elapsed_ms=latency,
            bytes_transferred=self.base_payload + self._random.randint(0, 256),
            status_code=status,
            reason="OK" if status == 200 else "Service Unavailable",
            headers=[("Content-Type", "text/html"), ("Server", "fake")],
        )
