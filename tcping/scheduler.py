"""Probe scheduler: fixed-count or unbounded probing at a fixed interval."""

import logging
from collections.abc import Callable
from enum import Enum

from tcping.cancellation import CancellationToken
from tcping.errors import ProbeCancelled
from tcping.models import ProbeOutcome, ResolvedTarget
from tcping.prober import Prober
from tcping.stats import StatisticsAggregator

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PROBING = "probing"
    WAITING = "waiting"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ProbeScheduler:
    """Drives the probe loop for a single run.

    Key features:
    - One probe in flight at a time, sequence numbers from 0 upward
    - ``count == 0`` repeats until the token is cancelled
    - Interval waits race the cancellation token, so an interrupt never
      waits out the remaining interval
    - Every completed probe is recorded before the next one starts

    State machine::

        IDLE -> RUNNING -> (PROBING <-> WAITING) -> COMPLETED | CANCELLED

    Not reusable: :meth:`run` may be called once.
    """

    def __init__(
        self,
        prober: Prober,
        target: ResolvedTarget,
        aggregator: StatisticsAggregator,
        token: CancellationToken,
        count: int = 4,
        interval_ms: int = 1000,
        timeout_ms: int = 1000,
        on_outcome: Callable[[ProbeOutcome], None] | None = None,
        on_cancelled: Callable[[int], None] | None = None,
    ):
        """Initialize probe scheduler.

        Args:
            prober: Prober issuing each attempt
            target: Resolved target, shared by every attempt
            aggregator: Statistics sink for every completed attempt
            token: Run cancellation token
            count: Number of probes, 0 for unbounded
            interval_ms: Delay between probes in milliseconds
            timeout_ms: Per-probe timeout in milliseconds
            on_outcome: Called with each outcome after it is recorded
            on_cancelled: Called with the sequence number of a probe aborted in flight
        """
        if count < 0:
            raise ValueError("count must be non-negative")
        if interval_ms < 0:
            raise ValueError("interval_ms must be non-negative")

        self.prober = prober
        self.target = target
        self.aggregator = aggregator
        self.token = token
        self.count = count
        self.interval_ms = interval_ms
        self.timeout_ms = timeout_ms
        self.on_outcome = on_outcome
        self.on_cancelled = on_cancelled

        self.state = SchedulerState.IDLE
        self.probes_completed = 0

    def _transition(self, state: SchedulerState):
        logger.debug("Scheduler state: %s -> %s", self.state.value, state.value)
        self.state = state

    def run(self) -> SchedulerState:
        """Run the probe loop until the count is reached or the token is cancelled.

        Returns:
            Final state, COMPLETED or CANCELLED
        """
        if self.state != SchedulerState.IDLE:
            raise RuntimeError(f"scheduler already ran (state={self.state.value})")

        self._transition(SchedulerState.RUNNING)
        logger.info(
            "Probing started: target=%s, mode=%s, count=%d, interval=%dms, timeout=%dms",
            self.target.original,
            self.prober.mode.value,
            self.count,
            self.interval_ms,
            self.timeout_ms,
        )

        seq = 0
        while True:
            if self.token.cancelled:
                self._transition(SchedulerState.CANCELLED)
                break

            self._transition(SchedulerState.PROBING)
            try:
                outcome = self.prober.execute(self.token, self.target, self.timeout_ms, seq)
            except ProbeCancelled:
                logger.debug("Probe aborted in flight: seq=%d", seq)
                if self.on_cancelled is not None:
                    self.on_cancelled(seq)
                self._transition(SchedulerState.CANCELLED)
                break

            self.aggregator.record(outcome)
            self.probes_completed += 1
            if self.on_outcome is not None:
                self.on_outcome(outcome)

            if self.count != 0 and seq == self.count - 1:
                self._transition(SchedulerState.COMPLETED)
                break

            self._transition(SchedulerState.WAITING)
            if self.token.wait(self.interval_ms / 1000.0):
                self._transition(SchedulerState.CANCELLED)
                break

            seq += 1

        logger.info("Probing finished: state=%s, probes=%d", self.state.value, self.probes_completed)
        return self.state
