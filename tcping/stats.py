"""Running statistics over probe outcomes, safe for concurrent updates."""

import logging
import threading

from tcping.models import ProbeMode, ProbeOutcome, Statistics

logger = logging.getLogger(__name__)


def bandwidth_mbps(total_bytes: int, elapsed_ms: float) -> float:
    """Estimate throughput in Mbps: ``(bytes * 8) / (elapsed_ms * 1000)``.

    Returns 0.0 when no time elapsed.
    """
    if elapsed_ms <= 0:
        return 0.0
    return (total_bytes * 8) / (elapsed_ms * 1000)


def _clamp(value: float, low: float, high: float) -> float:
    # A float sum divided back down can land an ulp outside its own extrema
    return min(max(value, low), high)


class StatisticsAggregator:
    """Accumulates probe results for one run.

    The sent counter has its own lock and is bumped on every call, success
    or not. Everything else (responded count, time and bandwidth sums and
    extrema, byte total) changes only on success and is guarded as one unit
    by a second lock, so extrema and averages are never computed from a
    half-updated state.

    Thread-safe: any number of workers may record concurrently, and
    :meth:`snapshot` may be called mid-run.
    """

    def __init__(self):
        self._sent_lock = threading.Lock()
        self._sent = 0

        self._lock = threading.Lock()
        self._responded = 0
        self._total_time = 0.0
        self._min_time = 0.0
        self._max_time = 0.0
        self._total_bytes = 0
        self._total_bandwidth = 0.0
        self._min_bandwidth = 0.0
        self._max_bandwidth = 0.0

    def _count_sent(self):
        with self._sent_lock:
            self._sent += 1

    def record_tcp(self, elapsed_ms: float, success: bool):
        """Record one TCP connect attempt."""
        self._count_sent()
        if not success:
            return

        with self._lock:
            self._responded += 1
            self._total_time += elapsed_ms
            if self._responded == 1:
                self._min_time = elapsed_ms
                self._max_time = elapsed_ms
                return
            self._min_time = min(self._min_time, elapsed_ms)
            self._max_time = max(self._max_time, elapsed_ms)

    def record_http(self, elapsed_ms: float, total_bytes: int, success: bool):
        """Record one HTTP GET attempt, including transferred bytes."""
        self._count_sent()
        if not success:
            return

        bandwidth = bandwidth_mbps(total_bytes, elapsed_ms)

        with self._lock:
            self._responded += 1
            self._total_bytes += total_bytes
            self._total_time += elapsed_ms
            self._total_bandwidth += bandwidth
            if self._responded == 1:
                self._min_time = self._max_time = elapsed_ms
                self._min_bandwidth = self._max_bandwidth = bandwidth
                return
            self._min_time = min(self._min_time, elapsed_ms)
            self._max_time = max(self._max_time, elapsed_ms)
            self._min_bandwidth = min(self._min_bandwidth, bandwidth)
            self._max_bandwidth = max(self._max_bandwidth, bandwidth)

    def record(self, outcome: ProbeOutcome):
        """Record an outcome according to its probe mode."""
        if outcome.mode == ProbeMode.HTTP:
            self.record_http(outcome.elapsed_ms, outcome.bytes_transferred, outcome.success)
        else:
            self.record_tcp(outcome.elapsed_ms, outcome.success)

    def snapshot(self) -> Statistics:
        """Return a consistent copy of the current statistics."""
        with self._lock:
            responded = self._responded
            fields = {}
            if responded > 0:
                fields = dict(
                    min_time=self._min_time,
                    max_time=self._max_time,
                    avg_time=_clamp(self._total_time / responded, self._min_time, self._max_time),
                    total_bytes=self._total_bytes,
                    min_bandwidth=self._min_bandwidth,
                    max_bandwidth=self._max_bandwidth,
                    avg_bandwidth=_clamp(self._total_bandwidth / responded, self._min_bandwidth, self._max_bandwidth),
                )

        # Read after the success fields: sent is always bumped first, so
        # responded <= sent holds even while other threads are recording.
        with self._sent_lock:
            sent = self._sent

        return Statistics(sent=sent, responded=responded, **fields)
