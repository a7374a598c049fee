"""Tests for tcping.workers.ProbeWorker."""

import logging

from tcping.cancellation import CancellationToken
from tcping.fake_prober import FakeProber
from tcping.models import AddressFamily, ProbeMode, ResolvedTarget
from tcping.scheduler import ProbeScheduler, SchedulerState
from tcping.stats import StatisticsAggregator
from tcping.workers import ProbeWorker

TARGET = ResolvedTarget(original="worker.test", address="192.0.2.1", family=AddressFamily.IPV4, port=80)


class ExplodingProber:
    """Prober that fails with an unexpected exception."""

    mode = ProbeMode.TCP

    def execute(self, token, target, timeout_ms, seq=0):
        raise RuntimeError("prober bug")


def make_scheduler(prober, count=3):
    return ProbeScheduler(prober, TARGET, StatisticsAggregator(), CancellationToken(), count=count, interval_ms=0)


class TestProbeWorker:
    """Test ProbeWorker background execution."""

    def test_worker_runs_scheduler(self):
        """Test the worker runs the loop and stores the final state."""
        scheduler = make_scheduler(FakeProber(seed=1))
        worker = ProbeWorker(scheduler)

        worker.start()
        worker.join(timeout=5)

        assert worker.finished.is_set()
        assert worker.result == SchedulerState.COMPLETED
        assert worker.error is None
        assert scheduler.aggregator.snapshot().sent == 3

    def test_worker_is_daemon(self):
        worker = ProbeWorker(make_scheduler(FakeProber()))

        assert worker.daemon is True
        assert worker.name == "tcping-probe-worker"

    def test_worker_exception_is_captured(self, caplog):
        """Test an exception in the loop is logged, stored and reported."""
        errors = []
        worker = ProbeWorker(make_scheduler(ExplodingProber()), on_error=errors.append)

        with caplog.at_level(logging.ERROR, logger="tcping.workers"):
            worker.start()
            worker.join(timeout=5)

        assert worker.finished.is_set()
        assert isinstance(worker.error, RuntimeError)
        assert errors == [worker.error]
        assert worker.result is None
        assert "Worker exception" in caplog.text
