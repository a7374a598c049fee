"""Tests for tcping.fake_prober.FakeProber behavior."""

import pytest

from tcping.cancellation import CancellationToken
from tcping.config import Options
from tcping.errors import ProbeCancelled
from tcping.fake_prober import FakeProber
from tcping.models import AddressFamily, FailureKind, ProbeMode, ResolvedTarget
from tcping.prober import create_prober

TARGET = ResolvedTarget(original="fake.test", address="192.0.2.1", family=AddressFamily.IPV4, port=80)


class TestFakeProber:
    """Test FakeProber behavior and contracts."""

    def test_deterministic_with_seed(self):
        """Test two probers with the same seed produce identical outcomes."""
        first = FakeProber(mode=ProbeMode.HTTP, seed=42)
        second = FakeProber(mode=ProbeMode.HTTP, seed=42)
        token = CancellationToken()

        for seq in range(20):
            a = first.execute(token, TARGET, 1000, seq)
            b = second.execute(token, TARGET, 1000, seq)
            assert a == b

    def test_records_calls(self):
        prober = FakeProber(seed=1)
        token = CancellationToken()
        for seq in range(3):
            prober.execute(token, TARGET, 1000, seq)

        assert prober.calls == [0, 1, 2]

    def test_tcp_outcomes_carry_no_bytes(self):
        """Test TCP outcomes never report transferred bytes."""
        prober = FakeProber(mode=ProbeMode.TCP, seed=5)
        token = CancellationToken()

        for seq in range(50):
            outcome = prober.execute(token, TARGET, 1000, seq)
            assert outcome.mode == ProbeMode.TCP
            assert outcome.bytes_transferred == 0
            assert outcome.status_code is None

    def test_loss_is_timed_out_failure(self):
        """Test a simulated loss looks like a connect timeout."""
        prober = FakeProber(seed=9)
        prober.loss_probability = 1.0

        outcome = prober.execute(CancellationToken(), TARGET, 750, 0)

        assert outcome.success is False
        assert outcome.failure == FailureKind.EXECUTION
        assert outcome.timed_out is True
        assert outcome.elapsed_ms == 750.0

    def test_http_error_status(self):
        """Test the simulated 503 is answered but unsuccessful."""
        prober = FakeProber(mode=ProbeMode.HTTP, seed=9)
        prober.loss_probability = 0.0
        prober.error_status_probability = 1.0

        outcome = prober.execute(CancellationToken(), TARGET, 1000, 0)

        assert outcome.status_code == 503
        assert outcome.success is False
        assert outcome.answered is True

    def test_http_success_payload(self):
        prober = FakeProber(mode=ProbeMode.HTTP, seed=9)
        prober.loss_probability = 0.0
        prober.error_status_probability = 0.0

        outcome = prober.execute(CancellationToken(), TARGET, 1000, 0)

        assert outcome.success is True
        assert outcome.status_code == 200
        assert prober.base_payload <= outcome.bytes_transferred <= prober.base_payload + 256

    def test_latency_positive(self):
        """Test simulated latency never drops to zero or below."""
        prober = FakeProber(seed=3)
        prober.loss_probability = 0.0
        prober.latency_variance = 100.0
        token = CancellationToken()

        for seq in range(200):
            assert prober.execute(token, TARGET, 1000, seq).elapsed_ms > 0

    def test_cancelled_token_raises(self):
        token = CancellationToken()
        token.cancel()

        with pytest.raises(ProbeCancelled):
            FakeProber().execute(token, TARGET, 1000, 0)


class TestCreateProber:
    """Test prober selection from options and environment."""

    def test_fake_selected_by_environment(self, monkeypatch):
        monkeypatch.setenv("TCPING_PROBER", "fake")

        prober = create_prober(Options(http_mode=True))

        assert isinstance(prober, FakeProber)
        assert prober.mode == ProbeMode.HTTP

    def test_tcp_by_default(self, monkeypatch):
        monkeypatch.delenv("TCPING_PROBER", raising=False)
        from tcping.prober_tcp import TcpProber

        assert isinstance(create_prober(Options()), TcpProber)

    def test_http_mode(self, monkeypatch):
        monkeypatch.delenv("TCPING_PROBER", raising=False)
        from tcping.prober_http import HttpProber

        prober = create_prober(Options(http_mode=True, insecure=True))

        assert isinstance(prober, HttpProber)
        assert prober.insecure is True
