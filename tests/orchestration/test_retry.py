"""Tests for retry strategies."""

import pytest

from conductor.core.settings import ConductorSettings
from conductor.orchestration.exceptions import NodeExecutionError, NodeTimeoutError
from conductor.orchestration.retry import ConstantBackoff, ExponentialBackoff, NoRetry


class TestExponentialBackoff:
    def test_delays_double_until_cap(self):
        strategy = ExponentialBackoff(max_retries=5, base_delay=0.5, max_delay=2.0)
        assert [strategy.next_delay(a) for a in range(4)] == [0.5, 1.0, 2.0, 2.0]

    def test_jitter_stays_in_range(self):
        strategy = ExponentialBackoff(base_delay=1.0, jitter=True, jitter_range=0.25)
        for _ in range(50):
            assert 0.75 <= strategy.next_delay(0) <= 1.25

    def test_bounded_by_max_retries(self):
        strategy = ExponentialBackoff(max_retries=2)
        assert strategy.should_retry(0, NodeExecutionError("a", "x"))
        assert strategy.should_retry(1, RuntimeError("x"))
        assert not strategy.should_retry(2, RuntimeError("x"))

    @pytest.mark.parametrize("error", [NodeTimeoutError("a", 1.0), TimeoutError()])
    def test_timeouts_never_retried(self, error):
        assert not ExponentialBackoff(max_retries=5).should_retry(0, error)

    def test_from_settings(self):
        settings = ConductorSettings(
            default_max_retries=4, retry_base_delay_seconds=0.1, retry_max_delay_seconds=1.0
        )
        strategy = ExponentialBackoff.from_settings(settings)
        assert (strategy.max_retries, strategy.base_delay, strategy.max_delay) == (4, 0.1, 1.0)

    def test_from_settings_node_override(self, fast_settings):
        assert ExponentialBackoff.from_settings(fast_settings, max_retries=0).max_retries == 0


class TestOtherStrategies:
    def test_constant(self):
        strategy = ConstantBackoff(max_retries=1, delay=0.2)
        assert strategy.next_delay(0) == 0.2
        assert strategy.should_retry(0)
        assert not strategy.should_retry(1)

    def test_no_retry(self):
        assert not NoRetry().should_retry(0, RuntimeError("x"))
