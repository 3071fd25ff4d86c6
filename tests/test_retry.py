"""Tests for retry policy and circuit breaker."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from portal_estimator.core.retry import (
    CircuitBreaker,
    CircuitState,
    RetryConfig,
    get_circuit_breaker,
    get_circuit_breaker_status,
    reset_circuit_breaker,
)


class TestRetryConfig:
    """Tests for RetryConfig."""

    def test_exponential_delay(self):
        config = RetryConfig(base_delay=1.0, jitter=0.0)

        assert config.calculate_delay(1) == 1.0
        assert config.calculate_delay(2) == 2.0
        assert config.calculate_delay(3) == 4.0

    def test_delay_capped(self):
        config = RetryConfig(base_delay=1.0, max_delay=5.0, jitter=0.0)

        assert config.calculate_delay(10) == 5.0

    def test_jitter_bounds(self):
        config = RetryConfig(base_delay=1.0, jitter=0.1)

        for _ in range(20):
            assert 0.9 <= config.calculate_delay(1) <= 1.1

    def test_should_retry(self):
        config = RetryConfig(
            max_attempts=3,
            retryable_exceptions=(ConnectionError,),
            non_retryable_exceptions=(ConnectionRefusedError,),
        )

        assert config.should_retry(ConnectionError(), 1) is True
        assert config.should_retry(ConnectionError(), 3) is False
        assert config.should_retry(ValueError(), 1) is False
        assert config.should_retry(ConnectionRefusedError(), 1) is False


class TestCircuitBreaker:
    """Tests for CircuitBreaker state transitions."""

    def test_opens_after_threshold(self):
        breaker = CircuitBreaker(name="test", failure_threshold=2)

        breaker.record_failure()
        assert breaker.state == CircuitState.CLOSED

        breaker.record_failure()
        assert breaker.state == CircuitState.OPEN
        assert breaker.allow_request() is False
        assert breaker.reset_at is not None

    def test_half_open_after_timeout(self):
        breaker = CircuitBreaker(name="test", failure_threshold=1, reset_timeout=30)
        breaker.record_failure()
        breaker._last_failure_time = datetime.now() - timedelta(seconds=31)

        assert breaker.state == CircuitState.HALF_OPEN
        assert breaker.allow_request() is True

    def test_half_open_closes_on_success(self):
        breaker = CircuitBreaker(name="test", failure_threshold=1, success_threshold=2)
        breaker._transition_to_half_open()

        breaker.record_success()
        breaker.record_success()

        assert breaker.state == CircuitState.CLOSED

    def test_half_open_reopens_on_failure(self):
        breaker = CircuitBreaker(name="test", failure_threshold=1)
        breaker._transition_to_half_open()

        breaker.record_failure()

        assert breaker.state == CircuitState.OPEN

    def test_half_open_limits_calls(self):
        breaker = CircuitBreaker(name="test", half_open_max_calls=1)
        breaker._transition_to_half_open()

        assert breaker.allow_request() is True
        assert breaker.allow_request() is False


class TestRegistry:
    """Tests for the named breaker registry."""

    def test_same_name_same_breaker(self):
        assert get_circuit_breaker("registry_test") is get_circuit_breaker("registry_test")

    def test_status_and_reset(self):
        breaker = get_circuit_breaker("status_test", failure_threshold=1)
        breaker.record_failure()

        status = get_circuit_breaker_status()["status_test"]
        assert status["state"] == "open"
        assert status["failure_count"] == 1

        assert reset_circuit_breaker("status_test") is True
        assert get_circuit_breaker_status()["status_test"]["state"] == "closed"

    def test_reset_unknown(self):
        assert reset_circuit_breaker("never-created") is False


@pytest.mark.parametrize("attempt,expected", [(1, 0.5), (2, 1.0), (3, 2.0)])
def test_groq_style_backoff(attempt, expected):
    config = RetryConfig(base_delay=0.5, max_delay=10.0, jitter=0.0)
    assert config.calculate_delay(attempt) == expected
