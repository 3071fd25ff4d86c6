"""Retry policy and circuit breaker for outbound provider calls.

Usage:
    from portal_estimator.core.retry import RetryConfig, get_circuit_breaker

    breaker = get_circuit_breaker("groq_api", failure_threshold=5)
    if breaker.allow_request():
        try:
            result = call_provider(...)
            breaker.record_success()
        except Exception:
            breaker.record_failure()
            raise
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from portal_estimator.core.logging import get_logger

log = get_logger(__name__)


class CircuitOpen(Exception):
    """Raised when circuit breaker is open."""

    def __init__(self, name: str, reset_at: datetime):
        super().__init__(f"Circuit breaker '{name}' is open, resets at {reset_at.isoformat()}")
        self.name = name
        self.reset_at = reset_at


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    base_delay: float = 1.0  # seconds
    max_delay: float = 60.0  # seconds
    exponential_base: float = 2.0
    jitter: float = 0.1
    retryable_exceptions: tuple[type[Exception], ...] = (Exception,)
    non_retryable_exceptions: tuple[type[Exception], ...] = ()

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay for given attempt with exponential backoff and jitter.

        Args:
            attempt: Current attempt number (1-based)

        Returns:
            Delay in seconds
        """
        delay = min(
            self.base_delay * (self.exponential_base ** (attempt - 1)),
            self.max_delay,
        )

        jitter_range = delay * self.jitter
        delay += random.uniform(-jitter_range, jitter_range)

        return max(0.1, delay)

    def should_retry(self, exception: Exception, attempt: int) -> bool:
        """Check if exception should trigger retry.

        Args:
            exception: The exception that occurred
            attempt: Current attempt number

        Returns:
            True if should retry
        """
        if attempt >= self.max_attempts:
            return False

        if isinstance(exception, self.non_retryable_exceptions):
            return False

        return isinstance(exception, self.retryable_exceptions)


@dataclass
class CircuitBreaker:
    """Circuit breaker protecting the estimator from a failing provider.

    States:
    - CLOSED: Normal operation, requests pass through
    - OPEN: Provider failing, requests rejected immediately
    - HALF_OPEN: Testing recovery, limited requests allowed
    """

    name: str
    failure_threshold: int = 5
    success_threshold: int = 2
    reset_timeout: float = 60.0
    half_open_max_calls: int = 3

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _failure_count: int = field(default=0, init=False)
    _success_count: int = field(default=0, init=False)
    _last_failure_time: datetime | None = field(default=None, init=False)
    _half_open_calls: int = field(default=0, init=False)

    @property
    def state(self) -> CircuitState:
        """Get current circuit state."""
        self._check_state_transition()
        return self._state

    def _check_state_transition(self) -> None:
        if self._state == CircuitState.OPEN and self._last_failure_time:
            elapsed = (datetime.now() - self._last_failure_time).total_seconds()
            if elapsed >= self.reset_timeout:
                self._transition_to_half_open()

    def _transition_to_open(self) -> None:
        log.warning("Circuit breaker open", breaker=self.name, failures=self._failure_count)
        self._state = CircuitState.OPEN
        self._last_failure_time = datetime.now()

    def _transition_to_half_open(self) -> None:
        log.info("Circuit breaker half-open, testing recovery", breaker=self.name)
        self._state = CircuitState.HALF_OPEN
        self._half_open_calls = 0
        self._success_count = 0

    def _transition_to_closed(self) -> None:
        log.info("Circuit breaker closed", breaker=self.name)
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._half_open_calls = 0
        self._last_failure_time = None

    def allow_request(self) -> bool:
        """Check if a request should be allowed."""
        self._check_state_transition()

        if self._state == CircuitState.CLOSED:
            return True

        if self._state == CircuitState.OPEN:
            return False

        if self._half_open_calls < self.half_open_max_calls:
            self._half_open_calls += 1
            return True

        return False

    def record_success(self) -> None:
        """Record a successful request."""
        if self._state == CircuitState.HALF_OPEN:
            self._success_count += 1
            if self._success_count >= self.success_threshold:
                self._transition_to_closed()
        elif self._state == CircuitState.CLOSED:
            self._failure_count = max(0, self._failure_count - 1)

    def record_failure(self) -> None:
        """Record a failed request."""
        self._failure_count += 1
        self._last_failure_time = datetime.now()

        if self._state == CircuitState.HALF_OPEN:
            self._transition_to_open()
        elif self._state == CircuitState.CLOSED:
            if self._failure_count >= self.failure_threshold:
                self._transition_to_open()

    @property
    def reset_at(self) -> datetime | None:
        """Get time when circuit will transition to half-open."""
        if self._state == CircuitState.OPEN and self._last_failure_time:
            return self._last_failure_time + timedelta(seconds=self.reset_timeout)
        return None


_circuit_breakers: dict[str, CircuitBreaker] = {}


def get_circuit_breaker(
    name: str,
    failure_threshold: int = 5,
    reset_timeout: float = 60.0,
) -> CircuitBreaker:
    """Get or create a circuit breaker by name.

    Args:
        name: Unique name for the circuit breaker
        failure_threshold: Failures before opening
        reset_timeout: Seconds before recovery attempt

    Returns:
        Circuit breaker instance
    """
    if name not in _circuit_breakers:
        _circuit_breakers[name] = CircuitBreaker(
            name=name,
            failure_threshold=failure_threshold,
            reset_timeout=reset_timeout,
        )
    return _circuit_breakers[name]


def get_circuit_breaker_status() -> dict[str, dict[str, Any]]:
    """Get status of all circuit breakers."""
    return {
        name: {
            "state": breaker.state.value,
            "failure_count": breaker._failure_count,
            "reset_at": breaker.reset_at.isoformat() if breaker.reset_at else None,
        }
        for name, breaker in _circuit_breakers.items()
    }


def reset_circuit_breaker(name: str) -> bool:
    """Manually reset a circuit breaker.

    Returns:
        True if reset, False if not found
    """
    if name in _circuit_breakers:
        _circuit_breakers[name]._transition_to_closed()
        return True
    return False
