"""Estimator Exception Hierarchy.

Provides structured error handling with context preservation
and HTTP status code mapping.
"""

from __future__ import annotations

from typing import Any


class EstimatorError(Exception):
    """Base exception for all estimator errors.

    Provides:
    - Structured error context
    - HTTP status code mapping
    - Logging-friendly representation
    """

    status_code: int = 500
    error_code: str = "ESTIMATOR_ERROR"

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Additional context for debugging
            cause: Original exception if wrapping
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        result = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.cause:
            result["cause"] = str(self.cause)
        return result

    def __str__(self) -> str:
        """String representation for logging."""
        parts = [f"{self.error_code}: {self.message}"]
        if self.details:
            parts.append(f"details={self.details}")
        if self.cause:
            parts.append(f"cause={self.cause}")
        return " | ".join(parts)


# =============================================================================
# Data Store Errors
# =============================================================================


class DataStoreError(EstimatorError):
    """Reading schedules, calendar events or tickets failed."""

    status_code = 503
    error_code = "DATA_STORE_ERROR"


class EstimatePersistenceError(DataStoreError):
    """Writing an estimate to the sink failed.

    Recoverable: callers that create tickets continue without an estimate.
    """

    error_code = "ESTIMATE_PERSISTENCE_ERROR"


class TicketNotFoundError(EstimatorError):
    """Requested ticket does not exist."""

    status_code = 404
    error_code = "TICKET_NOT_FOUND"


# =============================================================================
# Input Errors
# =============================================================================


class ValidationError(EstimatorError):
    """Input failed validation."""

    status_code = 400
    error_code = "VALIDATION_ERROR"


class InvalidScheduleError(ValidationError):
    """Staff schedule row is malformed (bad weekday or time string)."""

    error_code = "INVALID_SCHEDULE"


# =============================================================================
# Generative-Text Errors
# =============================================================================


class TextEstimatorError(EstimatorError):
    """Generative-text provider failed.

    Never escapes a TextEstimator; used internally to carry the failure
    into a success=False response.
    """

    status_code = 502
    error_code = "TEXT_ESTIMATOR_ERROR"

