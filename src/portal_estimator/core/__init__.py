"""Core infrastructure: logging, errors and provider resilience."""

from portal_estimator.core.exceptions import (
    DataStoreError,
    EstimatePersistenceError,
    EstimatorError,
    InvalidScheduleError,
    TextEstimatorError,
    TicketNotFoundError,
    ValidationError,
)
from portal_estimator.core.logging import get_logger, setup_logging

__all__ = [
    "DataStoreError",
    "EstimatePersistenceError",
    "EstimatorError",
    "InvalidScheduleError",
    "TextEstimatorError",
    "TicketNotFoundError",
    "ValidationError",
    "get_logger",
    "setup_logging",
]
