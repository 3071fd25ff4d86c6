"""Generative-text estimators used as classification and hours fallback."""

from portal_estimator.ai.base import (
    NullEstimator,
    TextEstimator,
    TextEstimatorResponse,
    parse_json_payload,
)
from portal_estimator.ai.factory import create_text_estimator

__all__ = [
    "NullEstimator",
    "TextEstimator",
    "TextEstimatorResponse",
    "create_text_estimator",
    "parse_json_payload",
]
