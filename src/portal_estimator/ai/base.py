"""Generative-text estimator interface.

Estimators accept a system prompt and a user prompt and return a
TextEstimatorResponse. They never raise: provider errors, malformed
JSON and missing configuration all come back as ``success=False`` so
callers can fall back to rules or defaults.
"""

from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Protocol, runtime_checkable

from portal_estimator.core.logging import get_logger

log = get_logger(__name__)

JSON_ONLY_SUFFIX = "\n\nRespond with valid JSON only, no markdown or explanation."

_FENCE_START = re.compile(r"^```(?:json)?", re.IGNORECASE)


@dataclass
class TextEstimatorResponse:
    """Outcome of one generative-text call."""

    success: bool
    data: dict[str, Any] | None = None
    text: str | None = None
    error: str | None = None
    cached: bool = False
    tokens_used: int = 0
    latency_ms: int = 0
    model: str | None = None


@runtime_checkable
class TextEstimator(Protocol):
    """Protocol for generative-text providers used as estimation fallback."""

    async def analyze_json(
        self, system_prompt: str, user_prompt: str
    ) -> TextEstimatorResponse:
        ...

    async def generate_text(
        self, system_prompt: str, user_prompt: str
    ) -> TextEstimatorResponse:
        ...


def parse_json_payload(text: str) -> dict[str, Any]:
    """Parse a JSON object from model output, tolerating markdown fences.

    Raises:
        ValueError: If the content is not a JSON object
    """
    cleaned = (text or "").strip()
    cleaned = _FENCE_START.sub("", cleaned, count=1)
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    cleaned = cleaned.strip()

    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ValueError(f"Response is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")
    return payload


async def call_with_timeout(
    call: Awaitable[TextEstimatorResponse], timeout_seconds: float
) -> TextEstimatorResponse | None:
    """Await an estimator call, returning None on timeout or error."""
    try:
        return await asyncio.wait_for(call, timeout=timeout_seconds)
    except asyncio.TimeoutError:
        log.warning("Text estimator timed out", timeout_seconds=timeout_seconds)
        return None
    except Exception as e:
        log.warning("Text estimator raised", error=str(e), error_type=type(e).__name__)
        return None


class NullEstimator:
    """Estimator used when no provider is configured.

    Always reports failure, so every caller takes its fallback path.
    """

    model = "none"

    async def analyze_json(
        self, system_prompt: str, user_prompt: str
    ) -> TextEstimatorResponse:
        log.debug("Text estimator not configured, skipping JSON analysis")
        return TextEstimatorResponse(success=False, error="No text estimator configured")

    async def generate_text(
        self, system_prompt: str, user_prompt: str
    ) -> TextEstimatorResponse:
        log.debug("Text estimator not configured, skipping generation")
        return TextEstimatorResponse(success=False, error="No text estimator configured")
