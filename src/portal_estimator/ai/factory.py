"""Text estimator factory.

Builds the configured provider once at process start; business code
receives it by injection.
"""

from __future__ import annotations

from portal_estimator.ai.base import NullEstimator, TextEstimator
from portal_estimator.config import AISettings
from portal_estimator.core.logging import get_logger

log = get_logger(__name__)


def create_text_estimator(settings: AISettings) -> TextEstimator:
    """Create the generative-text estimator for the given settings.

    Falls back to NullEstimator when the provider is disabled, unknown or
    missing credentials.
    """
    provider = settings.provider.lower()

    if provider == "groq":
        if not settings.groq_api_key:
            log.warning("Groq selected but no API key configured, using rules only")
            return NullEstimator()

        from portal_estimator.ai.groq_client import GroqTextEstimator

        log.info("Creating Groq text estimator", model=settings.groq_model)
        return GroqTextEstimator(
            api_key=settings.groq_api_key,
            model=settings.groq_model,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
        )

    if provider not in ("none", ""):
        log.warning("Unknown text estimator provider, using rules only", provider=provider)

    return NullEstimator()
