"""Text estimator using the Groq API.

Blocking SDK calls run in the default executor; retries and a shared
circuit breaker protect against transient provider failures.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime
from typing import Any

from portal_estimator.ai.base import (
    JSON_ONLY_SUFFIX,
    TextEstimatorResponse,
    parse_json_payload,
)
from portal_estimator.core.exceptions import TextEstimatorError
from portal_estimator.core.logging import get_logger
from portal_estimator.core.retry import CircuitOpen, RetryConfig, get_circuit_breaker

log = get_logger(__name__)

GROQ_RETRY_CONFIG = RetryConfig(
    max_attempts=3,
    base_delay=0.5,
    max_delay=10.0,
    retryable_exceptions=(ConnectionError, TimeoutError, OSError, RuntimeError),
)


class GroqTextEstimator:
    """Generative-text estimator backed by Groq chat completions."""

    def __init__(
        self,
        api_key: str,
        model: str = "llama-3.3-70b-versatile",
        temperature: float = 0.2,
        max_tokens: int = 512,
    ) -> None:
        """Initialize Groq estimator.

        Args:
            api_key: Groq API key
            model: Model name
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
        """
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

        self._client: Any = None
        self._loaded = False

        self._circuit_breaker = get_circuit_breaker(
            name="groq_api",
            failure_threshold=5,
            reset_timeout=60.0,
        )

    def load(self) -> None:
        """Initialize the Groq client.

        Called lazily on first request.
        """
        if self._loaded:
            return

        from groq import Groq

        log.info("Initializing Groq client", model=self.model)
        self._client = Groq(api_key=self.api_key)
        self._loaded = True

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def _call_api_with_retry(self, messages: list[dict[str, str]]) -> Any:
        """Call Groq with retry and circuit breaker protection.

        Raises:
            CircuitOpen: If circuit breaker is open
            Exception: If all retries exhausted
        """
        if not self._circuit_breaker.allow_request():
            reset_at = self._circuit_breaker.reset_at
            log.warning(
                "Groq circuit breaker open",
                reset_at=reset_at.isoformat() if reset_at else None,
            )
            raise CircuitOpen(self._circuit_breaker.name, reset_at or datetime.now())

        last_error: Exception | None = None
        for attempt in range(1, GROQ_RETRY_CONFIG.max_attempts + 1):
            try:
                response = self._client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                )
                self._circuit_breaker.record_success()
                return response

            except Exception as e:
                last_error = e
                self._circuit_breaker.record_failure()

                if not GROQ_RETRY_CONFIG.should_retry(e, attempt):
                    log.error(
                        "Groq API call failed (non-retryable)",
                        error=str(e),
                        attempt=attempt,
                    )
                    raise

                delay = GROQ_RETRY_CONFIG.calculate_delay(attempt)
                log.warning(
                    "Groq API call failed, retrying",
                    error=str(e),
                    attempt=attempt,
                    delay=round(delay, 2),
                )
                time.sleep(delay)

        raise last_error or TextEstimatorError("Groq API call failed")

    def _complete(self, system_prompt: str, user_prompt: str) -> tuple[str, int]:
        """Run one chat completion; returns (text, total tokens)."""
        if not self._loaded:
            self.load()

        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        response = self._call_api_with_retry(messages)

        text = response.choices[0].message.content or ""
        tokens = response.usage.total_tokens if response.usage else 0
        return text, tokens

    async def _run(self, system_prompt: str, user_prompt: str) -> tuple[str, int]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, lambda: self._complete(system_prompt, user_prompt)
        )

    async def analyze_json(
        self, system_prompt: str, user_prompt: str
    ) -> TextEstimatorResponse:
        """Request a JSON object; failures come back as success=False."""
        started = time.monotonic()
        try:
            text, tokens = await self._run(system_prompt, f"{user_prompt}{JSON_ONLY_SUFFIX}")
            data = parse_json_payload(text)
        except Exception as e:
            log.warning("Groq JSON analysis failed", error=str(e), model=self.model)
            return TextEstimatorResponse(
                success=False,
                error=str(e),
                latency_ms=int((time.monotonic() - started) * 1000),
                model=self.model,
            )

        return TextEstimatorResponse(
            success=True,
            data=data,
            text=text,
            tokens_used=tokens,
            latency_ms=int((time.monotonic() - started) * 1000),
            model=self.model,
        )

    async def generate_text(
        self, system_prompt: str, user_prompt: str
    ) -> TextEstimatorResponse:
        """Request free text; failures come back as success=False."""
        started = time.monotonic()
        try:
            text, tokens = await self._run(system_prompt, user_prompt)
        except Exception as e:
            log.warning("Groq generation failed", error=str(e), model=self.model)
            return TextEstimatorResponse(
                success=False,
                error=str(e),
                latency_ms=int((time.monotonic() - started) * 1000),
                model=self.model,
            )

        return TextEstimatorResponse(
            success=True,
            text=text,
            tokens_used=tokens,
            latency_ms=int((time.monotonic() - started) * 1000),
            model=self.model,
        )
