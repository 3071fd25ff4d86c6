"""Tests for the generative-text estimators."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from portal_estimator.ai.base import NullEstimator, parse_json_payload
from portal_estimator.ai.factory import create_text_estimator
from portal_estimator.ai.groq_client import GroqTextEstimator
from portal_estimator.config import AISettings
from portal_estimator.core.retry import reset_circuit_breaker


def completion(content: str, tokens: int = 120) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(total_tokens=tokens),
    )


class TestParseJsonPayload:
    """Tests for JSON extraction from model output."""

    @pytest.mark.parametrize(
        "text",
        [
            '{"category": "billing"}',
            '```json\n{"category": "billing"}\n```',
            '```\n{"category": "billing"}\n```',
            '  {"category": "billing"}  ',
        ],
    )
    def test_accepts_fenced_and_plain(self, text):
        assert parse_json_payload(text) == {"category": "billing"}

    @pytest.mark.parametrize("text", ["", "not json", "[1, 2]", '"billing"'])
    def test_rejects_non_objects(self, text):
        with pytest.raises(ValueError):
            parse_json_payload(text)


class TestNullEstimator:
    @pytest.mark.asyncio
    async def test_always_fails(self):
        estimator = NullEstimator()

        json_response = await estimator.analyze_json("system", "user")
        text_response = await estimator.generate_text("system", "user")

        assert json_response.success is False
        assert text_response.success is False
        assert json_response.error


class TestFactory:
    """Tests for create_text_estimator."""

    def test_none_provider(self):
        assert isinstance(create_text_estimator(AISettings(provider="none")), NullEstimator)

    def test_groq_without_key(self):
        estimator = create_text_estimator(AISettings(provider="groq", groq_api_key=""))

        assert isinstance(estimator, NullEstimator)

    def test_groq_with_key(self):
        estimator = create_text_estimator(
            AISettings(provider="GROQ", groq_api_key="gsk_test", groq_model="test-model")
        )

        assert isinstance(estimator, GroqTextEstimator)
        assert estimator.model == "test-model"
        assert estimator.is_loaded is False

    def test_unknown_provider(self):
        assert isinstance(create_text_estimator(AISettings(provider="oracle")), NullEstimator)


class TestGroqTextEstimator:
    """Tests for GroqTextEstimator with a stubbed client."""

    @pytest.fixture
    def estimator(self):
        reset_circuit_breaker("groq_api")
        estimator = GroqTextEstimator(api_key="gsk_test", model="test-model")
        estimator._client = MagicMock()
        estimator._loaded = True
        yield estimator
        reset_circuit_breaker("groq_api")

    @pytest.mark.asyncio
    async def test_analyze_json(self, estimator):
        estimator._client.chat.completions.create.return_value = completion(
            '```json\n{"estimated_hours": 3}\n```'
        )

        response = await estimator.analyze_json("system", "Estimate this")

        assert response.success is True
        assert response.data == {"estimated_hours": 3}
        assert response.tokens_used == 120
        assert response.model == "test-model"

        kwargs = estimator._client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["messages"][0] == {"role": "system", "content": "system"}
        assert kwargs["messages"][1]["content"].startswith("Estimate this")
        assert "valid JSON only" in kwargs["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_malformed_json(self, estimator):
        estimator._client.chat.completions.create.return_value = completion("sure thing!")

        response = await estimator.analyze_json("system", "user")

        assert response.success is False
        assert "not valid JSON" in response.error

    @pytest.mark.asyncio
    async def test_provider_error(self, estimator):
        estimator._client.chat.completions.create.side_effect = ValueError("bad request")

        response = await estimator.analyze_json("system", "user")

        assert response.success is False
        assert response.error == "bad request"
        # Non-retryable: one attempt only
        assert estimator._client.chat.completions.create.call_count == 1

    @pytest.mark.asyncio
    async def test_generate_text(self, estimator):
        estimator._client.chat.completions.create.return_value = completion("Hello", tokens=5)

        response = await estimator.generate_text("system", "user")

        assert response.success is True
        assert response.text == "Hello"
        assert response.data is None
        assert response.tokens_used == 5

    @pytest.mark.asyncio
    async def test_open_circuit_rejects(self, estimator):
        breaker = estimator._circuit_breaker
        for _ in range(breaker.failure_threshold):
            breaker.record_failure()

        response = await estimator.analyze_json("system", "user")

        assert response.success is False
        assert "is open" in response.error
        estimator._client.chat.completions.create.assert_not_called()
