"""Tests for ticket classification and analysis."""

from __future__ import annotations

import asyncio

import pytest

from portal_estimator.ai.base import TextEstimatorResponse
from portal_estimator.estimation.classifier import TicketClassifier, check_escalation
from portal_estimator.estimation.models import ClassificationSource, Sentiment, TicketPriority


def ai_answer(**data) -> TextEstimatorResponse:
    return TextEstimatorResponse(success=True, data=data, model="test-model", tokens_used=42)


@pytest.fixture
def classifier(text_estimator):
    return TicketClassifier(text_estimator, timeout_seconds=0.5)


class TestEscalation:
    """Tests for the escalation trigger scan."""

    @pytest.mark.parametrize(
        "subject,trigger",
        [
            ("Possible data breach", "data breach"),
            ("GDPR request", "gdpr"),
            ("Site is DOWN", "down"),
            ("We cannot process payments", "cannot process payments"),
        ],
    )
    def test_triggers(self, subject, trigger):
        result = check_escalation(subject, "")

        assert result.requires_escalation is True
        assert result.trigger == trigger
        assert result.reason == f'Contains escalation trigger: "{trigger}"'

    def test_trigger_in_description(self):
        assert check_escalation("Question", "our lawyer mentioned a lawsuit").requires_escalation

    def test_no_trigger(self):
        result = check_escalation("Change logo", "Please swap the header image")

        assert result.requires_escalation is False
        assert result.reason is None


class TestRuleClassification:
    """Tests for the keyword tier."""

    def test_urgent_ticket(self, classifier):
        result = classifier.classify_rules("URGENT: server down", "emergency, critical, asap")

        assert result.category == "urgent"
        assert result.priority == TicketPriority.CRITICAL
        assert result.confidence == 0.95
        assert result.requires_escalation is True

    def test_billing_ticket(self, classifier):
        result = classifier.classify_rules("Invoice charge is wrong", "payment and refund")

        assert result.category == "billing"
        assert result.priority == TicketPriority.MEDIUM
        assert result.confidence == pytest.approx(4 / 7 * 1.5)
        assert result.source == ClassificationSource.RULES

    def test_ratio_below_baseline_keeps_general_inquiry(self, classifier):
        # billing matches 3 of 7
        result = classifier.classify_rules("Question about invoice", "payment and refund")

        assert result.category == "general-inquiry"
        assert result.priority == TicketPriority.MEDIUM
        assert result.confidence == 0.5

    def test_ratio_equal_to_baseline_keeps_general_inquiry(self, classifier):
        # urgent matches 3 of 6
        result = classifier.classify_rules("urgent", "emergency asap")

        assert result.category == "general-inquiry"
        assert result.confidence == 0.5

    def test_no_keywords_falls_back(self, classifier):
        result = classifier.classify_rules("Hello there", "")

        assert result.category == "general-inquiry"
        assert result.priority == TicketPriority.MEDIUM
        assert result.confidence == 0.5
        assert result.requires_escalation is False

    def test_escalation_forces_critical(self, classifier):
        result = classifier.classify_rules("security", "")

        assert result.priority == TicketPriority.CRITICAL
        assert result.requires_escalation is True
        assert "security" in result.escalation_reason

    def test_highest_ratio_wins(self, classifier):
        # technical-support matches 4 of 7, bug-report 1 of 5
        result = classifier.classify_rules("bug", "error crash, very slow")

        assert result.category == "technical-support"
        assert result.confidence == pytest.approx(4 / 7 * 1.5)


class TestClassify:
    """Tests for the two-tier classify flow."""

    @pytest.mark.asyncio
    async def test_confident_rules_skip_ai(self, classifier, text_estimator):
        result = await classifier.classify("urgent: down", "emergency critical asap")

        assert result.source == ClassificationSource.RULES
        assert result.priority == TicketPriority.CRITICAL
        text_estimator.analyze_json.assert_not_called()

    @pytest.mark.asyncio
    async def test_ai_answer_used(self, classifier, text_estimator):
        text_estimator.analyze_json.return_value = ai_answer(
            category="Billing Stuff", priority="high", confidence=0.9
        )

        result = await classifier.classify("Question about invoice", "payment refund")

        assert result.source == ClassificationSource.AI
        assert result.category == "billing"
        assert result.priority == TicketPriority.HIGH
        assert result.confidence == 0.9
        text_estimator.analyze_json.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_ai_garbage_normalized(self, classifier, text_estimator):
        text_estimator.analyze_json.return_value = ai_answer(
            category="???", priority="whenever", confidence="very"
        )

        result = await classifier.classify("Hello there", "")

        assert result.category == "technical-support"
        assert result.priority == TicketPriority.MEDIUM
        assert result.confidence == 0.5

    @pytest.mark.asyncio
    async def test_escalation_reapplied_after_ai(self, classifier, text_estimator):
        text_estimator.analyze_json.return_value = ai_answer(
            category="general-inquiry", priority="low", confidence=0.7
        )

        result = await classifier.classify("legal question", "")

        assert result.source == ClassificationSource.AI
        assert result.priority == TicketPriority.CRITICAL
        assert result.requires_escalation is True

    @pytest.mark.asyncio
    async def test_ai_failure_uses_rules(self, classifier, text_estimator):
        result = await classifier.classify("Hello there", "")

        assert result.source == ClassificationSource.RULES
        assert result.category == "general-inquiry"

    @pytest.mark.asyncio
    async def test_ai_exception_uses_rules(self, classifier, text_estimator):
        text_estimator.analyze_json.side_effect = RuntimeError("provider exploded")

        result = await classifier.classify("Question about invoice", "payment refund")

        assert result.source == ClassificationSource.RULES
        assert result.category == "general-inquiry"
        text_estimator.analyze_json.assert_called_once()

    @pytest.mark.asyncio
    async def test_ai_timeout_uses_rules(self, text_estimator):
        async def slow(*args, **kwargs):
            await asyncio.sleep(1)
            return ai_answer(category="billing", priority="high", confidence=0.9)

        text_estimator.analyze_json.side_effect = slow
        classifier = TicketClassifier(text_estimator, timeout_seconds=0.01)

        result = await classifier.classify("Hello there", "")

        assert result.source == ClassificationSource.RULES

    @pytest.mark.asyncio
    async def test_without_estimator(self):
        result = await TicketClassifier().classify("Hello there", "")

        assert result.category == "general-inquiry"


class TestAnalyze:
    """Tests for full ticket analysis."""

    @pytest.mark.asyncio
    async def test_unavailable_returns_none(self, classifier):
        assert await classifier.analyze("Printer", "Out of toner") is None

    @pytest.mark.asyncio
    async def test_post_processing(self, classifier, text_estimator):
        text_estimator.analyze_json.return_value = ai_answer(
            suggested_category="unknown-thing",
            suggested_priority="HIGH",
            category_confidence=1.7,
            sentiment="furious",
            sentiment_score=5,
            key_issues=["checkout broken", None],
            suggested_kb_articles=[
                {"id": "kb-1", "title": "Restarting the shop", "relevance_score": 0.8},
                {"id": "kb-2"},
            ],
            requires_escalation=False,
        )

        analysis = await classifier.analyze("Shop outage", "Checkout is broken")

        assert analysis.suggested_category == "technical-support"
        assert analysis.suggested_priority == TicketPriority.HIGH
        assert analysis.category_confidence == 1.0
        assert analysis.sentiment == Sentiment.NEUTRAL
        assert analysis.sentiment_score == 1.0
        assert analysis.key_issues == ["checkout broken"]
        assert [a.id for a in analysis.suggested_kb_articles] == ["kb-1"]
        assert analysis.requires_escalation is True
        assert "outage" in analysis.escalation_reason
        assert analysis.model_used == "test-model"
        assert analysis.tokens_used == 42

    @pytest.mark.asyncio
    async def test_restricted_categories(self, classifier, text_estimator):
        text_estimator.analyze_json.return_value = ai_answer(
            suggested_category="billing question", sentiment="frustrated"
        )

        analysis = await classifier.analyze(
            "Invoice", "Wrong amount", available_categories=["hosting", "billing"]
        )

        assert analysis.suggested_category == "billing"
        assert analysis.sentiment == Sentiment.FRUSTRATED
        assert analysis.requires_escalation is False

    def test_prompt_includes_history_and_articles(self, classifier):
        prompt = classifier._build_analysis_prompt(
            "Subject",
            "Body",
            ["billing"],
            {"previous_tickets": 3},
            ["Reset password", "Invoices"],
        )

        assert "Previous tickets: 3" in prompt
        assert "1. Reset password" in prompt
        assert "2. Invoices" in prompt
