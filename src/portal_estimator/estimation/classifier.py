"""Ticket classification.

Implements:
- Keyword rules with confidence scoring (tier 1)
- Generative-text fallback for uncertain tickets (tier 2)
- Escalation trigger scan, re-applied after any AI answer
- Full AI ticket analysis with post-processing
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from portal_estimator.ai.base import NullEstimator, TextEstimator, call_with_timeout
from portal_estimator.core.logging import get_logger
from portal_estimator.estimation.catalog import (
    CLASSIFICATION_PROMPT,
    DEFAULT_CATEGORY,
    ESCALATION_TRIGGERS,
    TICKET_ANALYSIS_PROMPT,
    TICKET_CATEGORIES,
    category_names,
    normalize_category,
)
from portal_estimator.estimation.models import (
    Classification,
    ClassificationSource,
    EscalationCheck,
    Sentiment,
    SuggestedArticle,
    TicketAnalysis,
    TicketPriority,
)

log = get_logger(__name__)

# Rule confidence when no category beats it
BASELINE_CONFIDENCE = 0.5

# Rule results above this skip the generative-text fallback
CONFIDENCE_THRESHOLD = 0.8

CONFIDENCE_SCALE = 1.5
CONFIDENCE_CAP = 0.95


def check_escalation(subject: str, description: str) -> EscalationCheck:
    """Scan ticket text for the fixed escalation triggers."""
    text = f"{subject} {description}".lower()

    for trigger in ESCALATION_TRIGGERS:
        if trigger in text:
            return EscalationCheck(
                requires_escalation=True,
                reason=f'Contains escalation trigger: "{trigger}"',
                trigger=trigger,
            )

    return EscalationCheck(requires_escalation=False)


def _clamp_unit(value: Any, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return max(0.0, min(1.0, number))


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


class TicketClassifier:
    """Two-tier ticket classifier.

    Usage:
        classifier = TicketClassifier(text_estimator, timeout_seconds=10.0)
        result = await classifier.classify(subject, description)
    """

    def __init__(
        self,
        text_estimator: TextEstimator | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.text_estimator = text_estimator or NullEstimator()
        self.timeout_seconds = timeout_seconds

    # ========================================================================
    # Tier 1: keyword rules
    # ========================================================================

    def classify_rules(self, subject: str, description: str) -> Classification:
        """Deterministic keyword classification.

        Each category scores matched keywords / keyword count. The raw
        ratio must beat the 0.5 baseline (general-inquiry, medium) to win;
        the winner's confidence is the ratio scaled by 1.5 and capped at
        0.95. Escalation triggers force critical priority.
        """
        text = f"{subject} {description}".lower()

        best = Classification(
            category=DEFAULT_CATEGORY,
            priority=TicketPriority.MEDIUM,
            confidence=BASELINE_CONFIDENCE,
        )
        best_ratio = BASELINE_CONFIDENCE

        for name, definition in TICKET_CATEGORIES.items():
            matches = sum(1 for keyword in definition.keywords if keyword in text)
            ratio = matches / len(definition.keywords)

            if ratio > best_ratio:
                best_ratio = ratio
                best = Classification(
                    category=name,
                    priority=definition.default_priority,
                    confidence=min(ratio * CONFIDENCE_SCALE, CONFIDENCE_CAP),
                )

        return self._apply_escalation(best, subject, description)

    # ========================================================================
    # Tier 2: generative-text fallback
    # ========================================================================

    async def classify(self, subject: str, description: str) -> Classification:
        """Classify a ticket, asking the text estimator only when rules are unsure.

        Any failure, timeout or malformed answer yields the rule result.
        """
        rules = self.classify_rules(subject, description)
        if rules.confidence > CONFIDENCE_THRESHOLD:
            return rules

        prompt = (
            "Classify this ticket:\n"
            f"Subject: {subject}\n"
            f"Description: {description}\n\n"
            f"Categories: {', '.join(category_names())}\n"
            "Priorities: low, medium, high, critical"
        )
        response = await call_with_timeout(
            self.text_estimator.analyze_json(CLASSIFICATION_PROMPT, prompt),
            self.timeout_seconds,
        )
        if response is None or not response.success or not response.data:
            log.debug(
                "Using rule-based classification",
                category=rules.category,
                confidence=round(rules.confidence, 3),
            )
            return rules

        data = response.data
        result = Classification(
            category=normalize_category(data.get("category")),
            priority=TicketPriority.normalize(data.get("priority")),
            confidence=_clamp_unit(data.get("confidence"), rules.confidence),
            source=ClassificationSource.AI,
        )

        result = self._apply_escalation(result, subject, description)
        log.info(
            "Ticket classified by text estimator",
            category=result.category,
            priority=result.priority.value,
            escalated=result.requires_escalation,
        )
        return result

    @staticmethod
    def _apply_escalation(
        result: Classification, subject: str, description: str
    ) -> Classification:
        escalation = check_escalation(subject, description)
        if escalation.requires_escalation:
            result.priority = TicketPriority.CRITICAL
            result.requires_escalation = True
            result.escalation_reason = escalation.reason
        return result

    # ========================================================================
    # Full analysis
    # ========================================================================

    async def analyze(
        self,
        subject: str,
        description: str,
        available_categories: list[str] | None = None,
        customer_history: dict[str, Any] | None = None,
        kb_article_titles: list[str] | None = None,
    ) -> TicketAnalysis | None:
        """Run a full AI analysis (sentiment, key issues, KB suggestions).

        Returns:
            Post-processed analysis, or None when the estimator is unavailable
        """
        categories = available_categories or category_names()
        prompt = self._build_analysis_prompt(
            subject, description, categories, customer_history, kb_article_titles
        )

        response = await call_with_timeout(
            self.text_estimator.analyze_json(TICKET_ANALYSIS_PROMPT, prompt),
            self.timeout_seconds,
        )
        if response is None or not response.success or not response.data:
            return None

        analysis = self.post_process(response.data, subject, description, categories)
        analysis.model_used = response.model
        analysis.tokens_used = response.tokens_used
        return analysis

    def post_process(
        self,
        data: dict[str, Any],
        subject: str,
        description: str,
        available_categories: list[str],
    ) -> TicketAnalysis:
        """Turn a raw analysis payload into a valid TicketAnalysis.

        Unknown category maps to the closest or first available one,
        unknown priority becomes medium, and a missed escalation is
        filled in from the trigger scan.
        """
        articles = []
        for item in data.get("suggested_kb_articles") or []:
            if isinstance(item, dict) and item.get("title"):
                articles.append(
                    SuggestedArticle(
                        id=str(item.get("id", "")),
                        title=str(item["title"]),
                        relevance_score=_clamp_unit(item.get("relevance_score"), 0.0),
                        excerpt=item.get("excerpt"),
                    )
                )

        try:
            sentiment = Sentiment(str(data.get("sentiment", "neutral")).lower())
        except ValueError:
            sentiment = Sentiment.NEUTRAL

        try:
            sentiment_score = max(-1.0, min(1.0, float(data.get("sentiment_score", 0.0))))
        except (TypeError, ValueError):
            sentiment_score = 0.0

        timestamp = data.get("analysis_timestamp")
        try:
            analysis_timestamp = (
                datetime.fromisoformat(str(timestamp).replace("Z", "+00:00"))
                if timestamp
                else datetime.now(timezone.utc)
            )
        except ValueError:
            analysis_timestamp = datetime.now(timezone.utc)

        analysis = TicketAnalysis(
            suggested_category=normalize_category(
                data.get("suggested_category"), available_categories
            ),
            suggested_priority=TicketPriority.normalize(data.get("suggested_priority")),
            category_confidence=_clamp_unit(data.get("category_confidence"), 0.0),
            priority_confidence=_clamp_unit(data.get("priority_confidence"), 0.0),
            sentiment=sentiment,
            sentiment_score=sentiment_score,
            urgency_indicators=_string_list(data.get("urgency_indicators")),
            key_issues=_string_list(data.get("key_issues")),
            affected_systems=_string_list(data.get("affected_systems")),
            requested_actions=_string_list(data.get("requested_actions")),
            suggested_kb_articles=articles,
            suggested_response=data.get("suggested_response"),
            requires_escalation=bool(data.get("requires_escalation", False)),
            escalation_reason=data.get("escalation_reason"),
            analysis_timestamp=analysis_timestamp,
        )

        if not analysis.requires_escalation:
            escalation = check_escalation(subject, description)
            if escalation.requires_escalation:
                analysis.requires_escalation = True
                analysis.escalation_reason = escalation.reason

        return analysis

    @staticmethod
    def _build_analysis_prompt(
        subject: str,
        description: str,
        categories: list[str],
        customer_history: dict[str, Any] | None,
        kb_article_titles: list[str] | None,
    ) -> str:
        prompt = (
            "Analyze this support ticket:\n\n"
            f"Subject: {subject}\n\n"
            f"Description:\n{description}\n\n"
            f"Available categories: {', '.join(categories)}"
        )

        if customer_history:
            prompt += (
                "\n\nCustomer history:\n"
                f"- Previous tickets: {customer_history.get('previous_tickets', 0)}\n"
                f"- Average priority: {customer_history.get('avg_priority', 'unknown')}\n"
                f"- Sentiment trend: {customer_history.get('sentiment_trend', 'unknown')}"
            )

        if kb_article_titles:
            titles = "\n".join(f"{i}. {t}" for i, t in enumerate(kb_article_titles, start=1))
            prompt += f"\n\nAvailable KB articles for suggestion:\n{titles}"

        prompt += """

Return JSON with this structure:
{
  "suggested_category": "string",
  "suggested_priority": "low|medium|high|critical",
  "category_confidence": 0.0-1.0,
  "priority_confidence": 0.0-1.0,
  "sentiment": "positive|neutral|concerned|frustrated|angry",
  "sentiment_score": -1.0 to 1.0,
  "urgency_indicators": ["string"],
  "key_issues": ["string"],
  "affected_systems": ["string"],
  "requested_actions": ["string"],
  "suggested_kb_articles": [{"id": "string", "title": "string", "relevance_score": 0.0-1.0}],
  "requires_escalation": boolean,
  "escalation_reason": "string or null"
}"""
        return prompt
