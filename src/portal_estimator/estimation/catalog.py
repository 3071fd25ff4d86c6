"""Ticket categories, escalation triggers and complexity indicators.

Keyword matching everywhere is a case-insensitive substring test against
``f"{subject} {description}".lower()``.
"""

from __future__ import annotations

from dataclasses import dataclass

from portal_estimator.estimation.models import TicketPriority


@dataclass(frozen=True)
class CategoryDefinition:
    """Known ticket category."""

    name: str
    description: str
    keywords: tuple[str, ...]
    default_priority: TicketPriority
    typical_hours: float


TICKET_CATEGORIES: dict[str, CategoryDefinition] = {
    "technical-support": CategoryDefinition(
        name="technical-support",
        description="Technical issues, bugs, errors, troubleshooting",
        keywords=("error", "bug", "broken", "not working", "crash", "slow", "issue"),
        default_priority=TicketPriority.MEDIUM,
        typical_hours=2.0,
    ),
    "billing": CategoryDefinition(
        name="billing",
        description="Invoice, payment, pricing, subscription questions",
        keywords=("invoice", "payment", "charge", "bill", "price", "cost", "refund"),
        default_priority=TicketPriority.MEDIUM,
        typical_hours=1.0,
    ),
    "general-inquiry": CategoryDefinition(
        name="general-inquiry",
        description="General questions, information requests",
        keywords=("question", "how do", "can you", "wondering", "information"),
        default_priority=TicketPriority.LOW,
        typical_hours=0.5,
    ),
    "bug-report": CategoryDefinition(
        name="bug-report",
        description="Software bugs requiring investigation and fix",
        keywords=("bug", "defect", "regression", "broken feature", "unexpected behavior"),
        default_priority=TicketPriority.HIGH,
        typical_hours=4.0,
    ),
    "feature-request": CategoryDefinition(
        name="feature-request",
        description="New feature suggestions or enhancements",
        keywords=("feature", "enhancement", "would be nice", "suggestion", "could you add"),
        default_priority=TicketPriority.LOW,
        # Intake only, not implementation
        typical_hours=0.5,
    ),
    "urgent": CategoryDefinition(
        name="urgent",
        description="Critical issues requiring immediate attention",
        keywords=("urgent", "emergency", "down", "critical", "asap", "immediately"),
        default_priority=TicketPriority.CRITICAL,
        typical_hours=1.0,
    ),
}

DEFAULT_CATEGORY = "general-inquiry"

ESCALATION_TRIGGERS: tuple[str, ...] = (
    "security",
    "data breach",
    "legal",
    "lawsuit",
    "compliance",
    "gdpr",
    "down",
    "outage",
    "all users affected",
    "revenue loss",
    "cannot process payments",
)

COMPLEXITY_INDICATORS: dict[str, tuple[str, ...]] = {
    "high": (
        "multiple systems",
        "integration",
        "database migration",
        "security",
        "performance optimization",
        "architecture change",
        "third-party api",
    ),
    "medium": (
        "investigation needed",
        "debugging",
        "configuration change",
        "update",
        "modification",
    ),
    "low": (
        "simple fix",
        "typo",
        "text change",
        "quick question",
        "how to",
    ),
}


# ============================================================================
# Prompts for the generative-text fallback
# ============================================================================

TICKET_ANALYSIS_PROMPT = """You are an AI assistant for a web development agency's support ticket system.
Your job is to analyze incoming support tickets and provide:
1. Category classification
2. Priority assessment
3. Sentiment analysis
4. Key issue extraction
5. Suggested knowledge base articles (if titles provided)
6. Whether escalation is needed

Always respond with valid JSON matching the expected schema.
Be conservative with priority - only mark as critical if truly urgent (system down, security issue, revenue impact).
Consider the customer's tone and history when assessing sentiment."""

CLASSIFICATION_PROMPT = (
    "You are a ticket classifier. Return JSON with category, priority, and confidence."
)

HOURS_ESTIMATION_PROMPT = (
    "Estimate hours for support ticket. Return JSON with estimated_hours."
)


def category_names() -> list[str]:
    """Known category names in definition order."""
    return list(TICKET_CATEGORIES)


def normalize_category(value: str | None, available: list[str] | None = None) -> str:
    """Map a collaborator-supplied category onto a known one.

    Exact match wins, then the first known name contained in the value,
    then the first available category.
    """
    names = available or category_names()
    if not names:
        return DEFAULT_CATEGORY

    candidate = (value or "").strip()
    if candidate in names:
        return candidate

    lowered = candidate.lower()
    for name in names:
        if name.lower() in lowered:
            return name

    return names[0]
