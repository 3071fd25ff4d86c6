"""Data model for capacity-aware completion estimation.

Staffing inputs (schedules, calendar blocks, queued work) come from the
data stores. Everything else is derived per request; only
CompletionEstimate and TicketEstimate are persisted.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any

from portal_estimator.core.exceptions import InvalidScheduleError
from portal_estimator.estimation.utils import as_utc, daily_hours_between, overlap_hours


class TicketPriority(str, Enum):
    """Ticket priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def normalize(cls, value: Any) -> TicketPriority:
        """Coerce arbitrary input to a priority; unknown values become MEDIUM."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.MEDIUM


class ConfidenceLevel(str, Enum):
    """Qualitative trust in a projected completion date."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FactorImpact(str, Enum):
    """Direction in which a factor moves the estimate."""

    INCREASES = "increases"
    DECREASES = "decreases"


class ClassificationSource(str, Enum):
    """Which tier produced a classification."""

    RULES = "rules"
    AI = "ai"


class Sentiment(str, Enum):
    """Customer sentiment reported by ticket analysis."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    CONCERNED = "concerned"
    FRUSTRATED = "frustrated"
    ANGRY = "angry"


# ============================================================================
# Staffing inputs
# ============================================================================


@dataclass
class StaffSchedule:
    """Weekly working-hours row for one staff member and weekday.

    day_of_week: 0 = Sunday ... 6 = Saturday.
    """

    staff_id: str
    day_of_week: int
    is_working_day: bool = True
    available_hours: float = 0.0
    start_time: str | None = None
    end_time: str | None = None
    timezone: str = "UTC"

    def __post_init__(self) -> None:
        if not 0 <= self.day_of_week <= 6:
            raise InvalidScheduleError(
                f"day_of_week must be between 0 and 6, got {self.day_of_week}",
                details={"staff_id": self.staff_id},
            )
        if self.available_hours < 0:
            raise InvalidScheduleError(
                "available_hours must not be negative",
                details={"staff_id": self.staff_id, "available_hours": self.available_hours},
            )

    @classmethod
    def from_times(
        cls,
        staff_id: str,
        day_of_week: int,
        start_time: str | None,
        end_time: str | None,
        is_working_day: bool = True,
    ) -> StaffSchedule:
        """Build a row whose hours derive from "HH:MM" start/end strings."""
        try:
            hours = daily_hours_between(start_time, end_time)
        except ValueError as e:
            raise InvalidScheduleError(
                f"Invalid schedule time: {start_time!r}-{end_time!r}",
                details={"staff_id": staff_id},
                cause=e,
            ) from e
        return cls(
            staff_id=staff_id,
            day_of_week=day_of_week,
            is_working_day=is_working_day,
            available_hours=hours,
            start_time=start_time,
            end_time=end_time,
        )

    @property
    def scheduled_hours(self) -> float:
        """Hours this row contributes; non-working days contribute 0."""
        return self.available_hours if self.is_working_day else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "staff_id": self.staff_id,
            "day_of_week": self.day_of_week,
            "is_working_day": self.is_working_day,
            "available_hours": self.available_hours,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }


@dataclass
class OrgStaffSchedule:
    """Organization-level schedule: one row per staff member with work days."""

    user_id: str
    work_days: list[int] = field(default_factory=lambda: [1, 2, 3, 4, 5])
    start_time: str = "09:00"
    end_time: str = "17:00"

    @property
    def daily_hours(self) -> float:
        return daily_hours_between(self.start_time, self.end_time)

    def works_on(self, day_of_week: int) -> bool:
        return day_of_week in self.work_days

    def expand(self) -> list[StaffSchedule]:
        """Expand into the seven per-weekday rows."""
        hours = self.daily_hours
        return [
            StaffSchedule(
                staff_id=self.user_id,
                day_of_week=day,
                is_working_day=self.works_on(day),
                available_hours=hours,
                start_time=self.start_time,
                end_time=self.end_time,
            )
            for day in range(7)
        ]


@dataclass
class CalendarBlock:
    """Externally synced busy interval (meeting, PTO, holiday)."""

    staff_id: str
    start_at: datetime
    end_at: datetime
    all_day: bool = False
    is_busy: bool = True
    block_type: str = "meeting"
    title: str | None = None

    def __post_init__(self) -> None:
        self.start_at = as_utc(self.start_at)
        self.end_at = as_utc(self.end_at)

    @property
    def start_date(self) -> date:
        return self.start_at.date()

    @property
    def last_date(self) -> date:
        """Last calendar day the block touches.

        An end exactly at midnight does not spill into that day.
        """
        last = self.end_at.date()
        if self.end_at > self.start_at and self.end_at.time() == datetime.min.time():
            last -= timedelta(days=1)
        return max(last, self.start_date)

    def covers(self, day: date) -> bool:
        """True if this is an all-day block spanning ``day``."""
        return self.all_day and self.start_date <= day <= self.last_date

    def hours_on(self, day: date) -> float:
        """Overlap in hours with the UTC day."""
        return overlap_hours(self.start_at, self.end_at, day)


# ============================================================================
# Ticket inputs
# ============================================================================


@dataclass
class EstimationTicket:
    """Estimation view of a ticket."""

    id: str
    subject: str
    description: str
    priority: TicketPriority = TicketPriority.MEDIUM
    category: str = ""
    created_at: datetime | None = None
    queue_position: int | None = None
    organization_id: str | None = None
    assignee_id: str | None = None

    def __post_init__(self) -> None:
        self.priority = TicketPriority.normalize(self.priority)


@dataclass
class QueuedTicket:
    """Open ticket already in a staff member's queue."""

    id: str
    priority: TicketPriority = TicketPriority.MEDIUM
    estimated_hours: float | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        self.priority = TicketPriority.normalize(self.priority)


@dataclass
class QueuedTask:
    """Open project task assigned to a staff member."""

    id: str
    estimated_hours: float | None = None


@dataclass
class HistoricalTicketData:
    """Actual effort on a resolved ticket."""

    category: str
    actual_hours: float
    priority: TicketPriority | None = None
    estimated_hours: float | None = None


# ============================================================================
# Derived results
# ============================================================================


@dataclass
class WorkloadAnalysis:
    """Utilization snapshot for one staff member."""

    staff_id: str
    analysis_date: date
    current_tickets: int
    current_tasks: int
    estimated_hours_queued: float
    available_hours_today: float
    available_hours_week: float
    utilization_percent: int
    hours_by_priority: dict[str, float]
    can_take_new_work: bool
    next_available_slot: datetime
    recommended_capacity: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "staff_id": self.staff_id,
            "analysis_date": self.analysis_date.isoformat(),
            "current_tickets": self.current_tickets,
            "current_tasks": self.current_tasks,
            "estimated_hours_queued": self.estimated_hours_queued,
            "available_hours_today": self.available_hours_today,
            "available_hours_week": self.available_hours_week,
            "utilization_percent": self.utilization_percent,
            "hours_by_priority": dict(self.hours_by_priority),
            "can_take_new_work": self.can_take_new_work,
            "next_available_slot": self.next_available_slot.isoformat(),
            "recommended_capacity": self.recommended_capacity,
        }


@dataclass
class EstimationFactor:
    """Named adjustment applied to the base hours."""

    factor: str
    impact: FactorImpact
    description: str
    weight: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "factor": self.factor,
            "impact": self.impact.value,
            "description": self.description,
            "weight": self.weight,
        }


@dataclass
class AvailabilityWindow:
    """One day of net free hours for a staff member."""

    date: date
    available_hours: float
    blocked_hours: float
    net_hours: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "available_hours": self.available_hours,
            "blocked_hours": self.blocked_hours,
            "net_hours": self.net_hours,
        }


@dataclass
class Confidence:
    """Confidence band for a projected completion date."""

    level: ConfidenceLevel
    percent: int


@dataclass
class CompletionEstimate:
    """Projected completion for a ticket, persisted by the estimate sink."""

    ticket_id: str
    estimated_start_date: date
    estimated_completion_date: date
    confidence_level: ConfidenceLevel
    confidence_percent: int
    estimated_hours: float
    complexity_score: float
    factors: list[EstimationFactor]
    assigned_to: str
    staff_availability: list[AvailabilityWindow]
    queue_position: int
    tickets_ahead: int
    client_message: str
    detailed_breakdown: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "ticket_id": self.ticket_id,
            "estimated_start_date": self.estimated_start_date.isoformat(),
            "estimated_completion_date": self.estimated_completion_date.isoformat(),
            "confidence_level": self.confidence_level.value,
            "confidence_percent": self.confidence_percent,
            "estimated_hours": self.estimated_hours,
            "complexity_score": self.complexity_score,
            "factors": [f.to_dict() for f in self.factors],
            "assigned_to": self.assigned_to,
            "staff_availability": [w.to_dict() for w in self.staff_availability],
            "queue_position": self.queue_position,
            "tickets_ahead": self.tickets_ahead,
            "client_message": self.client_message,
            "detailed_breakdown": self.detailed_breakdown,
        }


@dataclass
class TicketEstimate:
    """First-pass estimate recorded when a ticket is filed."""

    ticket_id: str
    organization_id: str
    estimated_hours: float
    estimated_cost_cents: int | None
    estimated_completion_at: datetime | None
    rationale: str
    created_by: str
    ai_model: str = "heuristic-v1"
    ai_confidence: float = 0.4

    def to_dict(self) -> dict[str, Any]:
        return {
            "ticket_id": self.ticket_id,
            "organization_id": self.organization_id,
            "estimated_hours": self.estimated_hours,
            "estimated_cost_cents": self.estimated_cost_cents,
            "estimated_completion_at": (
                self.estimated_completion_at.isoformat()
                if self.estimated_completion_at
                else None
            ),
            "estimated_completion_reason": self.rationale,
            "created_by": self.created_by,
            "ai_model": self.ai_model,
            "ai_confidence": self.ai_confidence,
        }


# ============================================================================
# Classification
# ============================================================================


@dataclass
class EscalationCheck:
    """Result of scanning for escalation triggers."""

    requires_escalation: bool
    reason: str | None = None
    trigger: str | None = None


@dataclass
class Classification:
    """Category and priority suggestion for a ticket."""

    category: str
    priority: TicketPriority
    confidence: float
    source: ClassificationSource = ClassificationSource.RULES
    requires_escalation: bool = False
    escalation_reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "priority": self.priority.value,
            "confidence": round(self.confidence, 4),
            "source": self.source.value,
            "requires_escalation": self.requires_escalation,
            "escalation_reason": self.escalation_reason,
        }


@dataclass
class SuggestedArticle:
    """Knowledge base article suggested by ticket analysis."""

    id: str
    title: str
    relevance_score: float = 0.0
    excerpt: str | None = None


@dataclass
class TicketAnalysis:
    """Full generative-text analysis of a ticket, after post-processing."""

    suggested_category: str
    suggested_priority: TicketPriority
    category_confidence: float = 0.0
    priority_confidence: float = 0.0
    sentiment: Sentiment = Sentiment.NEUTRAL
    sentiment_score: float = 0.0
    urgency_indicators: list[str] = field(default_factory=list)
    key_issues: list[str] = field(default_factory=list)
    affected_systems: list[str] = field(default_factory=list)
    requested_actions: list[str] = field(default_factory=list)
    suggested_kb_articles: list[SuggestedArticle] = field(default_factory=list)
    suggested_response: str | None = None
    requires_escalation: bool = False
    escalation_reason: str | None = None
    analysis_timestamp: datetime | None = None
    model_used: str | None = None
    tokens_used: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "suggested_category": self.suggested_category,
            "suggested_priority": self.suggested_priority.value,
            "category_confidence": self.category_confidence,
            "priority_confidence": self.priority_confidence,
            "sentiment": self.sentiment.value,
            "sentiment_score": self.sentiment_score,
            "urgency_indicators": list(self.urgency_indicators),
            "key_issues": list(self.key_issues),
            "affected_systems": list(self.affected_systems),
            "requested_actions": list(self.requested_actions),
            "suggested_kb_articles": [
                {
                    "id": a.id,
                    "title": a.title,
                    "relevance_score": a.relevance_score,
                    "excerpt": a.excerpt,
                }
                for a in self.suggested_kb_articles
            ],
            "suggested_response": self.suggested_response,
            "requires_escalation": self.requires_escalation,
            "escalation_reason": self.escalation_reason,
            "analysis_timestamp": (
                self.analysis_timestamp.isoformat() if self.analysis_timestamp else None
            ),
            "model_used": self.model_used,
            "tokens_used": self.tokens_used,
        }
