"""Completion date estimation.

Implements:
- Base hours from history, category defaults or the text estimator
- Queue wait scaled by priority
- Day-by-day walk over availability windows with a 20% buffer
- Confidence band and client/staff facing messages
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Sequence

from portal_estimator.ai.base import NullEstimator, TextEstimator, call_with_timeout
from portal_estimator.core.logging import get_logger
from portal_estimator.estimation.catalog import HOURS_ESTIMATION_PROMPT, TICKET_CATEGORIES
from portal_estimator.estimation.complexity import score_complexity
from portal_estimator.estimation.factors import FactorCalculator
from portal_estimator.estimation.models import (
    AvailabilityWindow,
    CompletionEstimate,
    Confidence,
    ConfidenceLevel,
    EstimationFactor,
    EstimationTicket,
    FactorImpact,
    HistoricalTicketData,
    TicketPriority,
    WorkloadAnalysis,
)
from portal_estimator.estimation.utils import format_hours, round_half_up, utc_now

log = get_logger(__name__)

# Rushed work is focused; low priority work gets interrupted
HISTORY_PRIORITY_MULTIPLIERS: dict[TicketPriority, float] = {
    TicketPriority.CRITICAL: 0.8,
    TicketPriority.HIGH: 0.9,
    TicketPriority.MEDIUM: 1.0,
    TicketPriority.LOW: 1.2,
}

# Share of the queue ahead that a ticket actually waits for
QUEUE_PRIORITY_FACTORS: dict[TicketPriority, float] = {
    TicketPriority.CRITICAL: 0.1,
    TicketPriority.HIGH: 0.3,
    TicketPriority.MEDIUM: 0.7,
    TicketPriority.LOW: 1.0,
}

AVERAGE_HOURS_PER_TICKET = 2.0
BUFFER_PERCENT = 0.2
EXTRAPOLATION_HOURS_PER_DAY = 6.0

PRIORITY_MESSAGES: dict[TicketPriority, str] = {
    TicketPriority.CRITICAL: "We understand this is urgent and have prioritized it accordingly.",
    TicketPriority.HIGH: "This has been marked as high priority.",
    TicketPriority.MEDIUM: "",
    TicketPriority.LOW: "",
}

CONFIDENCE_MESSAGES: dict[ConfidenceLevel, str] = {
    ConfidenceLevel.HIGH: "We expect to complete this by {date}.",
    ConfidenceLevel.MEDIUM: (
        "Our target completion date is {date}, though this may vary depending on complexity."
    ),
    ConfidenceLevel.LOW: (
        "We're tentatively targeting {date}, but will provide updates as we learn more "
        "about the scope."
    ),
}


def hours_ahead_in_queue(queue_position: int, priority: TicketPriority) -> float:
    """Hours of queued work a ticket waits behind, scaled by its priority."""
    positions_ahead = max(0, queue_position - 1)
    return positions_ahead * AVERAGE_HOURS_PER_TICKET * QUEUE_PRIORITY_FACTORS[priority]


def calculate_confidence(
    estimated_hours: float,
    factors: Sequence[EstimationFactor],
    availability_days: int,
) -> Confidence:
    """Confidence in a projected date.

    Base 70, lowered for large estimates and each increasing factor,
    raised with two weeks of availability data, clamped to [30, 95].
    """
    score = 70
    if estimated_hours > 8:
        score -= 10
    if estimated_hours > 16:
        score -= 10

    score -= 5 * sum(1 for f in factors if f.impact == FactorImpact.INCREASES)

    if availability_days >= 14:
        score += 10
    if availability_days < 7:
        score -= 10

    percent = max(30, min(95, score))
    if percent >= 70:
        level = ConfidenceLevel.HIGH
    elif percent >= 50:
        level = ConfidenceLevel.MEDIUM
    else:
        level = ConfidenceLevel.LOW

    return Confidence(level=level, percent=percent)


def format_client_date(day: date) -> str:
    """Format as "Monday, January 5"."""
    return f"{day:%A}, {day:%B} {day.day}"


def build_client_message(
    completion_date: date,
    confidence: Confidence,
    priority: TicketPriority,
) -> str:
    """Client-facing message assembled from the fixed phrase tables."""
    parts = [
        PRIORITY_MESSAGES[priority],
        CONFIDENCE_MESSAGES[confidence.level].format(date=format_client_date(completion_date)),
    ]
    return " ".join(part for part in parts if part)


def build_detailed_breakdown(
    estimated_hours: float,
    factors: Sequence[EstimationFactor],
    availability: Sequence[AvailabilityWindow],
) -> str:
    """Staff-facing breakdown of the estimate."""
    next_week = sum(window.net_hours for window in availability[:7])
    lines = [
        f"Base estimate: {format_hours(estimated_hours)} hours",
        "",
        "Factors:",
        *(
            f"  {'+' if f.impact == FactorImpact.INCREASES else '-'} {f.factor}: {f.description}"
            for f in factors
        ),
        "",
        f"Available capacity next 7 days: {format_hours(next_week)} hours",
    ]
    return "\n".join(lines)


class HoursEstimator:
    """Base effort estimate for a ticket.

    Order of preference: historical average (enough same-category
    samples), category typical hours, text estimator, default.
    """

    def __init__(
        self,
        text_estimator: TextEstimator | None = None,
        timeout_seconds: float = 10.0,
        min_samples: int = 5,
        default_hours: float = 2.0,
    ) -> None:
        self.text_estimator = text_estimator or NullEstimator()
        self.timeout_seconds = timeout_seconds
        self.min_samples = min_samples
        self.default_hours = default_hours

    async def estimate(
        self,
        ticket: EstimationTicket,
        historical: Sequence[HistoricalTicketData],
    ) -> float:
        similar = [h for h in historical if h.category == ticket.category]
        if len(similar) >= self.min_samples:
            average = sum(h.actual_hours for h in similar) / len(similar)
            return round_half_up(average * HISTORY_PRIORITY_MULTIPLIERS[ticket.priority], 1)

        definition = TICKET_CATEGORIES.get(ticket.category)
        if definition:
            return definition.typical_hours

        response = await call_with_timeout(
            self.text_estimator.analyze_json(
                HOURS_ESTIMATION_PROMPT,
                f"Subject: {ticket.subject}\n"
                f"Description: {ticket.description}\n"
                f"Category: {ticket.category}",
            ),
            self.timeout_seconds,
        )
        if response and response.success and response.data:
            try:
                hours = float(response.data.get("estimated_hours") or 0)
            except (TypeError, ValueError):
                hours = 0.0
            if hours > 0:
                return hours

        log.debug("Using default estimated hours", ticket_id=ticket.id, hours=self.default_hours)
        return self.default_hours


@dataclass
class CompletionWalk:
    """Result of walking availability windows."""

    start_date: date
    completion_date: date
    adjusted_hours: float
    total_hours: float
    extrapolated_days: int = 0


class CompletionDateWalker:
    """Projects start and completion dates over availability windows."""

    @staticmethod
    def adjust_hours(base_hours: float, factors: Sequence[EstimationFactor]) -> float:
        """Apply factors: increases scale by (1 + w), decreases by (1 - w / 2)."""
        adjusted = base_hours
        for factor in factors:
            if factor.impact == FactorImpact.INCREASES:
                adjusted *= 1 + factor.weight
            elif factor.impact == FactorImpact.DECREASES:
                adjusted *= 1 - factor.weight * 0.5
        return adjusted

    def walk(
        self,
        base_hours: float,
        hours_ahead: float,
        factors: Sequence[EstimationFactor],
        windows: Sequence[AvailabilityWindow],
        today: date,
    ) -> CompletionWalk:
        """Walk windows in date order until the buffered hours are covered.

        Work starts on the first free day where only this ticket's own
        buffered hours remain. Past the last window, each further day
        is assumed to provide 6 hours.
        """
        adjusted = self.adjust_hours(base_hours, factors)
        own_hours = adjusted * (1 + BUFFER_PERCENT)
        total = (hours_ahead + adjusted) * (1 + BUFFER_PERCENT)

        remaining = total
        current = today
        start: date | None = None

        for window in sorted(windows, key=lambda w: w.date):
            if remaining <= 0:
                break
            if window.net_hours <= 0:
                continue
            if start is None and remaining <= own_hours:
                start = window.date
            remaining -= window.net_hours
            current = window.date

        extrapolated = 0
        if remaining > 0:
            extrapolated = math.ceil(remaining / EXTRAPOLATION_HOURS_PER_DAY)
            current = current + timedelta(days=extrapolated)

        return CompletionWalk(
            start_date=start or today,
            completion_date=current,
            adjusted_hours=adjusted,
            total_hours=total,
            extrapolated_days=extrapolated,
        )


class CompletionEstimator:
    """Composes hours, complexity, factors and the date walk into an estimate.

    Usage:
        estimator = CompletionEstimator(HoursEstimator(text_estimator))
        estimate = await estimator.estimate_completion(
            ticket, "staff-1", workload, windows, historical
        )
    """

    def __init__(
        self,
        hours_estimator: HoursEstimator | None = None,
        factor_calculator: FactorCalculator | None = None,
        walker: CompletionDateWalker | None = None,
    ) -> None:
        self.hours_estimator = hours_estimator or HoursEstimator()
        self.factor_calculator = factor_calculator or FactorCalculator()
        self.walker = walker or CompletionDateWalker()

    async def estimate_completion(
        self,
        ticket: EstimationTicket,
        staff_id: str,
        workload: WorkloadAnalysis,
        availability: Sequence[AvailabilityWindow],
        historical: Sequence[HistoricalTicketData],
        today: date | None = None,
    ) -> CompletionEstimate:
        """Estimate when the assigned staff member will finish a ticket.

        Args:
            ticket: Ticket to estimate (queue_position defaults to 1)
            staff_id: Assigned staff member
            workload: Staff workload snapshot
            availability: Staff availability windows, in date order
            historical: Resolved tickets used for averaging
            today: Walk start, defaults to the current UTC date

        Returns:
            CompletionEstimate ready for persistence
        """
        today = today or utc_now().date()
        queue_position = max(1, ticket.queue_position or 1)

        estimated_hours = await self.hours_estimator.estimate(ticket, historical)
        complexity = score_complexity(ticket.subject, ticket.description)
        factors = self.factor_calculator.calculate(
            ticket.priority,
            queue_position,
            workload.utilization_percent,
            complexity,
        )
        ahead = hours_ahead_in_queue(queue_position, ticket.priority)

        walk = self.walker.walk(estimated_hours, ahead, factors, availability, today)
        confidence = calculate_confidence(estimated_hours, factors, len(availability))

        log.info(
            "Completion estimated",
            ticket_id=ticket.id,
            staff_id=staff_id,
            estimated_hours=estimated_hours,
            completion_date=walk.completion_date.isoformat(),
            confidence=confidence.percent,
        )

        return CompletionEstimate(
            ticket_id=ticket.id,
            estimated_start_date=walk.start_date,
            estimated_completion_date=walk.completion_date,
            confidence_level=confidence.level,
            confidence_percent=confidence.percent,
            estimated_hours=estimated_hours,
            complexity_score=complexity,
            factors=factors,
            assigned_to=staff_id,
            staff_availability=list(availability),
            queue_position=queue_position,
            tickets_ahead=queue_position - 1,
            client_message=build_client_message(
                walk.completion_date, confidence, ticket.priority
            ),
            detailed_breakdown=build_detailed_breakdown(estimated_hours, factors, availability),
        )
