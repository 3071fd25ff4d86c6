"""Ticket-creation-time heuristic estimate.

A first-pass estimate available before anyone is assigned: priority base
hours plus a detail bonus for long descriptions, priced at the support
rate unless a plan covers the organization, and projected over the whole
organization's schedule capacity.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Sequence

from portal_estimator.estimation.availability import BusyHoursLookup
from portal_estimator.estimation.models import StaffSchedule, TicketPriority
from portal_estimator.estimation.utils import end_of_day, portal_weekday, round_half_up

PRIORITY_BASE_HOURS: dict[str, float] = {
    TicketPriority.CRITICAL.value: 12,
    TicketPriority.HIGH.value: 8,
    TicketPriority.MEDIUM.value: 4,
    TicketPriority.LOW.value: 2,
}
DEFAULT_BASE_HOURS = 4

# One extra hour per 800 description characters, at most 6
DETAIL_CHARS_PER_HOUR = 800
MAX_DETAIL_HOURS = 6

BACKLOG_STATUSES: tuple[str, ...] = ("new", "open", "in_progress", "pending_client")
BACKLOG_HOURS_PER_TICKET = 1.5

DEFAULT_DAILY_CAPACITY = 8

HEURISTIC_MODEL = "heuristic-v1"
HEURISTIC_CONFIDENCE = 0.4

RATIONALE_SCHEDULES = "Estimated using staff schedules and synced calendar busy time."
RATIONALE_DEFAULT_CAPACITY = "Estimated using default capacity of 8 hours per day."
RATIONALE_HORIZON = "Estimated using current workload and schedule capacity."


@dataclass
class CompletionProjection:
    """Projected completion timestamp with its rationale."""

    completion_at: datetime
    rationale: str


def calculate_estimated_hours(priority: TicketPriority | str, description: str) -> float:
    """Priority base hours plus min(6, ceil(len(description) / 800))."""
    key = priority.value if isinstance(priority, TicketPriority) else str(priority)
    base = PRIORITY_BASE_HOURS.get(key, DEFAULT_BASE_HOURS)
    detail = min(MAX_DETAIL_HOURS, math.ceil(len(description or "") / DETAIL_CHARS_PER_HOUR))
    return round(float(base + detail), 2)


def calculate_cost_cents(
    estimated_hours: float, rate_cents: int, has_active_plan: bool
) -> int | None:
    """Estimated cost; None when an active plan covers the work."""
    if has_active_plan:
        return None
    return int(round_half_up(estimated_hours * rate_cents))


def backlog_hours(open_ticket_count: int) -> float:
    return open_ticket_count * BACKLOG_HOURS_PER_TICKET if open_ticket_count else 0.0


def project_completion(
    total_hours: float,
    schedules: Sequence[StaffSchedule],
    busy: BusyHoursLookup,
    now: datetime,
    max_lookahead_days: int = 45,
) -> CompletionProjection:
    """Walk the organization's capacity day by day until total_hours is covered.

    Each day contributes, for every schedule row working that weekday,
    max(0, scheduled hours - that staff member's busy hours).

    Args:
        total_hours: Ticket hours plus backlog hours
        schedules: Per-weekday rows for every staff member of the organization
        busy: Busy hours keyed by (staff_id, day)
        now: Current time (UTC)
        max_lookahead_days: Walk horizon

    Returns:
        CompletionProjection with completion time and rationale
    """
    if not schedules:
        days = math.ceil(total_hours / DEFAULT_DAILY_CAPACITY)
        return CompletionProjection(now + timedelta(days=days), RATIONALE_DEFAULT_CAPACITY)

    remaining = total_hours
    current = now.date()

    for _ in range(max_lookahead_days):
        if remaining <= 0:
            break

        weekday = portal_weekday(current)
        capacity = 0.0
        for schedule in schedules:
            if schedule.day_of_week != weekday or not schedule.is_working_day:
                continue
            used = busy.get((schedule.staff_id, current), 0.0)
            capacity += max(0.0, schedule.available_hours - used)

        if capacity > 0:
            remaining -= capacity

        if remaining <= 0:
            return CompletionProjection(end_of_day(current), RATIONALE_SCHEDULES)

        current += timedelta(days=1)

    return CompletionProjection(now + timedelta(days=max_lookahead_days), RATIONALE_HORIZON)
