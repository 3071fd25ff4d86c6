"""Staff workload analysis.

Week capacity is a planning ceiling and ignores calendar blocks;
today's capacity is the live number and subtracts them.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Sequence

from portal_estimator.core.logging import get_logger
from portal_estimator.estimation.availability import (
    CalendarAvailabilityResolver,
    find_schedule,
)
from portal_estimator.estimation.models import (
    CalendarBlock,
    QueuedTask,
    QueuedTicket,
    StaffSchedule,
    TicketPriority,
    WorkloadAnalysis,
)
from portal_estimator.estimation.utils import as_utc, portal_weekday, round_half_up, utc_now

log = get_logger(__name__)

DEFAULT_TICKET_HOURS = 2.0
DEFAULT_TASK_HOURS = 1.0

# Utilization at or above this is considered saturated
UTILIZATION_LIMIT = 80.0


def weekly_capacity(schedules: Sequence[StaffSchedule]) -> float:
    """Sum of scheduled hours over the seven weekdays."""
    total = 0.0
    for day_of_week in range(7):
        schedule = find_schedule(schedules, day_of_week)
        if schedule:
            total += schedule.scheduled_hours
    return total


class WorkloadAnalyzer:
    """Builds a utilization snapshot from a staff member's queue and calendar."""

    def __init__(self, next_slot_search_days: int = 30) -> None:
        self.next_slot_search_days = next_slot_search_days

    def analyze(
        self,
        staff_id: str,
        schedules: Sequence[StaffSchedule],
        blocks: Sequence[CalendarBlock],
        open_tickets: Sequence[QueuedTicket],
        open_tasks: Sequence[QueuedTask],
        now: datetime | None = None,
    ) -> WorkloadAnalysis:
        """Analyze one staff member's current workload.

        Args:
            staff_id: Staff member to analyze
            schedules: Weekly schedule rows (other staff members are ignored)
            blocks: Busy calendar blocks (other staff members are ignored)
            open_tickets: Tickets currently queued for the staff member
            open_tasks: Tasks currently assigned to the staff member
            now: Analysis time, defaults to the current UTC time

        Returns:
            WorkloadAnalysis snapshot
        """
        now = as_utc(now) if now else utc_now()
        today = now.date()

        staff_schedules = [s for s in schedules if s.staff_id == staff_id]
        staff_blocks = [b for b in blocks if b.staff_id == staff_id and b.is_busy]

        resolver = CalendarAvailabilityResolver(staff_schedules)
        busy_today = resolver.resolve(staff_blocks, today, days=1)
        net_today = resolver.net_hours(staff_id, today, busy_today)

        week_hours = weekly_capacity(staff_schedules)

        ticket_hours = sum(t.estimated_hours or DEFAULT_TICKET_HOURS for t in open_tickets)
        task_hours = sum(t.estimated_hours or DEFAULT_TASK_HOURS for t in open_tasks)
        queued_hours = ticket_hours + task_hours

        hours_by_priority = {priority.value: 0.0 for priority in TicketPriority}
        for ticket in open_tickets:
            hours_by_priority[ticket.priority.value] += (
                ticket.estimated_hours or DEFAULT_TICKET_HOURS
            )

        if week_hours > 0:
            utilization = min(100.0, queued_hours / week_hours * 100)
        else:
            # No weekly capacity at all: fully saturated
            utilization = 100.0

        next_slot = self.find_next_available_slot(staff_schedules, staff_blocks, now)

        analysis = WorkloadAnalysis(
            staff_id=staff_id,
            analysis_date=today,
            current_tickets=len(open_tickets),
            current_tasks=len(open_tasks),
            estimated_hours_queued=queued_hours,
            available_hours_today=net_today,
            available_hours_week=week_hours,
            utilization_percent=int(round_half_up(utilization)),
            hours_by_priority=hours_by_priority,
            can_take_new_work=utilization < UTILIZATION_LIMIT and net_today > 0,
            next_available_slot=next_slot,
            recommended_capacity=max(0.0, 100.0 - utilization),
        )

        log.debug(
            "Workload analyzed",
            staff_id=staff_id,
            utilization=analysis.utilization_percent,
            queued_hours=queued_hours,
            can_take_new_work=analysis.can_take_new_work,
        )
        return analysis

    def find_next_available_slot(
        self,
        schedules: Sequence[StaffSchedule],
        blocks: Sequence[CalendarBlock],
        start: datetime,
    ) -> datetime:
        """First working day not covered by an all-day block.

        Falls back to the day after the search range.
        """
        for offset in range(self.next_slot_search_days):
            candidate = start + timedelta(days=offset)
            day = candidate.date()
            schedule = find_schedule(schedules, portal_weekday(day))
            if not schedule or not schedule.is_working_day:
                continue
            if any(block.covers(day) for block in blocks):
                continue
            return candidate

        return start + timedelta(days=self.next_slot_search_days)
