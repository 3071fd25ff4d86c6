"""Calendar availability.

Implements:
- Busy-hour resolution per staff member and UTC day
- Net free hours against the weekly schedule
- Day-by-day availability windows for the completion walk

Overlapping busy blocks on the same staff/day are summed, not merged,
so double-booked meetings can drive a day's net hours to zero.
"""
from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Sequence

from portal_estimator.core.logging import get_logger
from portal_estimator.estimation.models import (
    AvailabilityWindow,
    CalendarBlock,
    StaffSchedule,
)
from portal_estimator.estimation.utils import date_range, portal_weekday

log = get_logger(__name__)

BusyHoursLookup = dict[tuple[str, date], float]

DEFAULT_HORIZON_DAYS = 45


def find_schedule(
    schedules: Sequence[StaffSchedule], day_of_week: int
) -> StaffSchedule | None:
    """First schedule row for a weekday, or None (a non-working day)."""
    for schedule in schedules:
        if schedule.day_of_week == day_of_week:
            return schedule
    return None


def scheduled_hours_on(schedules: Sequence[StaffSchedule], day: date) -> float:
    """Scheduled hours for a date; missing or non-working weekday gives 0."""
    schedule = find_schedule(schedules, portal_weekday(day))
    return schedule.scheduled_hours if schedule else 0.0


class CalendarAvailabilityResolver:
    """Computes busy and net free hours per (staff member, day).

    Usage:
        resolver = CalendarAvailabilityResolver(schedules)
        busy = resolver.resolve(blocks, date.today())
        free = resolver.net_hours("staff-1", date.today(), busy)
    """

    def __init__(
        self,
        schedules: Iterable[StaffSchedule],
        horizon_days: int = DEFAULT_HORIZON_DAYS,
    ) -> None:
        self.horizon_days = horizon_days
        self._schedules: dict[str, list[StaffSchedule]] = defaultdict(list)
        for schedule in schedules:
            self._schedules[schedule.staff_id].append(schedule)

    @property
    def staff_ids(self) -> list[str]:
        return list(self._schedules)

    def schedules_for(self, staff_id: str) -> list[StaffSchedule]:
        return list(self._schedules.get(staff_id, []))

    def scheduled_hours(self, staff_id: str, day: date) -> float:
        """Hours the staff member is scheduled to work on ``day``."""
        return scheduled_hours_on(self._schedules.get(staff_id, []), day)

    def resolve(
        self,
        blocks: Iterable[CalendarBlock],
        start_date: date,
        days: int | None = None,
    ) -> BusyHoursLookup:
        """Map (staff_id, day) to busy hours within the horizon.

        Args:
            blocks: Calendar blocks for any number of staff members
            start_date: First day of the horizon
            days: Number of days to resolve, capped at ``horizon_days``

        Returns:
            Busy hours keyed by (staff_id, day); days without busy time are absent
        """
        span = self.horizon_days if days is None else min(days, self.horizon_days)
        if span <= 0:
            return {}
        last_day = start_date + timedelta(days=span - 1)

        busy: dict[tuple[str, date], float] = defaultdict(float)
        for block in blocks:
            if not block.is_busy:
                continue

            first = max(block.start_date, start_date)
            last = min(block.last_date if block.all_day else block.end_at.date(), last_day)

            day = first
            while day <= last:
                if block.all_day:
                    hours = self.scheduled_hours(block.staff_id, day)
                else:
                    hours = block.hours_on(day)
                if hours > 0:
                    busy[(block.staff_id, day)] += hours
                day += timedelta(days=1)

        log.debug(
            "Resolved calendar busy time",
            busy_days=len(busy),
            start_date=start_date.isoformat(),
            span_days=span,
        )
        return dict(busy)

    @staticmethod
    def busy_hours(lookup: BusyHoursLookup, staff_id: str, day: date) -> float:
        return lookup.get((staff_id, day), 0.0)

    def net_hours(self, staff_id: str, day: date, lookup: BusyHoursLookup) -> float:
        """max(0, scheduled - busy) for a staff member on a day."""
        scheduled = self.scheduled_hours(staff_id, day)
        return max(0.0, scheduled - self.busy_hours(lookup, staff_id, day))


def generate_availability_windows(
    schedules: Sequence[StaffSchedule],
    blocks: Iterable[CalendarBlock],
    start_date: date,
    days: int = 14,
    staff_id: str | None = None,
) -> list[AvailabilityWindow]:
    """Build one availability window per day starting at ``start_date``.

    A day covered by an all-day busy block is fully blocked. Otherwise
    the busy blocks starting that day are summed, each clipped to the
    day. Blocked hours are capped at the scheduled hours and net hours
    never go below zero.

    Args:
        schedules: Weekly schedule rows for the staff member
        blocks: Busy calendar blocks for the staff member
        start_date: First window date
        days: Number of consecutive windows
        staff_id: Restrict schedules and blocks to one staff member

    Returns:
        Windows in date order
    """
    if staff_id is not None:
        schedules = [s for s in schedules if s.staff_id == staff_id]
        blocks = [b for b in blocks if b.staff_id == staff_id]
    busy_blocks = [b for b in blocks if b.is_busy]

    windows: list[AvailabilityWindow] = []
    for day in date_range(start_date, days):
        available = scheduled_hours_on(schedules, day)

        if any(block.covers(day) for block in busy_blocks):
            blocked = available
        else:
            blocked = sum(
                block.hours_on(day)
                for block in busy_blocks
                if not block.all_day and block.start_date == day
            )

        blocked = min(blocked, available)
        windows.append(
            AvailabilityWindow(
                date=day,
                available_hours=available,
                blocked_hours=blocked,
                net_hours=max(0.0, available - blocked),
            )
        )

    return windows
