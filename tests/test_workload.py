"""Tests for staff workload analysis."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from portal_estimator.estimation.models import (
    CalendarBlock,
    OrgStaffSchedule,
    QueuedTask,
    QueuedTicket,
    TicketPriority,
)
from portal_estimator.estimation.workload import WorkloadAnalyzer, weekly_capacity


@pytest.fixture
def analyzer():
    return WorkloadAnalyzer(next_slot_search_days=30)


@pytest.fixture
def queue():
    tickets = [
        QueuedTicket(id="t-1", priority=TicketPriority.HIGH, estimated_hours=4),
        QueuedTicket(id="t-2", priority="medium"),
        QueuedTicket(id="t-3", priority=TicketPriority.LOW, estimated_hours=6),
    ]
    tasks = [QueuedTask(id="task-1"), QueuedTask(id="task-2", estimated_hours=3)]
    return tickets, tasks


class TestWeeklyCapacity:
    """Tests for the weekly capacity ceiling."""

    def test_five_day_week(self, weekday_schedules):
        assert weekly_capacity(weekday_schedules) == 40

    def test_no_schedules(self):
        assert weekly_capacity([]) == 0


class TestWorkloadAnalyzer:
    """Tests for WorkloadAnalyzer.analyze."""

    def test_queue_totals(self, analyzer, weekday_schedules, queue, monday_morning):
        tickets, tasks = queue

        analysis = analyzer.analyze(
            "staff-1", weekday_schedules, [], tickets, tasks, now=monday_morning
        )

        assert analysis.current_tickets == 3
        assert analysis.current_tasks == 2
        assert analysis.estimated_hours_queued == 16
        assert analysis.available_hours_week == 40
        assert analysis.available_hours_today == 8
        assert analysis.utilization_percent == 40
        assert analysis.can_take_new_work is True
        assert analysis.recommended_capacity == 60
        assert analysis.next_available_slot == monday_morning

    def test_hours_by_priority(self, analyzer, weekday_schedules, queue, monday_morning):
        tickets, tasks = queue

        analysis = analyzer.analyze(
            "staff-1", weekday_schedules, [], tickets, tasks, now=monday_morning
        )

        assert analysis.hours_by_priority == {
            "low": 6,
            "medium": 2,
            "high": 4,
            "critical": 0,
        }

    def test_no_capacity_is_saturated(self, analyzer, monday_morning):
        analysis = analyzer.analyze("staff-1", [], [], [], [], now=monday_morning)

        assert analysis.utilization_percent == 100
        assert analysis.can_take_new_work is False
        assert analysis.recommended_capacity == 0

    def test_utilization_rounds_half_up(self, analyzer, weekday_schedules, monday_morning):
        tickets = [QueuedTicket(id="t-1", estimated_hours=33)]

        analysis = analyzer.analyze(
            "staff-1", weekday_schedules, [], tickets, [], now=monday_morning
        )

        assert analysis.utilization_percent == 83
        assert analysis.can_take_new_work is False
        assert analysis.recommended_capacity == pytest.approx(17.5)

    def test_utilization_capped(self, analyzer, weekday_schedules, monday_morning):
        tickets = [QueuedTicket(id="t-1", estimated_hours=100)]

        analysis = analyzer.analyze(
            "staff-1", weekday_schedules, [], tickets, [], now=monday_morning
        )

        assert analysis.utilization_percent == 100
        assert analysis.recommended_capacity == 0

    def test_meetings_reduce_today_not_week(self, analyzer, weekday_schedules, monday_morning):
        block = CalendarBlock(
            staff_id="staff-1",
            start_at=datetime(2026, 1, 5, 13, tzinfo=timezone.utc),
            end_at=datetime(2026, 1, 5, 16, tzinfo=timezone.utc),
        )

        analysis = analyzer.analyze(
            "staff-1", weekday_schedules, [block], [], [], now=monday_morning
        )

        assert analysis.available_hours_today == 5
        assert analysis.available_hours_week == 40

    def test_fully_booked_today_cannot_take_work(
        self, analyzer, weekday_schedules, monday_morning
    ):
        block = CalendarBlock(
            staff_id="staff-1",
            start_at=datetime(2026, 1, 5, tzinfo=timezone.utc),
            end_at=datetime(2026, 1, 6, tzinfo=timezone.utc),
            all_day=True,
        )

        analysis = analyzer.analyze(
            "staff-1", weekday_schedules, [block], [], [], now=monday_morning
        )

        assert analysis.available_hours_today == 0
        assert analysis.utilization_percent == 0
        assert analysis.can_take_new_work is False
        assert analysis.next_available_slot == monday_morning + timedelta(days=1)

    def test_other_staff_ignored(self, analyzer, weekday_schedules, monday_morning):
        schedules = weekday_schedules + OrgStaffSchedule(user_id="staff-2", work_days=[]).expand()
        block = CalendarBlock(
            staff_id="staff-2",
            start_at=datetime(2026, 1, 5, 9, tzinfo=timezone.utc),
            end_at=datetime(2026, 1, 5, 17, tzinfo=timezone.utc),
        )

        analysis = analyzer.analyze("staff-1", schedules, [block], [], [], now=monday_morning)

        assert analysis.available_hours_today == 8
        assert analysis.available_hours_week == 40

    def test_to_dict(self, analyzer, weekday_schedules, monday_morning):
        data = analyzer.analyze("staff-1", weekday_schedules, [], [], [], now=monday_morning).to_dict()

        assert data["analysis_date"] == "2026-01-05"
        assert data["next_available_slot"] == monday_morning.isoformat()


class TestNextAvailableSlot:
    """Tests for the next working-day search."""

    def test_weekend_rolls_to_monday(self, analyzer, weekday_schedules):
        saturday = datetime(2026, 1, 10, 11, tzinfo=timezone.utc)

        slot = analyzer.find_next_available_slot(weekday_schedules, [], saturday)

        assert slot == datetime(2026, 1, 12, 11, tzinfo=timezone.utc)

    def test_no_working_days(self, analyzer, monday_morning):
        schedules = OrgStaffSchedule(user_id="staff-1", work_days=[]).expand()

        slot = analyzer.find_next_available_slot(schedules, [], monday_morning)

        assert slot == monday_morning + timedelta(days=30)

    def test_partial_meeting_does_not_skip_day(self, analyzer, weekday_schedules, monday_morning):
        block = CalendarBlock(
            staff_id="staff-1",
            start_at=datetime(2026, 1, 5, 9, tzinfo=timezone.utc),
            end_at=datetime(2026, 1, 5, 17, tzinfo=timezone.utc),
        )

        slot = analyzer.find_next_available_slot(weekday_schedules, [block], monday_morning)

        assert slot == monday_morning

    def test_week_of_pto(self, analyzer, weekday_schedules, monday_morning):
        pto = CalendarBlock(
            staff_id="staff-1",
            start_at=datetime(2026, 1, 5, tzinfo=timezone.utc),
            end_at=datetime(2026, 1, 10, tzinfo=timezone.utc),
            all_day=True,
            block_type="pto",
        )

        slot = analyzer.find_next_available_slot(weekday_schedules, [pto], monday_morning)

        assert slot == monday_morning + timedelta(days=7)
