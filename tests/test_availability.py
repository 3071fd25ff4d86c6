"""Tests for calendar availability resolution and windows."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from portal_estimator.core.exceptions import InvalidScheduleError
from portal_estimator.estimation.availability import (
    CalendarAvailabilityResolver,
    generate_availability_windows,
)
from portal_estimator.estimation.models import CalendarBlock, OrgStaffSchedule, StaffSchedule


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def meeting(start: datetime, end: datetime, staff_id: str = "staff-1", **kwargs) -> CalendarBlock:
    return CalendarBlock(staff_id=staff_id, start_at=start, end_at=end, **kwargs)


class TestStaffSchedule:
    """Tests for schedule rows."""

    def test_hours_from_times(self):
        row = StaffSchedule.from_times("staff-1", 1, "08:30", "17:00")
        assert row.available_hours == 8.5

    def test_end_before_start_is_zero(self):
        row = StaffSchedule.from_times("staff-1", 1, "17:00", "09:00")
        assert row.available_hours == 0

    def test_non_working_day_contributes_nothing(self):
        row = StaffSchedule("staff-1", 0, is_working_day=False, available_hours=8)
        assert row.scheduled_hours == 0

    @pytest.mark.parametrize("day_of_week", [-1, 7])
    def test_invalid_weekday(self, day_of_week):
        with pytest.raises(InvalidScheduleError):
            StaffSchedule("staff-1", day_of_week, available_hours=8)

    def test_invalid_time_string(self):
        with pytest.raises(InvalidScheduleError):
            StaffSchedule.from_times("staff-1", 1, "nine", "17:00")

    def test_org_schedule_expands_to_seven_days(self):
        rows = OrgStaffSchedule(user_id="staff-1", work_days=[1, 3]).expand()

        assert [r.day_of_week for r in rows] == list(range(7))
        assert [r.scheduled_hours for r in rows] == [0, 8, 0, 8, 0, 0, 0]


class TestCalendarBlock:
    """Tests for calendar block day arithmetic."""

    def test_naive_timestamps_are_utc(self):
        block = meeting(datetime(2026, 1, 5, 10), datetime(2026, 1, 5, 12))
        assert block.start_at.tzinfo == timezone.utc

    def test_aware_timestamps_converted_to_utc(self):
        cet = timezone(timedelta(hours=1))
        block = meeting(
            datetime(2026, 1, 6, 0, 30, tzinfo=cet),
            datetime(2026, 1, 6, 2, 0, tzinfo=cet),
        )
        assert block.start_date == date(2026, 1, 5)

    def test_all_day_block_ending_at_midnight(self):
        block = meeting(utc(2026, 1, 6), utc(2026, 1, 7), all_day=True)

        assert block.covers(date(2026, 1, 6))
        assert not block.covers(date(2026, 1, 7))

    def test_timed_block_never_covers(self):
        block = meeting(utc(2026, 1, 6, 9), utc(2026, 1, 6, 17))
        assert not block.covers(date(2026, 1, 6))


class TestCalendarAvailabilityResolver:
    """Tests for busy-hour resolution."""

    def test_no_blocks(self, weekday_schedules, monday):
        resolver = CalendarAvailabilityResolver(weekday_schedules)

        busy = resolver.resolve([], monday)

        assert busy == {}
        assert resolver.net_hours("staff-1", monday, busy) == 8

    def test_partial_block(self, weekday_schedules, monday):
        resolver = CalendarAvailabilityResolver(weekday_schedules)

        busy = resolver.resolve([meeting(utc(2026, 1, 5, 10), utc(2026, 1, 5, 13))], monday)

        assert busy[("staff-1", monday)] == 3
        assert resolver.net_hours("staff-1", monday, busy) == 5

    def test_overnight_block_split_across_days(self, weekday_schedules, monday):
        resolver = CalendarAvailabilityResolver(weekday_schedules)

        busy = resolver.resolve([meeting(utc(2026, 1, 5, 20), utc(2026, 1, 6, 4))], monday)

        assert busy[("staff-1", monday)] == 4
        assert busy[("staff-1", monday + timedelta(days=1))] == 4

    def test_all_day_block_uses_scheduled_hours(self, weekday_schedules, monday):
        resolver = CalendarAvailabilityResolver(weekday_schedules)
        pto = meeting(utc(2026, 1, 9), utc(2026, 1, 11), all_day=True, block_type="pto")

        busy = resolver.resolve([pto], monday)

        # Friday is scheduled, the weekend is not
        assert busy == {("staff-1", date(2026, 1, 9)): 8}

    def test_overlapping_blocks_are_summed(self, weekday_schedules, monday):
        resolver = CalendarAvailabilityResolver(weekday_schedules)
        blocks = [
            meeting(utc(2026, 1, 5, 9), utc(2026, 1, 5, 15)),
            meeting(utc(2026, 1, 5, 10), utc(2026, 1, 5, 15)),
        ]

        busy = resolver.resolve(blocks, monday)

        assert busy[("staff-1", monday)] == 11
        assert resolver.net_hours("staff-1", monday, busy) == 0

    def test_free_blocks_ignored(self, weekday_schedules, monday):
        resolver = CalendarAvailabilityResolver(weekday_schedules)
        block = meeting(utc(2026, 1, 5, 10), utc(2026, 1, 5, 12), is_busy=False)

        assert resolver.resolve([block], monday) == {}

    def test_blocks_beyond_horizon_ignored(self, weekday_schedules, monday):
        resolver = CalendarAvailabilityResolver(weekday_schedules, horizon_days=45)
        late = monday + timedelta(days=50)
        block = meeting(
            datetime.combine(late, datetime.min.time(), tzinfo=timezone.utc) + timedelta(hours=10),
            datetime.combine(late, datetime.min.time(), tzinfo=timezone.utc) + timedelta(hours=12),
        )

        assert resolver.resolve([block], monday) == {}

    def test_multiple_staff(self, monday):
        schedules = (
            OrgStaffSchedule(user_id="staff-1").expand()
            + OrgStaffSchedule(user_id="staff-2", start_time="10:00", end_time="14:00").expand()
        )
        resolver = CalendarAvailabilityResolver(schedules)

        busy = resolver.resolve(
            [meeting(utc(2026, 1, 5, 10), utc(2026, 1, 5, 11), staff_id="staff-2")], monday
        )

        assert sorted(resolver.staff_ids) == ["staff-1", "staff-2"]
        assert resolver.net_hours("staff-1", monday, busy) == 8
        assert resolver.net_hours("staff-2", monday, busy) == 3


class TestAvailabilityWindows:
    """Tests for day-by-day availability windows."""

    def test_plain_week(self, weekday_schedules, monday):
        windows = generate_availability_windows(weekday_schedules, [], monday, days=7)

        assert [w.date for w in windows] == [monday + timedelta(days=i) for i in range(7)]
        assert [w.net_hours for w in windows] == [8, 8, 8, 8, 8, 0, 0]

    def test_meeting_reduces_net_hours(self, weekday_schedules, monday):
        windows = generate_availability_windows(
            weekday_schedules,
            [meeting(utc(2026, 1, 5, 10), utc(2026, 1, 5, 13))],
            monday,
            days=1,
        )

        assert windows[0].available_hours == 8
        assert windows[0].blocked_hours == 3
        assert windows[0].net_hours == 5

    def test_all_day_block_blocks_whole_day(self, weekday_schedules, monday):
        pto = meeting(utc(2026, 1, 6), utc(2026, 1, 7), all_day=True)

        windows = generate_availability_windows(weekday_schedules, [pto], monday, days=3)

        assert [w.net_hours for w in windows] == [8, 0, 8]
        assert windows[1].blocked_hours == 8

    def test_blocked_capped_at_available(self, weekday_schedules, monday):
        blocks = [
            meeting(utc(2026, 1, 5, 0), utc(2026, 1, 5, 6)),
            meeting(utc(2026, 1, 5, 8), utc(2026, 1, 5, 14)),
        ]

        window = generate_availability_windows(weekday_schedules, blocks, monday, days=1)[0]

        assert window.blocked_hours == 8
        assert window.net_hours == 0

    def test_block_counted_on_its_start_day_only(self, weekday_schedules, monday):
        overnight = meeting(utc(2026, 1, 5, 20), utc(2026, 1, 6, 4))

        windows = generate_availability_windows(weekday_schedules, [overnight], monday, days=2)

        assert windows[0].blocked_hours == 4
        assert windows[1].blocked_hours == 0

    def test_weekend_block_on_zero_capacity(self, weekday_schedules):
        saturday = date(2026, 1, 10)

        window = generate_availability_windows(
            weekday_schedules,
            [meeting(utc(2026, 1, 10, 10), utc(2026, 1, 10, 12))],
            saturday,
            days=1,
        )[0]

        assert window.available_hours == 0
        assert window.blocked_hours == 0
        assert window.net_hours == 0

    def test_staff_filter(self, monday):
        schedules = (
            OrgStaffSchedule(user_id="staff-1").expand()
            + OrgStaffSchedule(user_id="staff-2", work_days=[]).expand()
        )
        other = meeting(utc(2026, 1, 5, 9), utc(2026, 1, 5, 17), staff_id="staff-2")

        window = generate_availability_windows(
            schedules, [other], monday, days=1, staff_id="staff-1"
        )[0]

        assert window.net_hours == 8

    def test_missing_weekday_is_non_working(self, monday):
        schedules = [StaffSchedule("staff-1", 1, available_hours=6)]

        windows = generate_availability_windows(schedules, [], monday, days=2)

        assert [w.available_hours for w in windows] == [6, 0]

    @pytest.mark.parametrize("busy_hours", [0, 3, 8, 12, 30])
    def test_net_hours_bounds(self, weekday_schedules, monday, busy_hours):
        start = utc(2026, 1, 5, 0)
        blocks = [meeting(start, start + timedelta(hours=min(busy_hours, 24)))] if busy_hours else []

        for window in generate_availability_windows(weekday_schedules, blocks, monday, days=7):
            assert 0 <= window.blocked_hours <= window.available_hours
            assert 0 <= window.net_hours <= window.available_hours
            assert window.net_hours == window.available_hours - window.blocked_hours
