"""Time and rounding helpers shared by the estimation modules.

Calendar days are UTC days. Weekday numbers follow the portal's stored
convention: 0 = Sunday through 6 = Saturday.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal

HOURS_PER_DAY = 24.0


def parse_clock_hours(value: str | None) -> float:
    """Convert an "HH:MM" (or "HH:MM:SS") string to fractional hours."""
    if not value:
        return 0.0
    parts = value.strip().split(":")
    hours = int(parts[0])
    minutes = int(parts[1]) if len(parts) > 1 and parts[1] else 0
    return hours + minutes / 60


def daily_hours_between(start_time: str | None, end_time: str | None) -> float:
    """Working hours between two clock times; 0 when end is not after start."""
    start = parse_clock_hours(start_time)
    end = parse_clock_hours(end_time)
    if end <= start:
        return 0.0
    return end - start


def portal_weekday(day: date) -> int:
    """Weekday number with Sunday as 0."""
    return (day.weekday() + 1) % 7


def as_utc(value: datetime | str) -> datetime:
    """Normalize a timestamp to an aware UTC datetime.

    Naive values are taken to be UTC already.
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max, tzinfo=timezone.utc)


def overlap_hours(start: datetime, end: datetime, day: date) -> float:
    """Hours of ``[start, end)`` falling inside the UTC day ``[00:00, 24:00)``."""
    day_start = start_of_day(day)
    day_end = day_start + timedelta(days=1)
    overlap_start = max(start, day_start)
    overlap_end = min(end, day_end)
    seconds = (overlap_end - overlap_start).total_seconds()
    return max(0.0, seconds / 3600)


def date_range(start: date, days: int) -> list[date]:
    return [start + timedelta(days=offset) for offset in range(max(0, days))]


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a cashier: halves go away from zero."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def format_hours(value: float) -> str:
    """Render hours without a trailing ".0" (8 -> "8", 2.5 -> "2.5")."""
    rounded = round(value, 2)
    if rounded == int(rounded):
        return str(int(rounded))
    return f"{rounded:g}"
