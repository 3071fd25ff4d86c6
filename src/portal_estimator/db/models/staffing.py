"""Staffing ORM Models.

- StaffWorkScheduleModel: organization-level working hours per staff member
- CalendarEventModel: externally synced calendar events (meetings, PTO)
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Index, String
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import Mapped, mapped_column

from portal_estimator.db.base import Base, TimestampMixin, UUIDMixin


class CalendarEventType:
    """Calendar event types."""
    MEETING = "meeting"
    PTO = "pto"
    HOLIDAY = "holiday"
    FOCUS = "focus"


class StaffWorkScheduleModel(Base, UUIDMixin, TimestampMixin):
    """Working hours of one staff member within an organization.

    Weekday numbering: 0 = Sunday ... 6 = Saturday.
    """

    __tablename__ = "staff_work_schedules"

    organization_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
        comment="Owning organization",
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
        comment="Staff member",
    )
    work_days: Mapped[list[Any]] = mapped_column(
        JSON,
        nullable=False,
        default=lambda: [1, 2, 3, 4, 5],
        comment="Working weekdays, 0 = Sunday",
    )
    start_time: Mapped[str] = mapped_column(
        String(5),
        nullable=False,
        default="09:00",
        comment="Start of the working day (HH:MM)",
    )
    end_time: Mapped[str] = mapped_column(
        String(5),
        nullable=False,
        default="17:00",
        comment="End of the working day (HH:MM)",
    )
    timezone: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="UTC",
    )

    __table_args__ = (
        Index("ix_staff_schedule_org_user", "organization_id", "user_id", unique=True),
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "organization_id": self.organization_id,
            "user_id": self.user_id,
            "work_days": list(self.work_days or []),
            "start_time": self.start_time,
            "end_time": self.end_time,
            "timezone": self.timezone,
        }


class CalendarEventModel(Base, UUIDMixin, TimestampMixin):
    """Synced calendar event for a staff member."""

    __tablename__ = "calendar_events"

    user_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
        comment="Staff member owning the calendar",
    )
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    start_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    end_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    all_day: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_busy: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Free/tentative events do not consume capacity",
    )
    event_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=CalendarEventType.MEETING,
    )
    source: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="google",
        comment="Calendar provider the event was synced from",
    )

    __table_args__ = (
        Index("ix_calendar_events_user_range", "user_id", "start_at", "end_at"),
    )
