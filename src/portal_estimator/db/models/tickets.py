"""Ticket and workload ORM Models.

- TicketModel: support tickets (the estimator reads queue and history)
- ProjectTaskModel: project tasks assigned to staff members
- PlanAssignmentModel: support plans covering an organization
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from portal_estimator.db.base import Base, TimestampMixin, UUIDMixin


class TicketStatus:
    """Ticket status values."""
    NEW = "new"
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    PENDING_CLIENT = "pending_client"
    RESOLVED = "resolved"
    CLOSED = "closed"


CLOSED_TICKET_STATUSES = (TicketStatus.RESOLVED, TicketStatus.CLOSED)


class TaskStatus:
    """Project task status values."""
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class PlanStatus:
    """Plan assignment status values."""
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class TicketModel(Base, UUIDMixin, TimestampMixin):
    """Support ticket ORM model."""

    __tablename__ = "tickets"

    organization_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
    )
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
        default=TicketStatus.NEW,
    )
    priority: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="medium",
        comment="low, medium, high, critical",
    )
    category: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        index=True,
        comment="Empty until classified",
    )
    assignee_id: Mapped[str | None] = mapped_column(
        String(36),
        nullable=True,
        index=True,
    )
    estimated_hours: Mapped[float | None] = mapped_column(Float, nullable=True)
    actual_hours: Mapped[float | None] = mapped_column(
        Float,
        nullable=True,
        comment="Recorded effort, used for historical averages",
    )
    resolved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_tickets_assignee_status", "assignee_id", "status"),
        Index("ix_tickets_org_status", "organization_id", "status"),
    )


class ProjectTaskModel(Base, UUIDMixin, TimestampMixin):
    """Project task ORM model."""

    __tablename__ = "project_tasks"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
        default=TaskStatus.TODO,
    )
    assignee_id: Mapped[str | None] = mapped_column(
        String(36),
        nullable=True,
        index=True,
    )
    estimated_hours: Mapped[float | None] = mapped_column(Float, nullable=True)


class PlanAssignmentModel(Base, UUIDMixin, TimestampMixin):
    """Support plan assigned to an organization."""

    __tablename__ = "plan_assignments"

    organization_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
    )
    plan_name: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=PlanStatus.ACTIVE,
    )
