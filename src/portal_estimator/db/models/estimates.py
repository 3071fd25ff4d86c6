"""Estimate ORM Models.

Both tables hold one row per ticket; a recomputation overwrites it.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import Date, DateTime, Float, Integer, String, Text
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import Mapped, mapped_column

from portal_estimator.db.base import Base, TimestampMixin, UUIDMixin


class TicketEstimateModel(Base, UUIDMixin, TimestampMixin):
    """Heuristic estimate recorded at ticket creation."""

    __tablename__ = "ticket_estimates"

    ticket_id: Mapped[str] = mapped_column(
        String(36),
        unique=True,
        nullable=False,
        index=True,
    )
    organization_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    estimated_hours: Mapped[float] = mapped_column(Float, nullable=False)
    estimated_cost_cents: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Null when an active plan covers the organization",
    )
    estimated_completion_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    estimated_completion_reason: Mapped[str] = mapped_column(Text, nullable=False)
    created_by: Mapped[str] = mapped_column(String(36), nullable=False)
    ai_model: Mapped[str] = mapped_column(String(50), nullable=False, default="heuristic-v1")
    ai_confidence: Mapped[float] = mapped_column(Float, nullable=False, default=0.4)


class CompletionEstimateModel(Base, UUIDMixin, TimestampMixin):
    """Capacity-aware completion estimate for an assigned ticket."""

    __tablename__ = "completion_estimates"

    ticket_id: Mapped[str] = mapped_column(
        String(36),
        unique=True,
        nullable=False,
        index=True,
    )
    estimated_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    estimated_completion_date: Mapped[date] = mapped_column(Date, nullable=False)
    confidence_level: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="low, medium, high",
    )
    confidence_percent: Mapped[int] = mapped_column(Integer, nullable=False)
    estimated_hours: Mapped[float] = mapped_column(Float, nullable=False)
    complexity_score: Mapped[float] = mapped_column(Float, nullable=False)
    factors: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)
    assigned_to: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    staff_availability: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)
    queue_position: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    tickets_ahead: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    client_message: Mapped[str] = mapped_column(Text, nullable=False)
    detailed_breakdown: Mapped[str] = mapped_column(Text, nullable=False)
