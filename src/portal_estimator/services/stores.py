"""Data store contracts consumed by the estimation services.

The SQLAlchemy repositories in portal_estimator.db.repositories
implement these; tests substitute AsyncMock objects.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence, runtime_checkable

from portal_estimator.estimation.models import (
    CalendarBlock,
    CompletionEstimate,
    EstimationTicket,
    HistoricalTicketData,
    QueuedTask,
    QueuedTicket,
    StaffSchedule,
    TicketEstimate,
)


@runtime_checkable
class ScheduleStore(Protocol):
    async def get_staff_schedules(self, organization_id: str) -> list[StaffSchedule]:
        """Per-weekday schedule rows for every staff member of an organization."""
        ...


@runtime_checkable
class CalendarStore(Protocol):
    async def get_busy_blocks(
        self, staff_ids: Sequence[str], start: datetime, end: datetime
    ) -> list[CalendarBlock]:
        """Busy blocks of the given staff members overlapping [start, end)."""
        ...


@runtime_checkable
class TicketStore(Protocol):
    async def get_ticket(self, ticket_id: str) -> EstimationTicket | None:
        ...

    async def get_open_tickets(self, assignee_id: str) -> list[QueuedTicket]:
        """Open tickets assigned to a staff member, oldest first."""
        ...

    async def get_open_tasks(self, assignee_id: str) -> list[QueuedTask]:
        ...

    async def get_historical_ticket_data(self, category: str) -> list[HistoricalTicketData]:
        """Resolved tickets of a category with recorded actual hours."""
        ...

    async def count_open_tickets_by_status(
        self, organization_id: str, statuses: Sequence[str]
    ) -> int:
        ...


@runtime_checkable
class PlanStore(Protocol):
    async def has_active_plan(self, organization_id: str) -> bool:
        ...


@runtime_checkable
class EstimateSink(Protocol):
    """Persists estimates keyed by ticket id; last write wins."""

    async def save_completion_estimate(self, estimate: CompletionEstimate) -> None:
        ...

    async def save_ticket_estimate(self, estimate: TicketEstimate) -> None:
        ...
