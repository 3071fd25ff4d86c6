"""Ticket, task and plan repositories.

Implement the TicketStore and PlanStore contracts.
"""
from __future__ import annotations

from typing import Sequence

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from portal_estimator.db.models.tickets import (
    CLOSED_TICKET_STATUSES,
    PlanAssignmentModel,
    PlanStatus,
    ProjectTaskModel,
    TaskStatus,
    TicketModel,
)
from portal_estimator.db.repositories.base import BaseRepository
from portal_estimator.estimation.models import (
    EstimationTicket,
    HistoricalTicketData,
    QueuedTask,
    QueuedTicket,
    TicketPriority,
)

# Resolved tickets considered for historical averages
HISTORY_LIMIT = 100


class TicketRepository(BaseRepository[TicketModel]):
    """Repository for ticket queue and history queries."""

    def __init__(self, session: AsyncSession):
        super().__init__(TicketModel, session)

    async def get_ticket(self, ticket_id: str) -> EstimationTicket | None:
        ticket = await self.get(ticket_id)
        if ticket is None:
            return None
        return EstimationTicket(
            id=str(ticket.id),
            subject=ticket.subject,
            description=ticket.description or "",
            priority=TicketPriority.normalize(ticket.priority),
            category=ticket.category or "",
            created_at=ticket.created_at,
            organization_id=ticket.organization_id,
            assignee_id=ticket.assignee_id,
        )

    async def get_open_tickets(self, assignee_id: str) -> list[QueuedTicket]:
        """Unresolved tickets assigned to a staff member, oldest first."""
        stmt = (
            select(self._model)
            .where(
                and_(
                    self._model.assignee_id == assignee_id,
                    self._model.status.notin_(CLOSED_TICKET_STATUSES),
                )
            )
            .order_by(self._model.created_at)
        )
        result = await self._session.execute(stmt)
        return [
            QueuedTicket(
                id=str(ticket.id),
                priority=TicketPriority.normalize(ticket.priority),
                estimated_hours=ticket.estimated_hours,
                created_at=ticket.created_at,
            )
            for ticket in result.scalars().all()
        ]

    async def get_open_tasks(self, assignee_id: str) -> list[QueuedTask]:
        stmt = select(ProjectTaskModel).where(
            and_(
                ProjectTaskModel.assignee_id == assignee_id,
                ProjectTaskModel.status != TaskStatus.DONE,
            )
        )
        result = await self._session.execute(stmt)
        return [
            QueuedTask(id=str(task.id), estimated_hours=task.estimated_hours)
            for task in result.scalars().all()
        ]

    async def get_historical_ticket_data(self, category: str) -> list[HistoricalTicketData]:
        """Most recent resolved tickets of a category with recorded hours."""
        if not category:
            return []

        stmt = (
            select(self._model)
            .where(
                and_(
                    self._model.category == category,
                    self._model.status.in_(CLOSED_TICKET_STATUSES),
                    self._model.actual_hours.is_not(None),
                )
            )
            .order_by(self._model.resolved_at.desc())
            .limit(HISTORY_LIMIT)
        )
        result = await self._session.execute(stmt)
        return [
            HistoricalTicketData(
                category=ticket.category or "",
                actual_hours=ticket.actual_hours,
                priority=TicketPriority.normalize(ticket.priority),
                estimated_hours=ticket.estimated_hours,
            )
            for ticket in result.scalars().all()
        ]

    async def count_open_tickets_by_status(
        self, organization_id: str, statuses: Sequence[str]
    ) -> int:
        stmt = (
            select(func.count())
            .select_from(self._model)
            .where(
                and_(
                    self._model.organization_id == organization_id,
                    self._model.status.in_(list(statuses)),
                )
            )
        )
        result = await self._session.execute(stmt)
        return result.scalar() or 0


class PlanRepository(BaseRepository[PlanAssignmentModel]):
    """Repository for support plan assignments."""

    def __init__(self, session: AsyncSession):
        super().__init__(PlanAssignmentModel, session)

    async def has_active_plan(self, organization_id: str) -> bool:
        stmt = (
            select(func.count())
            .select_from(self._model)
            .where(
                and_(
                    self._model.organization_id == organization_id,
                    self._model.status == PlanStatus.ACTIVE,
                )
            )
        )
        result = await self._session.execute(stmt)
        return (result.scalar() or 0) > 0
