"""Estimate repository implementing the EstimateSink contract."""
from __future__ import annotations

from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portal_estimator.core.exceptions import EstimatePersistenceError
from portal_estimator.db.models.estimates import CompletionEstimateModel, TicketEstimateModel
from portal_estimator.db.repositories.base import BaseRepository
from portal_estimator.estimation.models import CompletionEstimate, TicketEstimate


class EstimateRepository(BaseRepository[CompletionEstimateModel]):
    """Writes both estimate tables, one row per ticket, last write wins."""

    def __init__(self, session: AsyncSession):
        super().__init__(CompletionEstimateModel, session)
        self._ticket_estimates = BaseRepository(TicketEstimateModel, session)

    async def save_completion_estimate(self, estimate: CompletionEstimate) -> None:
        fields: dict[str, Any] = {
            "estimated_start_date": estimate.estimated_start_date,
            "estimated_completion_date": estimate.estimated_completion_date,
            "confidence_level": estimate.confidence_level.value,
            "confidence_percent": estimate.confidence_percent,
            "estimated_hours": estimate.estimated_hours,
            "complexity_score": estimate.complexity_score,
            "factors": [f.to_dict() for f in estimate.factors],
            "assigned_to": estimate.assigned_to,
            "staff_availability": [w.to_dict() for w in estimate.staff_availability],
            "queue_position": estimate.queue_position,
            "tickets_ahead": estimate.tickets_ahead,
            "client_message": estimate.client_message,
            "detailed_breakdown": estimate.detailed_breakdown,
        }
        try:
            await self.upsert_by("ticket_id", estimate.ticket_id, fields)
        except SQLAlchemyError as e:
            raise EstimatePersistenceError(
                "Could not write completion estimate",
                details={"ticket_id": estimate.ticket_id},
                cause=e,
            ) from e

    async def save_ticket_estimate(self, estimate: TicketEstimate) -> None:
        fields: dict[str, Any] = {
            "organization_id": estimate.organization_id,
            "estimated_hours": estimate.estimated_hours,
            "estimated_cost_cents": estimate.estimated_cost_cents,
            "estimated_completion_at": estimate.estimated_completion_at,
            "estimated_completion_reason": estimate.rationale,
            "created_by": estimate.created_by,
            "ai_model": estimate.ai_model,
            "ai_confidence": estimate.ai_confidence,
        }
        try:
            await self._ticket_estimates.upsert_by("ticket_id", estimate.ticket_id, fields)
        except SQLAlchemyError as e:
            raise EstimatePersistenceError(
                "Could not write ticket estimate",
                details={"ticket_id": estimate.ticket_id},
                cause=e,
            ) from e

    async def get_completion_estimate(self, ticket_id: str) -> CompletionEstimateModel | None:
        return await self.find_one(ticket_id=ticket_id)

    async def get_ticket_estimate(self, ticket_id: str) -> TicketEstimateModel | None:
        return await self._ticket_estimates.find_one(ticket_id=ticket_id)
