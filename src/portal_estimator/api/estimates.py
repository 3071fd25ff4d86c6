"""Estimation API.

REST endpoints over the classification and estimation engine.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from portal_estimator.core.logging import get_logger
from portal_estimator.db.repositories import EstimateRepository
from portal_estimator.dependencies import (
    ClassifierDep,
    CompletionServiceDep,
    DatabaseDep,
    HeuristicServiceDep,
)
from portal_estimator.estimation.heuristic import calculate_estimated_hours
from portal_estimator.estimation.models import TicketPriority

log = get_logger(__name__)

router = APIRouter(prefix="/estimates", tags=["Estimates"])


# ============================================================================
# Request/Response Models
# ============================================================================


class ClassifyRequest(BaseModel):
    """Ticket text to classify."""

    subject: str = Field(..., min_length=1, max_length=255)
    description: str = Field("", max_length=20000)


class AnalyzeRequest(ClassifyRequest):
    """Ticket text plus optional context for full analysis."""

    available_categories: list[str] | None = None
    customer_history: dict[str, Any] | None = None
    kb_article_titles: list[str] | None = None


class HoursRequest(BaseModel):
    """Inputs of the creation-time hours heuristic."""

    priority: str = Field("medium", description="low, medium, high, critical")
    description: str = Field("", max_length=20000)


class HoursResponse(BaseModel):
    priority: str
    estimated_hours: float


class CompletionRequest(BaseModel):
    """Optional override of the staff member doing the work."""

    staff_id: str | None = Field(None, description="Defaults to the ticket assignee")
    now: datetime | None = Field(None, description="Estimation time, defaults to now (UTC)")


class HeuristicRequest(BaseModel):
    """Inputs of the creation-time estimate."""

    organization_id: str
    created_by: str
    priority: str = "medium"
    description: str = ""
    now: datetime | None = None


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/classify")
async def classify_ticket(request: ClassifyRequest, classifier: ClassifierDep) -> dict[str, Any]:
    """Suggest category and priority for ticket text."""
    result = await classifier.classify(request.subject, request.description)
    return result.to_dict()


@router.post("/analyze")
async def analyze_ticket(request: AnalyzeRequest, classifier: ClassifierDep) -> dict[str, Any]:
    """Full analysis; ``analysis`` is null when no text estimator answered."""
    analysis = await classifier.analyze(
        request.subject,
        request.description,
        available_categories=request.available_categories,
        customer_history=request.customer_history,
        kb_article_titles=request.kb_article_titles,
    )
    return {"analysis": analysis.to_dict() if analysis else None}


@router.post("/hours", response_model=HoursResponse)
async def heuristic_hours(request: HoursRequest) -> HoursResponse:
    """Creation-time hours estimate from priority and description length."""
    priority = TicketPriority.normalize(request.priority)
    return HoursResponse(
        priority=priority.value,
        estimated_hours=calculate_estimated_hours(priority, request.description),
    )


@router.get("/staff/{staff_id}/workload")
async def staff_workload(
    staff_id: str,
    service: CompletionServiceDep,
    organization_id: str | None = Query(None, description="Organization of the schedules"),
) -> dict[str, Any]:
    """Current utilization snapshot for a staff member."""
    workload = await service.analyze_workload(staff_id, organization_id)
    return workload.to_dict()


@router.get("/staff/{staff_id}/availability")
async def staff_availability(
    staff_id: str,
    service: CompletionServiceDep,
    organization_id: str | None = Query(None),
    start_date: date | None = Query(None, description="First day, defaults to today (UTC)"),
    days: int | None = Query(None, ge=1, le=90),
) -> dict[str, Any]:
    """Daily net free hours for a staff member."""
    windows = await service.availability(staff_id, organization_id, start_date, days)
    return {
        "staff_id": staff_id,
        "windows": [w.to_dict() for w in windows],
        "total_net_hours": sum(w.net_hours for w in windows),
    }


@router.post("/tickets/{ticket_id}/completion")
async def estimate_ticket_completion(
    ticket_id: str,
    service: CompletionServiceDep,
    request: CompletionRequest | None = None,
) -> dict[str, Any]:
    """Compute and store the completion estimate for an assigned ticket."""
    request = request or CompletionRequest()
    estimate = await service.estimate_ticket_by_id(
        ticket_id, staff_id=request.staff_id, now=request.now
    )
    return estimate.to_dict()


@router.get("/tickets/{ticket_id}/completion")
async def get_ticket_completion(ticket_id: str, db: DatabaseDep) -> dict[str, Any]:
    """Last stored completion estimate."""
    row = await EstimateRepository(db).get_completion_estimate(ticket_id)
    if row is None:
        raise HTTPException(status_code=404, detail="No completion estimate for ticket")
    return {
        "ticket_id": row.ticket_id,
        "estimated_start_date": row.estimated_start_date.isoformat(),
        "estimated_completion_date": row.estimated_completion_date.isoformat(),
        "confidence_level": row.confidence_level,
        "confidence_percent": row.confidence_percent,
        "estimated_hours": row.estimated_hours,
        "complexity_score": row.complexity_score,
        "factors": row.factors,
        "assigned_to": row.assigned_to,
        "queue_position": row.queue_position,
        "tickets_ahead": row.tickets_ahead,
        "client_message": row.client_message,
        "detailed_breakdown": row.detailed_breakdown,
    }


@router.post("/tickets/{ticket_id}/heuristic")
async def create_heuristic_estimate(
    ticket_id: str,
    request: HeuristicRequest,
    service: HeuristicServiceDep,
) -> dict[str, Any]:
    """Record the creation-time estimate for a ticket."""
    estimate = await service.create_ticket_estimate(
        ticket_id=ticket_id,
        organization_id=request.organization_id,
        created_by=request.created_by,
        priority=request.priority,
        description=request.description,
        now=request.now,
    )
    return estimate.to_dict()
