"""Dependency Injection for the estimator API.

Usage:
    from portal_estimator.dependencies import CompletionServiceDep

    @router.post("/endpoint")
    async def handler(service: CompletionServiceDep):
        ...
"""

from __future__ import annotations

import threading
from typing import Annotated, AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from portal_estimator.ai.base import TextEstimator
from portal_estimator.ai.factory import create_text_estimator
from portal_estimator.config import Settings, get_settings
from portal_estimator.db.repositories import (
    CalendarEventRepository,
    EstimateRepository,
    PlanRepository,
    StaffScheduleRepository,
    TicketRepository,
)
from portal_estimator.db.session import get_db as _get_db
from portal_estimator.estimation.classifier import TicketClassifier
from portal_estimator.services.completion_service import CompletionEstimationService
from portal_estimator.services.heuristic_estimate_service import HeuristicEstimateService
from portal_estimator.services.ticket_locks import TicketLockRegistry


_text_estimator_lock = threading.Lock()
_text_estimator_instance: TextEstimator | None = None
_ticket_locks = TicketLockRegistry()


# =============================================================================
# Settings / Database
# =============================================================================


def get_app_settings() -> Settings:
    return get_settings()


SettingsDep = Annotated[Settings, Depends(get_app_settings)]


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; commits on success, rolls back on error."""
    async for session in _get_db():
        yield session


DatabaseDep = Annotated[AsyncSession, Depends(get_db)]


# =============================================================================
# Estimation Dependencies
# =============================================================================


def get_text_estimator() -> TextEstimator:
    """Process-wide text estimator, created on first use."""
    global _text_estimator_instance

    if _text_estimator_instance is None:
        with _text_estimator_lock:
            if _text_estimator_instance is None:
                _text_estimator_instance = create_text_estimator(get_settings().ai)

    return _text_estimator_instance


TextEstimatorDep = Annotated[TextEstimator, Depends(get_text_estimator)]


def get_classifier(
    settings: SettingsDep,
    text_estimator: TextEstimatorDep,
) -> TicketClassifier:
    return TicketClassifier(text_estimator, timeout_seconds=settings.ai.timeout_seconds)


ClassifierDep = Annotated[TicketClassifier, Depends(get_classifier)]


def get_completion_service(
    db: DatabaseDep,
    settings: SettingsDep,
    classifier: ClassifierDep,
) -> CompletionEstimationService:
    tickets = TicketRepository(db)
    return CompletionEstimationService(
        schedule_store=StaffScheduleRepository(db),
        calendar_store=CalendarEventRepository(db),
        ticket_store=tickets,
        estimate_sink=EstimateRepository(db),
        classifier=classifier,
        settings=settings.estimation,
        locks=_ticket_locks,
    )


CompletionServiceDep = Annotated[CompletionEstimationService, Depends(get_completion_service)]


def get_heuristic_service(db: DatabaseDep, settings: SettingsDep) -> HeuristicEstimateService:
    return HeuristicEstimateService(
        schedule_store=StaffScheduleRepository(db),
        calendar_store=CalendarEventRepository(db),
        ticket_store=TicketRepository(db),
        plan_store=PlanRepository(db),
        estimate_sink=EstimateRepository(db),
        settings=settings.estimation,
    )


HeuristicServiceDep = Annotated[HeuristicEstimateService, Depends(get_heuristic_service)]


def reset_dependencies() -> None:
    """Drop cached singletons (tests)."""
    global _text_estimator_instance
    with _text_estimator_lock:
        _text_estimator_instance = None
