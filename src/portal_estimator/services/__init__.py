"""Estimation services: store orchestration around the pure engine."""

from portal_estimator.services.completion_service import CompletionEstimationService
from portal_estimator.services.heuristic_estimate_service import HeuristicEstimateService
from portal_estimator.services.stores import (
    CalendarStore,
    EstimateSink,
    PlanStore,
    ScheduleStore,
    TicketStore,
)
from portal_estimator.services.ticket_locks import TicketLockRegistry

__all__ = [
    "CalendarStore",
    "CompletionEstimationService",
    "EstimateSink",
    "HeuristicEstimateService",
    "PlanStore",
    "ScheduleStore",
    "TicketLockRegistry",
    "TicketStore",
]
