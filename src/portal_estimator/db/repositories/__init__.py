"""Repositories implementing the estimation store contracts."""

from portal_estimator.db.repositories.base import BaseRepository
from portal_estimator.db.repositories.estimates import EstimateRepository
from portal_estimator.db.repositories.staffing import (
    CalendarEventRepository,
    StaffScheduleRepository,
)
from portal_estimator.db.repositories.tickets import PlanRepository, TicketRepository

__all__ = [
    "BaseRepository",
    "CalendarEventRepository",
    "EstimateRepository",
    "PlanRepository",
    "StaffScheduleRepository",
    "TicketRepository",
]
