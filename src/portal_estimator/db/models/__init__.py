"""Database Models for the estimator.

Staffing Models:
- StaffWorkScheduleModel: Working hours per staff member
- CalendarEventModel: Synced calendar busy time

Ticket Models:
- TicketModel: Support tickets
- ProjectTaskModel: Project tasks
- PlanAssignmentModel: Support plans

Estimate Models:
- TicketEstimateModel: Heuristic estimate at ticket creation
- CompletionEstimateModel: Capacity-aware completion estimate
"""

from portal_estimator.db.models.estimates import (
    CompletionEstimateModel,
    TicketEstimateModel,
)
from portal_estimator.db.models.staffing import (
    CalendarEventModel,
    CalendarEventType,
    StaffWorkScheduleModel,
)
from portal_estimator.db.models.tickets import (
    CLOSED_TICKET_STATUSES,
    PlanAssignmentModel,
    PlanStatus,
    ProjectTaskModel,
    TaskStatus,
    TicketModel,
    TicketStatus,
)

__all__ = [
    "CLOSED_TICKET_STATUSES",
    "CalendarEventModel",
    "CalendarEventType",
    "CompletionEstimateModel",
    "PlanAssignmentModel",
    "PlanStatus",
    "ProjectTaskModel",
    "StaffWorkScheduleModel",
    "TaskStatus",
    "TicketEstimateModel",
    "TicketModel",
    "TicketStatus",
]
