"""Heuristic estimate recorded when a ticket is created.

Unlike the completion estimate this needs no assignee: hours come from
priority and description length, and the completion date from the whole
organization's schedule capacity minus synced calendar busy time.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Awaitable, TypeVar

from portal_estimator.config import EstimationSettings
from portal_estimator.core.exceptions import EstimatePersistenceError
from portal_estimator.core.logging import get_logger
from portal_estimator.estimation.availability import BusyHoursLookup, CalendarAvailabilityResolver
from portal_estimator.estimation.heuristic import (
    BACKLOG_STATUSES,
    HEURISTIC_CONFIDENCE,
    HEURISTIC_MODEL,
    backlog_hours,
    calculate_cost_cents,
    calculate_estimated_hours,
    project_completion,
)
from portal_estimator.estimation.models import TicketEstimate, TicketPriority
from portal_estimator.estimation.utils import as_utc, start_of_day, utc_now
from portal_estimator.services.stores import (
    CalendarStore,
    EstimateSink,
    PlanStore,
    ScheduleStore,
    TicketStore,
)

log = get_logger(__name__)

T = TypeVar("T")


class HeuristicEstimateService:
    """Creates the first-pass TicketEstimate for a newly filed ticket."""

    def __init__(
        self,
        schedule_store: ScheduleStore,
        calendar_store: CalendarStore,
        ticket_store: TicketStore,
        plan_store: PlanStore,
        estimate_sink: EstimateSink,
        settings: EstimationSettings | None = None,
    ) -> None:
        self.schedule_store = schedule_store
        self.calendar_store = calendar_store
        self.ticket_store = ticket_store
        self.plan_store = plan_store
        self.estimate_sink = estimate_sink
        self.settings = settings or EstimationSettings()

    async def create_ticket_estimate(
        self,
        ticket_id: str,
        organization_id: str,
        created_by: str,
        priority: TicketPriority | str,
        description: str,
        now: datetime | None = None,
    ) -> TicketEstimate:
        """Compute, persist and return the heuristic estimate.

        Raises:
            EstimatePersistenceError: If the estimate could not be saved
        """
        now = as_utc(now) if now else utc_now()
        priority = TicketPriority.normalize(priority)

        hours = calculate_estimated_hours(priority, description)

        has_plan = await self._read(
            "plans", self.plan_store.has_active_plan(organization_id), False
        )
        cost_cents = calculate_cost_cents(hours, self.settings.default_rate_cents, has_plan)

        open_count = await self._read(
            "open_ticket_count",
            self.ticket_store.count_open_tickets_by_status(organization_id, BACKLOG_STATUSES),
            0,
        )
        total_hours = hours + backlog_hours(open_count)

        schedules = await self._read(
            "staff_schedules", self.schedule_store.get_staff_schedules(organization_id), []
        )
        busy: BusyHoursLookup = {}
        if schedules:
            resolver = CalendarAvailabilityResolver(
                schedules, horizon_days=self.settings.max_lookahead_days
            )
            today = now.date()
            blocks = await self._read(
                "calendar_blocks",
                self.calendar_store.get_busy_blocks(
                    resolver.staff_ids,
                    start_of_day(today),
                    start_of_day(today + timedelta(days=self.settings.max_lookahead_days)),
                ),
                [],
            )
            busy = resolver.resolve(blocks, today)

        projection = project_completion(
            total_hours,
            schedules,
            busy,
            now,
            max_lookahead_days=self.settings.max_lookahead_days,
        )

        estimate = TicketEstimate(
            ticket_id=ticket_id,
            organization_id=organization_id,
            estimated_hours=hours,
            estimated_cost_cents=cost_cents,
            estimated_completion_at=projection.completion_at,
            rationale=projection.rationale,
            created_by=created_by,
            ai_model=HEURISTIC_MODEL,
            ai_confidence=HEURISTIC_CONFIDENCE,
        )

        try:
            await self.estimate_sink.save_ticket_estimate(estimate)
        except EstimatePersistenceError:
            raise
        except Exception as e:
            raise EstimatePersistenceError(
                "Failed to save ticket estimate",
                details={"ticket_id": ticket_id},
                cause=e,
            ) from e

        log.info(
            "Ticket estimate created",
            ticket_id=ticket_id,
            organization_id=organization_id,
            estimated_hours=hours,
            backlog_tickets=open_count,
            completion_at=projection.completion_at.isoformat(),
        )
        return estimate

    async def estimate_on_ticket_created(
        self,
        ticket_id: str,
        organization_id: str,
        created_by: str,
        priority: TicketPriority | str,
        description: str,
        now: datetime | None = None,
    ) -> TicketEstimate | None:
        """Intake hook: a failed save is logged and ticket creation proceeds."""
        try:
            return await self.create_ticket_estimate(
                ticket_id, organization_id, created_by, priority, description, now=now
            )
        except EstimatePersistenceError as e:
            log.warning(
                "Ticket created without estimate",
                ticket_id=ticket_id,
                error=str(e),
            )
            return None

    @staticmethod
    async def _read(store: str, call: Awaitable[T], default: T) -> T:
        try:
            return await call
        except Exception as e:
            log.warning(
                "Store read failed, continuing without data",
                store=store,
                error=str(e),
            )
            return default
