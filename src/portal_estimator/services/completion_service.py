"""Completion estimation service.

Gathers staffing data from the stores, runs the estimation engine and
persists the result through the estimate sink.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Awaitable, Sequence, TypeVar

from portal_estimator.config import EstimationSettings
from portal_estimator.core.exceptions import (
    EstimatePersistenceError,
    TicketNotFoundError,
    ValidationError,
)
from portal_estimator.core.logging import get_logger
from portal_estimator.estimation.availability import generate_availability_windows
from portal_estimator.estimation.classifier import TicketClassifier, check_escalation
from portal_estimator.estimation.completion import CompletionEstimator, HoursEstimator
from portal_estimator.estimation.models import (
    AvailabilityWindow,
    CalendarBlock,
    CompletionEstimate,
    EstimationTicket,
    QueuedTicket,
    StaffSchedule,
    TicketPriority,
    WorkloadAnalysis,
)
from portal_estimator.estimation.utils import as_utc, start_of_day, utc_now
from portal_estimator.estimation.workload import WorkloadAnalyzer
from portal_estimator.services.stores import (
    CalendarStore,
    EstimateSink,
    ScheduleStore,
    TicketStore,
)
from portal_estimator.services.ticket_locks import TicketLockRegistry

log = get_logger(__name__)

T = TypeVar("T")


class CompletionEstimationService:
    """Projects and records completion dates for assigned tickets.

    Store read failures are logged and treated as missing data; only a
    failed write surfaces, as EstimatePersistenceError.

    Usage:
        service = CompletionEstimationService(
            schedule_store, calendar_store, ticket_store, sink,
            classifier=TicketClassifier(text_estimator),
        )
        estimate = await service.estimate_ticket(ticket)
    """

    def __init__(
        self,
        schedule_store: ScheduleStore,
        calendar_store: CalendarStore,
        ticket_store: TicketStore,
        estimate_sink: EstimateSink,
        classifier: TicketClassifier | None = None,
        estimator: CompletionEstimator | None = None,
        settings: EstimationSettings | None = None,
        locks: TicketLockRegistry | None = None,
    ) -> None:
        self.settings = settings or EstimationSettings()
        self.schedule_store = schedule_store
        self.calendar_store = calendar_store
        self.ticket_store = ticket_store
        self.estimate_sink = estimate_sink
        self.classifier = classifier or TicketClassifier()
        self.estimator = estimator or CompletionEstimator(
            HoursEstimator(
                text_estimator=self.classifier.text_estimator,
                timeout_seconds=self.classifier.timeout_seconds,
                min_samples=self.settings.history_min_samples,
                default_hours=self.settings.default_estimated_hours,
            )
        )
        self.workload_analyzer = WorkloadAnalyzer(self.settings.next_slot_search_days)
        self.locks = locks or TicketLockRegistry()

    # ========================================================================
    # Estimation
    # ========================================================================

    async def estimate_ticket_by_id(
        self,
        ticket_id: str,
        staff_id: str | None = None,
        now: datetime | None = None,
    ) -> CompletionEstimate:
        """Load a ticket and estimate it.

        Raises:
            TicketNotFoundError: If the ticket store has no such ticket
        """
        ticket = await self.ticket_store.get_ticket(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(
                f"Ticket {ticket_id} not found", details={"ticket_id": ticket_id}
            )
        return await self.estimate_ticket(ticket, staff_id=staff_id, now=now)

    async def estimate_ticket(
        self,
        ticket: EstimationTicket,
        staff_id: str | None = None,
        now: datetime | None = None,
        persist: bool = True,
    ) -> CompletionEstimate:
        """Estimate a ticket's completion for its assignee.

        Args:
            ticket: Ticket to estimate; an empty category is classified first
            staff_id: Staff member doing the work, defaults to the assignee
            now: Estimation time, defaults to the current UTC time
            persist: Write the result through the estimate sink

        Returns:
            CompletionEstimate

        Raises:
            ValidationError: If no staff member is known
            EstimatePersistenceError: If the estimate could not be saved
        """
        staff_id = staff_id or ticket.assignee_id
        if not staff_id:
            raise ValidationError(
                "Ticket has no assignee to estimate against",
                details={"ticket_id": ticket.id},
            )

        now = as_utc(now) if now else utc_now()

        # Blocks must cover both the next-slot scan and the availability windows
        block_days = max(
            self.settings.next_slot_search_days, self.settings.availability_window_days
        )

        async with self.locks.lock(ticket.id):
            ticket = await self._prepare_ticket(ticket)

            schedules = await self._staff_schedules(ticket.organization_id, staff_id)
            blocks = await self._busy_blocks([staff_id], now.date(), block_days)
            open_tickets = await self._read(
                "open_tickets", self.ticket_store.get_open_tickets(staff_id), []
            )
            open_tasks = await self._read(
                "open_tasks", self.ticket_store.get_open_tasks(staff_id), []
            )

            if ticket.queue_position is None:
                ticket = replace(
                    ticket, queue_position=self._queue_position(ticket.id, open_tickets)
                )

            workload = self.workload_analyzer.analyze(
                staff_id, schedules, blocks, open_tickets, open_tasks, now=now
            )
            windows = generate_availability_windows(
                schedules,
                blocks,
                now.date(),
                days=self.settings.availability_window_days,
                staff_id=staff_id,
            )
            historical = await self._read(
                "historical_tickets",
                self.ticket_store.get_historical_ticket_data(ticket.category),
                [],
            )

            estimate = await self.estimator.estimate_completion(
                ticket, staff_id, workload, windows, historical, today=now.date()
            )

            if persist:
                await self._save(estimate)

        return estimate

    async def analyze_workload(
        self,
        staff_id: str,
        organization_id: str | None = None,
        now: datetime | None = None,
    ) -> WorkloadAnalysis:
        """Workload snapshot for one staff member."""
        now = as_utc(now) if now else utc_now()
        schedules = await self._staff_schedules(organization_id, staff_id)
        blocks = await self._busy_blocks(
            [staff_id], now.date(), self.settings.next_slot_search_days
        )
        open_tickets = await self._read(
            "open_tickets", self.ticket_store.get_open_tickets(staff_id), []
        )
        open_tasks = await self._read(
            "open_tasks", self.ticket_store.get_open_tasks(staff_id), []
        )
        return self.workload_analyzer.analyze(
            staff_id, schedules, blocks, open_tickets, open_tasks, now=now
        )

    async def availability(
        self,
        staff_id: str,
        organization_id: str | None = None,
        start_date: date | None = None,
        days: int | None = None,
    ) -> list[AvailabilityWindow]:
        """Daily availability windows for one staff member."""
        start_date = start_date or utc_now().date()
        days = days or self.settings.availability_window_days
        schedules = await self._staff_schedules(organization_id, staff_id)
        blocks = await self._busy_blocks([staff_id], start_date, days)
        return generate_availability_windows(
            schedules, blocks, start_date, days=days, staff_id=staff_id
        )

    # ========================================================================
    # Helpers
    # ========================================================================

    async def _prepare_ticket(self, ticket: EstimationTicket) -> EstimationTicket:
        """Classify an uncategorized ticket and apply escalation."""
        if not ticket.category:
            classification = await self.classifier.classify(ticket.subject, ticket.description)
            log.info(
                "Classified ticket before estimation",
                ticket_id=ticket.id,
                category=classification.category,
                source=classification.source.value,
            )
            ticket = replace(ticket, category=classification.category)
            if classification.requires_escalation:
                ticket = replace(ticket, priority=TicketPriority.CRITICAL)
            return ticket

        escalation = check_escalation(ticket.subject, ticket.description)
        if escalation.requires_escalation and ticket.priority != TicketPriority.CRITICAL:
            log.info("Escalating ticket", ticket_id=ticket.id, trigger=escalation.trigger)
            ticket = replace(ticket, priority=TicketPriority.CRITICAL)
        return ticket

    def _queue_position(self, ticket_id: str, open_tickets: Sequence[QueuedTicket]) -> int:
        """1-based position in the assignee's queue, oldest first."""
        if not open_tickets:
            return self.settings.default_queue_position

        ordered = sorted(
            open_tickets,
            key=lambda t: (t.created_at is None, as_utc(t.created_at) if t.created_at else None),
        )
        for index, queued in enumerate(ordered):
            if queued.id == ticket_id:
                return index + 1
        return len(ordered) + 1

    async def _staff_schedules(
        self, organization_id: str | None, staff_id: str
    ) -> list[StaffSchedule]:
        if not organization_id:
            return []
        schedules = await self._read(
            "staff_schedules", self.schedule_store.get_staff_schedules(organization_id), []
        )
        return [s for s in schedules if s.staff_id == staff_id]

    async def _busy_blocks(
        self, staff_ids: Sequence[str], start_date: date, days: int
    ) -> list[CalendarBlock]:
        return await self._read(
            "calendar_blocks",
            self.calendar_store.get_busy_blocks(
                staff_ids,
                start_of_day(start_date),
                start_of_day(start_date + timedelta(days=days)),
            ),
            [],
        )

    async def _save(self, estimate: CompletionEstimate) -> None:
        try:
            await self.estimate_sink.save_completion_estimate(estimate)
        except EstimatePersistenceError:
            raise
        except Exception as e:
            log.error(
                "Failed to save completion estimate",
                ticket_id=estimate.ticket_id,
                error=str(e),
            )
            raise EstimatePersistenceError(
                "Failed to save completion estimate",
                details={"ticket_id": estimate.ticket_id},
                cause=e,
            ) from e

    @staticmethod
    async def _read(store: str, call: Awaitable[T], default: T) -> T:
        try:
            return await call
        except Exception as e:
            log.warning(
                "Store read failed, continuing without data",
                store=store,
                error=str(e),
                error_type=type(e).__name__,
            )
            return default
