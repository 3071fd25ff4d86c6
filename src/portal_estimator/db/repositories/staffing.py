"""Schedule and calendar repositories.

Implement the ScheduleStore and CalendarStore contracts.
"""
from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from portal_estimator.core.exceptions import InvalidScheduleError
from portal_estimator.core.logging import get_logger
from portal_estimator.db.models.staffing import CalendarEventModel, StaffWorkScheduleModel
from portal_estimator.db.repositories.base import BaseRepository
from portal_estimator.estimation.models import CalendarBlock, OrgStaffSchedule, StaffSchedule
from portal_estimator.estimation.utils import as_utc

log = get_logger(__name__)


class StaffScheduleRepository(BaseRepository[StaffWorkScheduleModel]):
    """Repository for staff working hours."""

    def __init__(self, session: AsyncSession):
        super().__init__(StaffWorkScheduleModel, session)

    async def get_org_schedules(self, organization_id: str) -> list[OrgStaffSchedule]:
        stmt = (
            select(self._model)
            .where(self._model.organization_id == organization_id)
            .order_by(self._model.user_id)
        )
        result = await self._session.execute(stmt)
        return [
            OrgStaffSchedule(
                user_id=row.user_id,
                work_days=list(row.work_days or []),
                start_time=row.start_time,
                end_time=row.end_time,
            )
            for row in result.scalars().all()
        ]

    async def get_staff_schedules(self, organization_id: str) -> list[StaffSchedule]:
        """Per-weekday rows for the organization; malformed rows are skipped."""
        schedules: list[StaffSchedule] = []
        for org_schedule in await self.get_org_schedules(organization_id):
            try:
                schedules.extend(org_schedule.expand())
            except (InvalidScheduleError, ValueError) as e:
                log.warning(
                    "Skipping invalid staff schedule",
                    organization_id=organization_id,
                    user_id=org_schedule.user_id,
                    error=str(e),
                )
        return schedules


class CalendarEventRepository(BaseRepository[CalendarEventModel]):
    """Repository for synced calendar events."""

    def __init__(self, session: AsyncSession):
        super().__init__(CalendarEventModel, session)

    async def get_busy_blocks(
        self,
        staff_ids: Sequence[str],
        start: datetime,
        end: datetime,
    ) -> list[CalendarBlock]:
        """Busy events of the given staff members overlapping [start, end)."""
        if not staff_ids:
            return []

        stmt = (
            select(self._model)
            .where(
                and_(
                    self._model.user_id.in_(list(staff_ids)),
                    self._model.is_busy == True,  # noqa: E712
                    self._model.start_at < as_utc(end),
                    self._model.end_at > as_utc(start),
                )
            )
            .order_by(self._model.start_at)
        )
        result = await self._session.execute(stmt)
        return [
            CalendarBlock(
                staff_id=event.user_id,
                start_at=event.start_at,
                end_at=event.end_at,
                all_day=event.all_day,
                is_busy=event.is_busy,
                block_type=event.event_type,
                title=event.title,
            )
            for event in result.scalars().all()
        ]
