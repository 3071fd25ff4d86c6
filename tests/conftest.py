"""Pytest configuration and fixtures for estimator tests."""

from __future__ import annotations

import os
import sys
from datetime import date, datetime, timezone
from pathlib import Path
from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

# Set test environment
os.environ["ESTIMATOR_ENV"] = "test"
os.environ["ESTIMATOR_DEBUG"] = "true"
os.environ["ESTIMATOR_DATABASE__URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ESTIMATOR_AI__PROVIDER"] = "none"


# Monday
MONDAY = date(2026, 1, 5)
MONDAY_9AM = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def monday() -> date:
    return MONDAY


@pytest.fixture
def monday_morning() -> datetime:
    return MONDAY_9AM


@pytest.fixture
def weekday_schedules():
    """staff-1 works Monday to Friday, 09:00-17:00."""
    from portal_estimator.estimation.models import OrgStaffSchedule

    return OrgStaffSchedule(user_id="staff-1").expand()


@pytest.fixture
def text_estimator():
    """Text estimator double; configure analyze_json per test."""
    from portal_estimator.ai.base import TextEstimatorResponse

    estimator = AsyncMock()
    estimator.analyze_json.return_value = TextEstimatorResponse(
        success=False, error="not configured"
    )
    return estimator


@pytest.fixture
def stores(weekday_schedules):
    """AsyncMock store doubles with an empty queue and no busy time."""
    schedule_store = AsyncMock()
    schedule_store.get_staff_schedules.return_value = weekday_schedules

    calendar_store = AsyncMock()
    calendar_store.get_busy_blocks.return_value = []

    ticket_store = AsyncMock()
    ticket_store.get_ticket.return_value = None
    ticket_store.get_open_tickets.return_value = []
    ticket_store.get_open_tasks.return_value = []
    ticket_store.get_historical_ticket_data.return_value = []
    ticket_store.count_open_tickets_by_status.return_value = 0

    plan_store = AsyncMock()
    plan_store.has_active_plan.return_value = False

    sink = AsyncMock()

    return {
        "schedule": schedule_store,
        "calendar": calendar_store,
        "tickets": ticket_store,
        "plans": plan_store,
        "sink": sink,
    }


@pytest.fixture
def mock_settings(monkeypatch):
    """Settings without config files or environment lookups."""
    from portal_estimator import config
    from portal_estimator.config import Settings

    settings = Settings(environment="test", debug=True)
    monkeypatch.setattr(config, "get_settings", lambda: settings)
    return settings


# ============================================================================
# Async Database Fixtures
# ============================================================================


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Fresh in-memory SQLite database per test."""
    from portal_estimator.db.session import create_test_engine

    engine = await create_test_engine()

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator:
    """Session that rolls back after each test."""
    from portal_estimator.db.session import get_test_session_factory

    async_session_factory = get_test_session_factory(db_engine)

    async with async_session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def schedule_repository(db_session):
    from portal_estimator.db.repositories import StaffScheduleRepository

    return StaffScheduleRepository(db_session)


@pytest_asyncio.fixture
async def calendar_repository(db_session):
    from portal_estimator.db.repositories import CalendarEventRepository

    return CalendarEventRepository(db_session)


@pytest_asyncio.fixture
async def ticket_repository(db_session):
    from portal_estimator.db.repositories import TicketRepository

    return TicketRepository(db_session)


@pytest_asyncio.fixture
async def plan_repository(db_session):
    from portal_estimator.db.repositories import PlanRepository

    return PlanRepository(db_session)


@pytest_asyncio.fixture
async def estimate_repository(db_session):
    from portal_estimator.db.repositories import EstimateRepository

    return EstimateRepository(db_session)


@pytest_asyncio.fixture
async def sample_schedule(db_session, schedule_repository):
    """staff-1 of org-1 works Monday to Friday, 09:00-17:00."""
    from portal_estimator.db.models import StaffWorkScheduleModel

    schedule = StaffWorkScheduleModel(
        organization_id="org-1",
        user_id="staff-1",
        work_days=[1, 2, 3, 4, 5],
        start_time="09:00",
        end_time="17:00",
    )

    await schedule_repository.create(schedule)
    await db_session.commit()

    return schedule
