"""Health check endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from portal_estimator import __version__
from portal_estimator.config import get_settings
from portal_estimator.core.retry import get_circuit_breaker_status
from portal_estimator.db.session import get_db_context

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: str
    version: str
    environment: str
    checks: dict[str, Any]


@router.get("/health")
async def health_check() -> HealthResponse:
    """Report API, database and text estimator status."""
    settings = get_settings()

    checks: dict[str, Any] = {
        "api": "ok",
        "database": await _check_database(),
        "text_estimator": settings.ai.provider if settings.ai.provider != "none" else "disabled",
        "circuit_breakers": get_circuit_breaker_status(),
    }

    return HealthResponse(
        status="healthy" if checks["database"] == "ok" else "degraded",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=__version__,
        environment=settings.environment,
        checks=checks,
    )


@router.get("/live")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}


async def _check_database() -> str:
    try:
        async with get_db_context() as db:
            await db.execute(text("SELECT 1"))
        return "ok"
    except Exception:
        return "error"
