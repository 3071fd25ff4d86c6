"""FastAPI application entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from portal_estimator import __version__
from portal_estimator.api import estimates, health
from portal_estimator.config import get_settings
from portal_estimator.core.exceptions import EstimatorError
from portal_estimator.core.logging import get_logger, setup_logging
from portal_estimator.db import close_db, init_db

log = get_logger(__name__)


def estimator_exception_handler(request: Request, exc: EstimatorError) -> JSONResponse:
    """Map estimator errors to their status code and structured body."""
    log.warning(
        "Request failed",
        error_code=exc.error_code,
        error=exc.message,
        path=request.url.path,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Consistent error body for HTTP errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": _status_code_to_error_type(exc.status_code),
            "message": str(exc.detail),
            "status_code": exc.status_code,
        },
    )


def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Field-level details for request validation failures."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        errors.append({
            "field": field or "request",
            "message": error["msg"],
            "type": error["type"],
        })

    return JSONResponse(
        status_code=422,
        content={
            "error": "validation_error",
            "message": "Request validation failed",
            "details": errors,
        },
    )


def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected errors; hide details outside debug mode."""
    log.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
    )

    detail = str(exc) if get_settings().debug else "An internal error occurred"

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": detail,
        },
    )


def _status_code_to_error_type(status_code: int) -> str:
    error_types = {
        400: "bad_request",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        422: "validation_error",
        500: "internal_error",
        502: "bad_gateway",
        503: "service_unavailable",
    }
    return error_types.get(status_code, "error")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()

    setup_logging(
        level=settings.log_level,
        json_output=settings.log_json,
        service_name="portal-estimator",
    )

    log.info(
        "Starting estimator",
        version=__version__,
        environment=settings.environment,
        text_estimator=settings.ai.provider,
    )

    await init_db()
    log.info("Database initialized")

    yield

    log.info("Shutting down estimator")
    await close_db()
    log.info("Database connections closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Portal Estimator",
        description="Capacity-aware ticket completion estimation",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Most specific first
    app.add_exception_handler(EstimatorError, estimator_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(health.router, tags=["Health"])
    app.include_router(estimates.router, prefix="/api/v1")

    return app


app = create_app()


def run() -> None:
    """Run the application with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "portal_estimator.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
