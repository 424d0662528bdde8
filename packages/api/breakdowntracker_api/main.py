"""FastAPI application entry point for the Breakdown Tracker API."""

import asyncio
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from breakdowntracker.domain.models.tracking_error import ErrorCategory, TrackingError
from breakdowntracker_api.api import v1
from breakdowntracker_api.dependencies import close_tracker

# Initialize structured logger
logger = structlog.get_logger(__name__)

ERROR_STATUS_CODES: dict[ErrorCategory, int] = {
    ErrorCategory.ValidationError: 422,
    ErrorCategory.StateTransitionError: 409,
    ErrorCategory.PermissionDeniedError: 403,
    ErrorCategory.NotFoundError: 404,
    ErrorCategory.PersistenceError: 503,
}


def get_shutdown_timeout() -> int:
    """Get shutdown timeout from environment variable.

    Returns:
        Shutdown timeout in seconds (default: 30).
    """
    return int(os.getenv("SHUTDOWN_TIMEOUT_SECONDS", "30"))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Start up, then stop the tracker's refreshers on shutdown."""
    logger.info("application_startup", message="Breakdown Tracker API starting up")
    shutdown_timeout = get_shutdown_timeout()

    yield

    logger.info("shutdown_started", message="Beginning graceful shutdown")
    try:
        await asyncio.wait_for(close_tracker(), timeout=shutdown_timeout)
        logger.info("shutdown_completed", message="Graceful shutdown completed successfully")
    except asyncio.TimeoutError:
        logger.warning(
            "shutdown_timeout_exceeded",
            timeout_seconds=shutdown_timeout,
            message=f"Shutdown timeout ({shutdown_timeout}s) exceeded, forcing exit",
        )
    except Exception as e:
        logger.error(
            "shutdown_error",
            error=str(e),
            message="Unexpected error during shutdown",
        )


app = FastAPI(
    title="Breakdown Tracker API",
    version="0.1.0",
    description="Status tracking and analytics for vehicle breakdown records",
    lifespan=lifespan,
)


@app.exception_handler(TrackingError)
async def tracking_error_handler(request: Request, exc: TrackingError) -> JSONResponse:
    status_code = ERROR_STATUS_CODES.get(exc.category, 400)
    if status_code >= 500:
        logger.warning(
            "tracking_error",
            path=request.url.path,
            category=exc.category.value,
            error=exc.message,
        )
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "category": exc.category.value,
                "message": exc.message,
                "details": jsonable_encoder(exc.details),
            }
        },
    )


@app.get("/health", include_in_schema=False)
async def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(v1.router, prefix="/api/v1")
