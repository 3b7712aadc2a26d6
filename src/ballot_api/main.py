"""FastAPI application factory.

Creates the FastAPI app with lifespan management (database engine and the
phase scheduler), exception handlers, and OpenAPI metadata.
"""

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.exc import DBAPIError, IntegrityError

from ballot_api import __version__
from ballot_api.core.config import get_settings
from ballot_api.core.database import dispose_engine, init_engine
from ballot_api.core.errors import (
    ElectionError,
    ImportRejected,
    IncompleteBallot,
    PhaseConfirmationRequired,
    RateLimited,
)
from ballot_api.core.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifecycle: init engine on startup, dispose on shutdown."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_dir)
    init_engine(settings.database_url, echo=False, schema=settings.database_schema)

    scheduler_task = None
    if settings.phase_scheduler_enabled:
        from ballot_api.services.phase_service import phase_scheduler_loop

        scheduler_task = asyncio.create_task(phase_scheduler_loop(settings.phase_check_interval_seconds))

    yield

    if scheduler_task is not None:
        scheduler_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await scheduler_task

    await dispose_engine()


def election_error_content(exc: ElectionError) -> dict:
    """JSON body for a domain error: ``detail`` and ``code`` plus error-specific extras."""
    content: dict = {"detail": exc.message, "code": exc.code}
    if isinstance(exc, PhaseConfirmationRequired):
        content["warning"] = exc.warning
    elif isinstance(exc, IncompleteBallot):
        content["errors"] = [
            {"missing": exc.missing, "unexpected": exc.unexpected, "invalid": exc.invalid},
        ]
    elif isinstance(exc, ImportRejected):
        content["errors"] = [
            {"row": e.row, "membership_id": e.membership_id, "reason": e.reason} for e in exc.errors
        ]
    return content


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Ballot API",
        description="Membership election engine: phase control, phone verification, and one-vote ballots",
        version=__version__,
        lifespan=lifespan,
    )

    @app.exception_handler(ElectionError)
    async def election_error_handler(request: Request, exc: ElectionError) -> JSONResponse:
        headers = None
        if isinstance(exc, RateLimited):
            headers = {"Retry-After": str(max(1, int(exc.retry_after) + 1))}
        return JSONResponse(status_code=exc.status_code, content=election_error_content(exc), headers=headers)

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc)},
        )

    @app.exception_handler(DBAPIError)
    async def store_error_handler(request: Request, exc: DBAPIError) -> JSONResponse:
        if isinstance(exc, IntegrityError):
            logger.warning("Integrity error on {}: {}", request.url.path, exc.orig)
            return JSONResponse(
                status_code=409,
                content={"detail": "The request conflicts with existing data", "code": "conflict"},
            )
        logger.exception("Store unavailable while handling {}", request.url.path)
        return JSONResponse(
            status_code=503,
            content={"detail": "The data store is temporarily unavailable", "code": "store_unavailable"},
        )

    from ballot_api.api.router import create_router, setup_middleware

    setup_middleware(app, settings)
    app.include_router(create_router(settings))

    return app
