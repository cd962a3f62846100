"""
Main entrypoint for the Sound Map API.

This module assembles the FastAPI application: it sets up logging,
registers the error handlers that render failures as plain text,
includes the versioned routers and ties the database migrations and
the notification relay to the application lifecycle.  The app is
instantiated at import time as ``app``, e.g.::

    uvicorn soundmap_api.app.main:app --reload
"""

import logging
import sqlite3
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException

from .api.v1.router import router as v1_router
from .core.config import settings
from .core.db import init_db
from .core.errors import ApiError
from .core.logging_config import setup_logging
from .core.notifications import relay


logger = logging.getLogger(__name__)


def _describe_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "Invalid request: " + "; ".join(parts)


def register_error_handlers(app: FastAPI) -> None:
    """Render every failure as a plain text body with the right status."""

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> PlainTextResponse:
        return PlainTextResponse(exc.detail, status_code=exc.status_code)

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException) -> PlainTextResponse:
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> PlainTextResponse:
        return PlainTextResponse(_describe_validation_error(exc), status_code=400)

    @app.exception_handler(sqlite3.Error)
    async def database_error_handler(request: Request, exc: sqlite3.Error) -> PlainTextResponse:
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return PlainTextResponse("Internal server error", status_code=500)


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    # Logging first so that everything below can log.
    setup_logging(settings.log_level, settings.log_file or None)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)
    register_error_handlers(app)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "%s %s -> %s (%.1f ms)",
            request.method, request.url.path, response.status_code, elapsed_ms,
        )
        return response

    app.include_router(v1_router, prefix=settings.api_prefix)

    @app.on_event("startup")
    async def startup_event() -> None:
        init_db()
        await relay.start()

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        await relay.stop()

    return app


# Created at import time so that uvicorn can discover it.
app = create_app()
