"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.app.api.routes.ai import router as ai_router
from backend.app.api.routes.blog import router as blog_router
from backend.app.api.routes.health import router as health_router
from backend.app.api.routes.posts import router as posts_router
from backend.app.core.errors import (
    AppError,
    ErrorKind,
    handle_error,
    normalize_unknown_error,
    store_error_code,
)
from backend.app.core.logging import (
    EVENT_APP_START,
    EVENT_CONFIG_LOADED,
    EVENT_CONFIG_PROBLEM,
    log_event,
    setup_logging,
)
from backend.app.core.settings import settings, verify_configuration
from backend.app.db.engine import init_db
from backend.app.db.migrations import run_migrations

setup_logging(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    log_event(logger, "info", EVENT_APP_START)
    log_event(logger, "info", EVENT_CONFIG_LOADED, **settings.safe_dump())
    for problem in verify_configuration(settings):
        log_event(logger, "warning", EVENT_CONFIG_PROBLEM, problem=problem)
    init_db()
    run_migrations()
    logger.info("Inkwell Blog API ready")
    yield
    logger.info("Inkwell Blog API shutting down")


app = FastAPI(
    title="Inkwell Blog API",
    version="0.1.0",
    description="Backend API for the Inkwell blogging platform.",
    lifespan=lifespan,
)


@app.exception_handler(AppError)
async def app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
    error = handle_error(exc)
    return JSONResponse(status_code=error.status_code, content=error.to_response())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    """Malformed bodies become a 400 without echoing the parser's detail."""
    logger.info(
        "request_rejected: path=%s error_count=%d", request.url.path, len(exc.errors()),
    )
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request format", "code": ErrorKind.validation.value},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler: log details, return a safe generic message."""
    if store_error_code(exc) is not None:
        error = handle_error(exc)
    else:
        error = normalize_unknown_error(exc, operation=f"{request.method} {request.url.path}")
    return JSONResponse(status_code=error.status_code, content=error.to_response())


app.include_router(health_router, tags=["health"])
app.include_router(ai_router, tags=["ai"])
app.include_router(posts_router, tags=["posts"])
app.include_router(blog_router, tags=["blog"])
