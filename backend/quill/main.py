"""
Quill — Content Lifecycle Manager
=================================
Autosave drafts, version archive and scheduled publishing behind a FastAPI
service.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from quill import __version__
from quill.api.envelope import error_envelope, lifecycle_error_envelope
from quill.api.routes.content import router as content_router
from quill.core.config import get_settings
from quill.core.correlation import (
    bind_ids,
    clear_ids,
    get_correlation_id,
    get_request_id,
    new_correlation_id,
    new_request_id,
)
from quill.core.database import async_session, init_db
from quill.core.logging import get_logger, setup_logging
from quill.domain.content.errors import ContentLifecycleError
from quill.scheduler import start_publish_scheduler, stop_publish_scheduler
from quill.schemas import HealthResponse
from quill.services.autosave_service import autosave_registry

settings = get_settings()
logger = get_logger("main")

# Track uptime
_start_time = time.time()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup & shutdown lifecycle."""

    # ── Startup ──
    setup_logging(debug=settings.app_debug)
    logger.info("app_starting", app=settings.app_name, env=settings.app_env)

    await init_db()
    logger.info("database_initialized")

    if settings.scheduled_publish_in_process:
        start_publish_scheduler()

    logger.info("app_ready", port=settings.app_port)

    yield

    # ── Shutdown ──
    if settings.scheduled_publish_in_process:
        stop_publish_scheduler()
    autosave_registry.close_all()
    logger.info("app_shutdown")


# ── Create FastAPI App ──

app = FastAPI(
    title="Quill Content Lifecycle",
    description=(
        "Autosave, version archive and scheduled publishing for long-form content.\n\n"
        "Lifecycle: draft → scheduled → published, with unpublish back to draft."
    ),
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request Logging Middleware ──

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming requests with timing."""
    request_id = request.headers.get("x-request-id") or new_request_id()
    correlation_id = request.headers.get("x-correlation-id") or new_correlation_id()
    bind_ids(request_id=request_id, correlation_id=correlation_id)
    start = time.time()
    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        elapsed = round((time.time() - start) * 1000, 2)
        if response is not None:
            response.headers["x-request-id"] = request_id
            response.headers["x-correlation-id"] = correlation_id
            status_code = response.status_code
        else:
            status_code = 500

        if request.url.path not in ["/health", "/docs", "/redoc", "/openapi.json"]:
            logger.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status=status_code,
                elapsed_ms=elapsed,
                request_id=get_request_id(),
                correlation_id=get_correlation_id(),
            )
        clear_ids()


# ── Exception Handlers ──

@app.exception_handler(ContentLifecycleError)
async def lifecycle_exception_handler(request: Request, exc: ContentLifecycleError):
    logger.warning(
        "content_lifecycle_error",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code,
        message=exc.message,
    )
    return lifecycle_error_envelope(exc, path=request.url.path)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(
        "http_exception",
        path=request.url.path,
        status_code=exc.status_code,
        detail=str(exc.detail),
    )
    return error_envelope(
        code="http_error",
        message="Request failed",
        status_code=exc.status_code,
        details=exc.detail,
        meta={"path": request.url.path},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("validation_error", path=request.url.path, errors=exc.errors())
    return error_envelope(
        code="validation_error",
        message="Validation failed",
        status_code=422,
        details=exc.errors(),
        meta={"path": request.url.path},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return error_envelope(
        code="internal_error",
        message="Internal server error",
        status_code=500,
        details="Internal server error. The team has been notified.",
        meta={"path": request.url.path},
    )


# ── Register Routers ──

app.include_router(content_router, prefix="/api/v1")


@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health():
    database = "ok"
    try:
        async with async_session() as db:
            await db.execute(text("SELECT 1"))
    except Exception as exc:  # noqa: BLE001
        logger.warning("health_database_unavailable", error=str(exc))
        database = "unavailable"
    return HealthResponse(
        status="ok" if database == "ok" else "degraded",
        version=__version__,
        uptime_seconds=round(time.time() - _start_time, 2),
        database=database,
    )
