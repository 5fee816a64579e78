"""SidePilot Backend: FastAPI application entry point."""

import signal
import uuid
from contextlib import asynccontextmanager

# Logging is configured before the other app imports: structlog caches
# the processor chain on first use.
from sidepilot.core.config import get_settings as _get_settings_early
from sidepilot.core.logging import configure_logging_from_settings

configure_logging_from_settings(_get_settings_early())

import structlog

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sidepilot.api.routes import api_router
from sidepilot.core.config import get_settings
from sidepilot.core.exceptions import SidePilotError
from sidepilot.db import close_db, close_redis, init_db, init_redis
from sidepilot.middleware.correlation import (
    REQUEST_ID_HEADER,
    get_correlation_id,
    setup_correlation_middleware,
)
from sidepilot.schemas.projects import field_errors

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # SIGTERM flips this so the health check returns 503 while draining
    app.state.shutting_down = False

    def handle_sigterm(signum, frame):
        app.state.shutting_down = True
        logger.info("sigterm_received", action="health_check_503_draining_connections")

    signal.signal(signal.SIGTERM, handle_sigterm)

    # Startup
    settings = get_settings()
    logger.info(
        "startup_begin",
        app_name=settings.app_name,
        debug=settings.debug,
        storage_backend=settings.storage_backend,
    )

    if settings.storage_backend != "memory":
        await init_db()
        logger.info("db_initialized")

    # Redis only backs the link preview cache (non-fatal)
    if await init_redis():
        logger.info("redis_initialized")

    yield

    # Shutdown
    logger.info("shutdown_begin")
    await close_redis()
    await close_db()
    logger.info("shutdown_complete")


def _error_response(
    request: Request,
    status_code: int,
    message: str,
    event: str,
    errors: list[dict] | None = None,
    **log_context,
) -> JSONResponse:
    """Log with a fresh debug_id and return the ``{message, errors?, debug_id}`` envelope."""
    debug_id = str(uuid.uuid4())
    log = logger.error if status_code >= 500 else logger.warning
    log(
        event,
        status_code=status_code,
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        user_id=getattr(request.state, "user_id", None),
        **log_context,
    )

    content: dict = {"message": message, "debug_id": debug_id}
    if errors is not None:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Global handler for HTTPException; ``detail`` becomes ``message``."""
    return _error_response(
        request,
        exc.status_code,
        str(exc.detail),
        "http_exception",
        detail=exc.detail,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and query params are 400s with field-level errors."""
    errors = field_errors(exc.errors())
    return _error_response(
        request,
        400,
        "Validation error",
        "request_validation_failed",
        errors=errors,
        fields=[e["path"] for e in errors],
    )


async def sidepilot_exception_handler(request: Request, exc: SidePilotError) -> JSONResponse:
    """Typed application errors map to their own status and public message.

    The internal exception text is logged, never returned.
    """
    return _error_response(
        request,
        exc.status_code,
        exc.public_message,
        "application_error",
        errors=getattr(exc, "errors", None),
        error=str(exc),
        error_type=type(exc).__name__,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global handler for unhandled errors: full traceback in logs, generic 500 to client."""
    return _error_response(
        request,
        500,
        "Internal server error",
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )


def install_exception_handlers(app: FastAPI) -> None:
    app.exception_handler(HTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(SidePilotError)(sidepilot_exception_handler)
    app.exception_handler(Exception)(generic_exception_handler)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="SidePilot - side-project portfolio dashboard API",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url, *settings.clerk_allowed_origins],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    # Correlation ID middleware (runs first on incoming requests)
    setup_correlation_middleware(app)

    install_exception_handlers(app)

    # Include API routes
    app.include_router(api_router, prefix="/api")

    return app


# Create the app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "sidepilot.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
