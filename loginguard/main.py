"""
loginguard application.

FastAPI service tracking failed logins per email and per client IP, with
structured logging, error handling, and a background cleanup sweep.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from loginguard import __version__
from loginguard.api import health_router, login_attempts_router, ops_router
from loginguard.auth import CleanupSweeper, LoginAttemptTracker
from loginguard.config import get_settings
from loginguard.core import (
    RequestContextMiddleware,
    RequestSizeLimitMiddleware,
    get_logger,
    setup_exception_handlers,
    setup_logging,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Startup
    setup_logging(
        level=settings.log_level,
        json_output=not settings.debug,
        log_file=settings.log_file or None,
    )

    # Initialize the tracker unless provided (useful in tests)
    if not hasattr(_app.state, "login_tracker"):
        _app.state.login_tracker = LoginAttemptTracker(settings.tracker_config())
    tracker: LoginAttemptTracker = _app.state.login_tracker

    sweeper = CleanupSweeper(tracker, tracker.config.cleanup_interval_seconds)
    _app.state.login_sweeper = sweeper
    sweeper.start()

    logger.info(
        "Starting loginguard",
        data={
            "host": settings.host,
            "port": settings.port,
            "debug": settings.debug,
            "max_attempts_per_email": tracker.config.max_attempts_per_email,
            "max_attempts_per_ip": tracker.config.max_attempts_per_ip,
            "lockout_seconds": tracker.config.lockout_seconds,
        },
    )
    if settings.is_production and not settings.admin_token:
        logger.warning("ADMIN_TOKEN is not set - lockout clearing is unauthenticated")

    yield

    # Shutdown
    logger.info("Shutting down loginguard")
    await sweeper.stop()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="loginguard",
        description="Brute-force login lockout service tracking failures per email and per IP",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Setup exception handlers (must be before middleware)
    setup_exception_handlers(app)

    # Add middleware (order matters - last added = first executed)
    # 1. Request size limit (reject oversized requests early)
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_bytes)

    # 2. Request context (inject request ID, log requests)
    app.add_middleware(RequestContextMiddleware)

    # 3. CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # Register routers
    app.include_router(health_router)
    app.include_router(login_attempts_router)
    app.include_router(ops_router)

    return app


# Create application instance
app = create_app()
