"""FastAPI application factory and configuration.

The lifespan wires the shared services onto app.state:
- user_db: MongoDB user store
- email_service: SMTP (or console) notifier
- registration: activation-code registration over an in-memory session table
- scheduler: background deadline reminders
"""

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from .auth_routes import router as auth_router
from .task_routes import router as task_router
from auth.database import UserDatabase
from auth.email_service import EmailService
from auth.registration import RegistrationService
from auth.sessions import SessionTable
from config.settings import Settings, get_settings
from reminders.scheduler import DeadlineScheduler

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once; later calls are no-ops."""
    if logging.root.handlers:
        return
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    # Suppress noisy uvicorn logs
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware to add request ID for log correlation."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


def create_app(
    settings: Optional[Settings] = None,
    user_db: Optional[UserDatabase] = None,
    email_service: Optional[EmailService] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    user_db and email_service default to ones built from settings; tests
    pass in-memory replacements.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("Starting tasker backend...")

        db = user_db or UserDatabase(settings.mongodb_uri, settings.mongodb_database)
        try:
            await db.connect()
            logger.info("MongoDB connected")
        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            raise

        mailer = email_service or EmailService(
            smtp_host=settings.smtp_host,
            smtp_port=settings.smtp_port,
            smtp_user=settings.smtp_user,
            smtp_password=settings.smtp_password,
            smtp_from_email=settings.smtp_from_email,
            smtp_timeout=settings.smtp_timeout_seconds,
        )
        if mailer.is_configured:
            logger.info("Email service configured with SMTP")
        else:
            logger.info("Email service using console fallback")

        registration = RegistrationService(
            db,
            mailer,
            SessionTable(),
            code_ttl_seconds=settings.registration_code_ttl_seconds,
        )

        scheduler = None
        if settings.reminders_enabled:
            scheduler = DeadlineScheduler(
                db,
                mailer,
                interval_seconds=settings.reminder_interval_seconds,
                window=timedelta(hours=settings.reminder_window_hours),
            )
            scheduler.start()

        # Store in app state
        app.state.settings = settings
        app.state.user_db = db
        app.state.email_service = mailer
        app.state.registration = registration
        app.state.scheduler = scheduler

        yield

        # Cleanup
        if scheduler:
            await scheduler.stop()
        await db.close()
        logger.info("Server shutting down...")

    app = FastAPI(
        title="Tasker",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Add request ID middleware for log correlation
    app.add_middleware(RequestIDMiddleware)

    app.include_router(auth_router)
    app.include_router(task_router)

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    @app.exception_handler(Exception)
    async def general_error_handler(request: Request, exc: Exception):
        """Log unexpected errors (store outages included) and answer 500."""
        logger.exception(f"Unhandled error on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    return app
