"""
FastAPI application entry point for the token auth service.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import structlog
import uvicorn

from .core.config import Settings, get_settings
from .core.database import DatabaseHealthCheck, close_db_connections, init_models
from .core.exceptions import AuthServiceError
from .core.middleware import SecurityHeadersMiddleware, RequestTrackingMiddleware
from .api.auth import router as auth_router
from .interfaces.notification_interface import INotificationDispatcher
from .interfaces.repository_interface import IAccountRepository
from .notifications.dispatchers import build_notification_dispatcher
from .repositories.account_repository import AccountRepository
from .services.auth_service import AuthService


def configure_logging(settings: Settings) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer() if settings.DEBUG else structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.LOG_LEVEL.upper())
        ),
        logger_factory=structlog.WriteLoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging(get_settings())

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.
    Handles startup and shutdown events.
    """
    settings: Settings = app.state.settings
    logger.info("Starting auth service", version=settings.VERSION, environment=settings.ENVIRONMENT)

    try:
        if settings.DATABASE_AUTO_CREATE:
            await init_models()

        yield

    finally:
        logger.info("Shutting down auth service")

        await app.state.notification_dispatcher.aclose()
        await close_db_connections()

        logger.info("Auth service shutdown complete")


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message}
    )


async def auth_error_handler(request: Request, exc: AuthServiceError):
    """Render auth errors with their own status and message."""
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Request failed", error_type=type(exc).__name__, error=exc.message)
    else:
        logger.info("Request rejected", error_type=type(exc).__name__, status_code=exc.status_code)
    return error_response(exc.status_code, exc.message)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors."""
    logger.warning("Validation error", errors=exc.errors(), path=request.url.path)
    return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request body")


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error", error_type=type(exc).__name__, error=str(exc))
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def create_app(
    settings: Optional[Settings] = None,
    notification_dispatcher: Optional[INotificationDispatcher] = None,
    account_repository: Optional[IAccountRepository] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Configuration for sessions, cookies, token lifetimes and email
            content, defaults to the environment. The database engine and the
            bcrypt cost are process-wide and always come from the environment.
        notification_dispatcher: Email channel, defaults to ``EMAIL_PROVIDER``
        account_repository: Account store, defaults to the SQLAlchemy repository

    Returns:
        Configured application with ``app.state.auth_service`` wired
    """
    settings = settings or get_settings()
    notification_dispatcher = notification_dispatcher or build_notification_dispatcher(settings)
    account_repository = account_repository or AccountRepository()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Token-based authentication service with email verification and password reset",
        version=settings.VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.notification_dispatcher = notification_dispatcher
    app.state.auth_service = AuthService(
        account_repository=account_repository,
        notification_dispatcher=notification_dispatcher,
        settings=settings
    )

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestTrackingMiddleware)

    app.add_exception_handler(AuthServiceError, auth_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/health", tags=["health"])
    async def health_check():
        """Basic health check endpoint."""
        return {"status": "healthy", "service": "token-auth", "version": settings.VERSION}

    @app.get("/ready", tags=["health"])
    async def readiness_check():
        """Readiness check with dependency validation."""
        checks = {"database": await DatabaseHealthCheck.check_connection()}

        if not all(checks.values()):
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "not_ready", "checks": checks, "version": settings.VERSION}
            )
        return {"status": "ready", "checks": checks, "version": settings.VERSION}

    app.include_router(auth_router, prefix=settings.API_PREFIX)

    return app


app = create_app()


def run_dev():
    """Run development server."""
    uvicorn.run(
        "token_auth.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="debug"
    )


def run_prod():
    """Run production server."""
    uvicorn.run(
        "token_auth.main:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
        log_level="info",
        workers=1,
        access_log=False  # Use structured logging instead
    )


if __name__ == "__main__":
    if get_settings().DEBUG:
        run_dev()
    else:
        run_prod()
