"""Main FastAPI application for the Lightning Lessons API."""

import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from lessons.api.rate_limit import limiter
from lessons.api.routers.checkout import router as checkout_router
from lessons.api.routers.health import router as health_router
from lessons.api.routers.signup import router as signup_router
from lessons.email.service import EmailService
from lessons.logging_config import configure_logging, get_logger
from lessons.payments.stripe_service import ProcessorError, StripeService
from lessons.referral.service import MutualReferralService, ReferralStepFailed
from lessons.settings import Settings, settings as default_settings
from lessons.storage.db import Database

# Configure logging
configure_logging()
logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id to every log line emitted while handling a request."""

    async def dispatch(self, request: Request, call_next):
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request.headers.get("X-Request-ID") or uuid.uuid4().hex,
            path=request.url.path,
        )
        return await call_next(request)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("app_starting", env=app.state.settings.env)

    yield

    # Shutdown
    app.state.database.dispose()
    logger.info("app_shutting_down")


def create_app(
    app_settings: Settings | None = None,
    stripe_service: StripeService | None = None,
    email_service: EmailService | None = None,
    database: Database | None = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Service arguments replace the ones built from settings (tests).

    Returns:
        Configured FastAPI app
    """
    app_settings = app_settings or default_settings
    is_production = app_settings.is_production

    app = FastAPI(
        title="Lightning Lessons API",
        description="Payments and signups for Lightning Lessons classes",
        version="1.0.0",
        docs_url=None if is_production else "/api/docs",
        redoc_url=None if is_production else "/api/redoc",
        openapi_url=None if is_production else "/api/openapi.json",
        lifespan=lifespan,
    )

    # Services are created once here and shared by every request
    app.state.settings = app_settings
    app.state.stripe_service = stripe_service or StripeService(
        app_settings.stripe_secret_key,
        api_version=app_settings.stripe_api_version,
        max_network_retries=app_settings.stripe_max_network_retries,
        timeout=app_settings.stripe_timeout_seconds,
    )
    app.state.email_service = email_service or EmailService(app_settings.resend_api_key)
    app.state.database = database or Database(app_settings.database_url)
    app.state.referral_service = MutualReferralService(
        stripe_service=app.state.stripe_service,
        email_service=app.state.email_service,
        coupon_id=app_settings.coupon_id,
        email_from=app_settings.email_from,
        signup_url=app_settings.class_signup_url,
    )

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestContextMiddleware)

    # CORS middleware - never allow wildcard in production
    allowed_origins = [
        origin.strip()
        for origin in app_settings.allowed_origins.split(",")
        if origin.strip()
    ]

    if is_production and "*" in allowed_origins:
        logger.error("cors_wildcard_blocked", message="Wildcard CORS not allowed in production")
        allowed_origins = []

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials="*" not in allowed_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Accept"],
        max_age=3600,
    )

    # Rate limiting follows the settings this app was built with
    limiter.enabled = is_production
    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={"detail": "Too many requests. Please try again later."},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        # Form errors are client errors, reported field by field
        logger.info("request_validation_failed", errors=len(exc.errors()))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(ReferralStepFailed)
    async def referral_step_handler(request: Request, exc: ReferralStepFailed):
        logger.error("referral_step_failed", step=exc.step, error=exc.cause.message)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Could not create referral codes"},
        )

    @app.exception_handler(ProcessorError)
    async def processor_error_handler(request: Request, exc: ProcessorError):
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Payment processor error"},
        )

    app.include_router(health_router)
    app.include_router(checkout_router)
    app.include_router(signup_router)

    return app


# Create app instance
app = create_app()
