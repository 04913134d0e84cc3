"""FastAPI application initialization."""

from contextlib import asynccontextmanager
from uuid import uuid4

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from aitwy.api.auth import router as auth_router
from aitwy.api.middleware import CorrelationIdMiddleware
from aitwy.api.routes import router
from aitwy.config import get_settings
from aitwy.database import Database
from aitwy.models.response import FieldError, error_response
from aitwy.services.email_service import EmailService
from aitwy.services.logging_service import configure_logging, get_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger = get_logger("main")

    database = Database(settings)
    email_service = EmailService(settings)
    app.state.database = database
    app.state.email_service = email_service

    try:
        await database.connect()
        await database.run_migrations()
        logger.info("database_initialized")
    except Exception as e:
        logger.warning(
            "database_initialization_failed",
            error=str(e),
            note="Continuing without database - account endpoints will fail until it is reachable",
        )

    await email_service.init()

    logger.info("application_started", log_level=settings.log_level)

    yield

    await email_service.close()
    await database.close()

    logger.info("application_shutdown")


def _field_errors(exc: RequestValidationError) -> list[FieldError]:
    """Flatten pydantic errors into field/message pairs."""
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", []) if part != "body"]
        message = error.get("msg", "Validation failed")
        # Custom validators surface as "Value error, <message>"
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append(FieldError(field=".".join(loc) or "body", message=message))
    return errors


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors with the response envelope.

    Returns 400 Bad Request with the first error as the message and every
    field error listed.
    """
    correlation_id = getattr(request.state, "correlation_id", None) or str(uuid4())
    logger = structlog.get_logger()

    errors = _field_errors(exc)
    message = errors[0].message if errors else "Request validation failed"

    logger.warning(
        "validation_error",
        correlation_id=correlation_id,
        fields=[e.field for e in errors],
    )

    return JSONResponse(
        status_code=400,
        content=error_response(message, errors=errors),
        headers={"X-Correlation-Id": correlation_id},
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render HTTPException details with the response envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort 500 envelope for errors raised outside handler bodies."""
    structlog.get_logger().error("unhandled_exception", error=str(exc), exc_info=True)
    return JSONResponse(
        status_code=500,
        content=error_response("Internal server error", error=str(exc)),
    )


def create_app() -> FastAPI:
    """Build the account service application."""
    settings = get_settings()

    application = FastAPI(
        title="AITWY - Account API",
        description="Signup, login and email verification for the AITWY dashboard",
        version="1.0.0",
        lifespan=lifespan,
    )

    application.add_exception_handler(RequestValidationError, validation_exception_handler)
    application.add_exception_handler(StarletteHTTPException, http_exception_handler)
    application.add_exception_handler(Exception, unhandled_exception_handler)

    # CORS middleware for the dashboard frontend
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Correlation ID middleware for request tracking and observability
    application.add_middleware(CorrelationIdMiddleware)

    application.include_router(auth_router)
    application.include_router(router)

    return application


app = create_app()
