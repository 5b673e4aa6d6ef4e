"""Document Storage Service - Main FastAPI Application

Versioned document storage with access control and signed download URLs.

This module creates and configures the main FastAPI application, including:
- The documents router
- Request ID middleware
- Exception handlers mapping document errors to HTTP responses
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from api.v1.documents.router import router as documents_router
from config import get_settings
from domain.documents.errors import (
    DocumentError,
    DocumentNotFoundError,
    ForbiddenError,
    InvalidRequestError,
    StorageError,
)
from observability.logging_config import configure_logging
from observability.metrics import document_errors_total
from observability.middleware import RequestIDMiddleware
from observability.router import router as observability_router

logger = logging.getLogger(__name__)

# Most specific first; subclasses of these map to the same status
ERROR_STATUS_CODES = (
    (InvalidRequestError, status.HTTP_400_BAD_REQUEST),
    (DocumentNotFoundError, status.HTTP_404_NOT_FOUND),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (StorageError, status.HTTP_502_BAD_GATEWAY),
)


def status_code_for(exc: DocumentError) -> int:
    for error_cls, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_cls):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    logger.info(
        f"Document service starting up: environment={settings.ENVIRONMENT}, "
        f"storage_provider={settings.STORAGE_PROVIDER}"
    )

    yield

    logger.info("Document service shutting down...")


async def document_exception_handler(request: Request, exc: DocumentError) -> JSONResponse:
    """Render a DocumentError as {code, message, details}."""
    status_code = status_code_for(exc)
    document_errors_total.labels(operation=exc.operation or "unknown", error_code=exc.code).inc()
    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"{exc.code} on {request.method} {request.url.path}: {exc.message}",
        extra={**exc.context(), "error_code": exc.code, "status_code": status_code},
    )
    return JSONResponse(
        status_code=status_code,
        content={"code": exc.code, "message": exc.message, "details": exc.context()},
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors with the same body shape."""
    logger.warning(f"Validation error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": {"errors": jsonable_errors(exc)},
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle database errors.

    Logs the full error but returns a generic message to prevent
    information leakage.
    """
    logger.error(f"Database error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "DATABASE_ERROR",
            "message": "A database error occurred. Please try again later.",
            "details": {},
        },
    )


def create_app() -> FastAPI:
    """Application factory.

    Configures logging from Settings, registers middleware, exception
    handlers and the documents router.
    """
    settings = get_settings()
    configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

    application = FastAPI(
        title="Document Storage API",
        description="Versioned document storage with access control and signed URLs",
        version="0.1.0",
        docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    application.add_middleware(RequestIDMiddleware)

    application.add_exception_handler(DocumentError, document_exception_handler)
    application.add_exception_handler(RequestValidationError, validation_exception_handler)
    application.add_exception_handler(SQLAlchemyError, database_exception_handler)

    application.include_router(observability_router)
    application.include_router(documents_router, prefix="/api/v1")

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        log_level=get_settings().LOG_LEVEL.lower(),
    )
