"""
Error Handling for Bihari Delicacies

Centralized error handling:
- Uniform {"error": "..."} response bodies
- Logging of errors
- Exception translation
"""

import traceback

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from ...exceptions import (
    DelicaciesException,
    ValidationError,
    AuthenticationError,
    NotFoundError,
    ConflictError,
    PayloadTooLargeError,
    RateLimitError,
    InternalError,
)


def create_error_response(
    error: str,
    status_code: int,
    headers: dict = None,
) -> JSONResponse:
    """Create standardized error response."""
    return JSONResponse(
        status_code=status_code,
        content={"error": error},
        headers=headers,
    )


def describe_validation_errors(errors: list) -> str:
    """Turn FastAPI validation errors into one readable message."""
    missing = []
    invalid = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        name = ".".join(loc) or "body"
        if err.get("type") == "missing":
            missing.append(name)
        else:
            invalid.append(f"{name}: {err.get('msg', 'invalid value')}")

    if missing:
        return f"Missing required fields: {', '.join(missing)}"
    if invalid:
        return f"Invalid request: {'; '.join(invalid)}"
    return "Invalid request"


def setup_exception_handlers(app):
    """Register exception handlers with FastAPI app."""

    @app.exception_handler(DelicaciesException)
    async def delicacies_exception_handler(request: Request, exc: DelicaciesException):
        logger.warning(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        return create_error_response(
            error=exc.message,
            status_code=exc.status_code,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        message = describe_validation_errors(exc.errors())
        logger.warning(f"Validation error on {request.url.path}: {message}")
        return create_error_response(
            error=message,
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return create_error_response(
            error=str(exc.detail),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}: "
            f"{type(exc).__name__}: {str(exc)}\n{traceback.format_exc()}"
        )
        error = InternalError()
        return create_error_response(
            error=error.message,
            status_code=error.status_code,
        )


__all__ = [
    "DelicaciesException",
    "ValidationError",
    "AuthenticationError",
    "NotFoundError",
    "ConflictError",
    "PayloadTooLargeError",
    "RateLimitError",
    "InternalError",
    "create_error_response",
    "describe_validation_errors",
    "setup_exception_handlers",
]
