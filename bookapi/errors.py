"""
Exception Handlers

Translate every failure into an application/problem+json response:

    BookApiError subclasses   -> their own status and title
    RequestValidationError    -> 400 "Validation Error" with a field map
    SQLAlchemyError           -> 500, generic message
    anything else             -> 500, generic message (detail only in DEBUG)

Expected domain failures are logged at WARNING, unexpected ones at ERROR
with the traceback. Stack traces never reach the client.
"""

import logging
from datetime import UTC, datetime
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from bookapi.config import get_settings
from bookapi.exceptions import AuthenticationError, BookApiError, InvalidRequestError

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"

# FastAPI error locations carry the source as first element
_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}


def problem_response(
    request: Request,
    status_code: int,
    title: str,
    detail: str,
    errors: Optional[dict[str, str]] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    """Build a problem+json response for `request`."""
    content: dict[str, Any] = {
        "type": "about:blank",
        "title": title,
        "status": status_code,
        "detail": detail,
        "instance": request.url.path,
        "timestamp": datetime.now(UTC).isoformat(),
    }
    if errors is not None:
        content["errors"] = errors

    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=headers,
        media_type=PROBLEM_MEDIA_TYPE,
    )


def validation_errors_to_map(errors: list[dict[str, Any]]) -> dict[str, str]:
    """
    Flatten FastAPI/Pydantic error entries into {field: message}.

    Example:
        [{"loc": ("body", "stockQuantity"), "msg": "Input should be ..."}]
        -> {"stockQuantity": "Input should be ..."}
    """
    field_errors: dict[str, str] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        field = ".".join(loc) or "request"
        message = error.get("msg", "Invalid value")
        # Pydantic prefixes messages raised from validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        field_errors.setdefault(field, message)
    return field_errors


async def book_api_error_handler(request: Request, exc: BookApiError) -> JSONResponse:
    logger.warning(
        f"{exc.title} on {request.method} {request.url.path}: {exc.message}"
    )
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    errors = exc.errors if isinstance(exc, InvalidRequestError) else None
    return problem_response(request, exc.status_code, exc.title, exc.message, errors, headers)


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    field_errors = validation_errors_to_map(exc.errors())
    logger.warning(
        f"Validation failed on {request.method} {request.url.path}: {field_errors}"
    )
    return problem_response(
        request,
        400,
        "Validation Error",
        "Request validation failed",
        errors=field_errors,
    )


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Database error: {exc}", exc_info=exc)
    return problem_response(
        request,
        500,
        "Internal Server Error",
        "A database error occurred. Please try again later.",
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error: {exc}", exc_info=exc)
    detail = str(exc) if get_settings().debug else "An unexpected error occurred"
    return problem_response(request, 500, "Internal Server Error", detail)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookApiError, book_api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
