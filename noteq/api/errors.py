"""
API error types and the handlers that render them.

Every failure leaves the API as {"error": str, "details": str | null}.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from noteq.observability.logging import get_logger
from noteq.observability.telemetry import counter
from noteq.utils.error_sanitizer import sanitize_error_message
from noteq.utils.redaction import redact

logger = get_logger(__name__)


class NoteqError(HTTPException):
    """HTTPException carrying an optional client-facing details string."""

    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        error: str,
        details: str | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(status_code=self.status_code_default, detail=error, headers=headers)
        self.details = details


class ValidationFailed(NoteqError):
    status_code_default = status.HTTP_400_BAD_REQUEST


class Unauthorized(NoteqError):
    status_code_default = status.HTTP_401_UNAUTHORIZED

    def __init__(self, error: str = "Unauthorized", details: str | None = None):
        super().__init__(error, details, headers={"WWW-Authenticate": "Bearer"})


class NotFound(NoteqError):
    status_code_default = status.HTTP_404_NOT_FOUND


class InternalError(NoteqError):
    """500 whose details are sanitized before leaving the process."""

    def __init__(self, error: str, cause: Exception | None = None):
        details = sanitize_error_message(str(cause), 500) if cause is not None else None
        super().__init__(error, details)


def error_body(error: str, details: str | None = None) -> dict[str, Any]:
    return {"error": error, "details": details}


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail), getattr(exc, "details", None)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Render request validation failures as 400 without echoing the payload.
    """
    errors = exc.errors()
    logger.warning("Validation error on %s: %d errors", redact(str(request.url.path)), len(errors))
    counter("api.validation_errors")

    fields = [str(err["loc"][-1]) for err in errors if err.get("loc")]
    details = f"Invalid fields: {', '.join(fields)}" if fields else None
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Invalid request", sanitize_error_message(details, 400) if details else None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s: %s", request.url.path, exc, exc_info=exc)
    counter("api.unhandled_errors")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", sanitize_error_message(str(exc), 500)),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
