"""
Error taxonomy and JSON error envelopes.

Services raise subclasses of ``AbnApiError``; the handlers registered
by ``register_exception_handlers`` turn them into the API's response
envelope::

    {"status": "error", "message": "...", "errors": [{"field": ..., "message": ...}]}

``errors`` is only present for field-level validation failures.
Anything that is not an ``AbnApiError`` is rendered as a 500 without
internal detail.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation message."""

    field: str
    message: str

    def as_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


class AbnApiError(Exception):
    """Base class for errors the API reports to clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, errors: Optional[Sequence[FieldError]] = None):
        super().__init__(message)
        self.message = message
        self.errors: List[FieldError] = list(errors or [])

    def to_response(self) -> JSONResponse:
        return error_response(self.status_code, self.message, self.errors or None)


class ValidationFailed(AbnApiError):
    """Malformed or out-of-range input (400)."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, errors: Sequence[FieldError], message: str = "Validation failed"):
        super().__init__(message, errors)


class DuplicateKeyError(AbnApiError):
    """A uniqueness constraint would be violated (400)."""

    status_code = status.HTTP_400_BAD_REQUEST


class ReferentialIntegrityError(AbnApiError):
    """A name references an ABN that has no record (400)."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AbnApiError):
    """The requested record, name or ABN does not exist (404)."""

    status_code = status.HTTP_404_NOT_FOUND


class CascadeDeleteError(AbnApiError):
    """Names were removed but the owning record could not be deleted (500)."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(
    status_code: int,
    message: str,
    errors: Optional[Sequence[FieldError]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {"status": "error", "message": message}
    if errors:
        content["errors"] = [e.as_dict() for e in errors]
    return JSONResponse(status_code=status_code, content=content)


def _field_name(loc: Sequence[Any]) -> str:
    # ("body", "organisationName") -> "organisationName"; ("query", "page") -> "page"
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "request"


async def handle_api_error(request: Request, exc: AbnApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning(
            "%s %s rejected (%s): %s",
            request.method,
            request.url.path,
            exc.status_code,
            exc.message,
        )
    return exc.to_response()


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [FieldError(_field_name(err.get("loc", ())), err.get("msg", "Invalid value")) for err in exc.errors()]
    return error_response(status.HTTP_400_BAD_REQUEST, "Validation failed", errors)


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the envelope-producing handlers to ``app``."""
    app.add_exception_handler(AbnApiError, handle_api_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(Exception, handle_unexpected)
