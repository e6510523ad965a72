from __future__ import annotations

"""
JSON exception handlers.

Every HTTP error is rendered as `{"error": "<one-line message>"}`, the shape the
browser client reads. Request-body validation errors are reported as 400 with
the message of the first failing field.
"""

import logging
from typing import Any, Dict, Sequence

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cinetrack.core.exceptions import AppException
from cinetrack.middleware.request_id import get_request_id

logger = logging.getLogger(__name__)

# Body field → message shown to clients. Order of checks follows field order
# in the request schemas, so the first error is the one reported.
FIELD_MESSAGES: Dict[str, str] = {
    "movieId": "Invalid movieId",
    "status": "Invalid status",
    "rating": "Invalid rating",
    "content": "Review content is required",
}
INVALID_BODY = "Invalid request body"


def _error(message: str, status_code: int, headers: Dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def message_for_errors(errors: Sequence[Dict[str, Any]]) -> str:
    """Pick the client message for the first validation error."""
    if not errors:
        return INVALID_BODY
    loc = tuple(errors[0].get("loc") or ())
    # ("body", "<field>", ...) for fields; ("body",) for a non-object body
    if len(loc) >= 2 and loc[0] == "body":
        return FIELD_MESSAGES.get(str(loc[1]), INVALID_BODY)
    if len(loc) >= 2 and loc[0] == "query":
        return f"Invalid {loc[1]}"
    return INVALID_BODY


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:  # type: ignore
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=exc.headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # type: ignore
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _error(detail, exc.status_code, getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # type: ignore
    return _error(message_for_errors(exc.errors()), status.HTTP_400_BAD_REQUEST)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # type: ignore
    logger.exception(
        "Unhandled error on %s %s (request_id=%s)", request.method, request.url.path, get_request_id(request)
    )
    return _error("Internal Server Error", status.HTTP_500_INTERNAL_SERVER_ERROR)


__all__ = [
    "app_exception_handler",
    "http_exception_handler",
    "validation_exception_handler",
    "global_exception_handler",
    "message_for_errors",
]
