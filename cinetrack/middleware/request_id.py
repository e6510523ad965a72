# cinetrack/middleware/request_id.py
from __future__ import annotations

"""
# CineTrack — Request ID Middleware (pure ASGI)

Every HTTP request gets a correlation id:

- an incoming `X-Request-ID` is kept only if it parses as a UUIDv4;
- anything else is replaced by a fresh `uuid4()`.

The id lands in `request.state.request_id`, is echoed as `X-Request-ID` on the
response, and is bound into the loguru context so every log line emitted while
serving the request carries it.
"""

import uuid
from typing import Optional

from loguru import logger
from starlette.datastructures import Headers, MutableHeaders
from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

HEADER_NAME = "X-Request-ID"


def _valid_uuid4(raw: Optional[str]) -> Optional[str]:
    try:
        parsed = uuid.UUID((raw or "").strip())
    except ValueError:
        return None
    return str(parsed) if parsed.version == 4 else None


class RequestIDMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        req_id = _valid_uuid4(Headers(scope=scope).get(HEADER_NAME)) or str(uuid.uuid4())
        scope.setdefault("state", {})["request_id"] = req_id

        async def send_with_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)[HEADER_NAME] = req_id
            await send(message)

        with logger.contextualize(request_id=req_id):
            await self.app(scope, receive, send_with_id)


def get_request_id(request: Request) -> str:
    """Correlation id of the current request, or "" outside the middleware."""
    return getattr(request.state, "request_id", "") or ""


__all__ = ["HEADER_NAME", "RequestIDMiddleware", "get_request_id"]
