# cinetrack/security_headers.py
from __future__ import annotations

"""
# CineTrack — Security Headers & CORS

- **Headers**: X-Content-Type-Options, X-Frame-Options, Referrer-Policy,
  Cross-Origin-Opener-Policy applied idempotently to every response.
- **CORS installer**: the single browser origin (`FRONTEND_URL`) with
  credentials, so the session cookie travels on cross-origin API calls.

## Quick start
    install_security(app)
    configure_cors(app, settings)
"""

from typing import List, Tuple

from starlette.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from cinetrack.core.config import Settings

_DEFAULT_HEADERS: Tuple[Tuple[str, str], ...] = (
    ("X-Content-Type-Options", "nosniff"),
    ("X-Frame-Options", "DENY"),
    ("Referrer-Policy", "strict-origin-when-cross-origin"),
    ("Cross-Origin-Opener-Policy", "same-origin"),
)


def _has_header(raw_headers: List[Tuple[bytes, bytes]], name: str) -> bool:
    lname = name.lower().encode("latin-1")
    return any(h[0].lower() == lname for h in raw_headers)


class SecurityHeadersMiddleware:
    """ASGI middleware that appends the default security headers when absent."""

    def __init__(self, app: ASGIApp, headers: Tuple[Tuple[str, str], ...] = _DEFAULT_HEADERS) -> None:
        self.app = app
        self.headers = headers

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        async def send_wrapper(message: Message) -> None:
            if message.get("type") == "http.response.start":
                raw_headers = message.setdefault("headers", [])
                for name, value in self.headers:
                    if not _has_header(raw_headers, name):
                        raw_headers.append((name.encode("latin-1"), value.encode("latin-1")))
            await send(message)

        await self.app(scope, receive, send_wrapper)


def install_security(app) -> None:
    app.add_middleware(SecurityHeadersMiddleware)


def configure_cors(app, settings: Settings) -> None:
    """Allow the configured frontend origin, with cookies."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )


__all__ = ["SecurityHeadersMiddleware", "install_security", "configure_cors"]
