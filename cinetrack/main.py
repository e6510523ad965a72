# cinetrack/main.py
from __future__ import annotations

"""
# CineTrack API — Application Entrypoint (FastAPI)

ASGI application factory and lifecycle for the CineTrack movie tracker.

## Design Goals
- Deterministic, testable **app factory** (`create_app`) taking an explicit
  `Settings`; the store, catalog client and OAuth client are built from it and
  parked on `app.state`.
- Explicit **middleware order**, outermost first:
  1) request id → 2) security headers → 3) CORS → 4) signed session cookie →
  5) rate limits (opt-in) → 6) gzip. Short-circuited responses (CORS
  preflight, 429) still carry `X-Request-ID`.
- Centralized exception handling: every error renders as `{"error": "..."}`.

## Meta endpoints
- `/health` — liveness (`{"ok": true}`).
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
import logging

import httpx
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware
from starlette.middleware.sessions import SessionMiddleware

from cinetrack.api.routers import router as api_router
from cinetrack.core.config import Settings, settings as default_settings
from cinetrack.core.exception_handlers import (
    app_exception_handler,
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from cinetrack.core.exceptions import AppException
from cinetrack.core.limiter import install_rate_limiter
from cinetrack.core.logger import configure_logging
from cinetrack.middleware.request_id import RequestIDMiddleware
from cinetrack.security_headers import configure_cors, install_security
from cinetrack.services.auth.google_oauth import GoogleOAuthClient
from cinetrack.services.catalog.client import CatalogClient
from cinetrack.store.json_store import JsonStore

logger = logging.getLogger("cinetrack")


# ─────────────────────────────────────────────────────────────────────────────
# 🔄 Lifespan: startup & shutdown
# ─────────────────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Startup:
        - Make sure the store file exists before the first request.
        - Warn when the session secret is still the development default.

    Shutdown:
        - Close the shared outbound HTTP client.
    """
    cfg: Settings = app.state.settings
    app.state.store.ensure()
    if cfg.uses_default_session_secret and not cfg.is_development:
        logger.warning("SESSION_SECRET is the built-in default; set a real secret for %s", cfg.ENV)
    if not cfg.google_oauth_configured:
        logger.info("Google OAuth not configured; /auth/google will answer 500")
    if not cfg.catalog_configured:
        logger.info("TMDB credentials missing; serving bundled sample catalog")
    logger.info("✅ %s starting up (store=%s)", cfg.PROJECT_NAME, app.state.store.path)

    try:
        yield
    finally:
        await app.state.http.aclose()
        logger.info("🛑 %s shutting down", cfg.PROJECT_NAME)


# ─────────────────────────────────────────────────────────────────────────────
# 🏗️ App factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(
    settings: Optional[Settings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build and configure the FastAPI app instance.

    Args:
        settings: configuration; defaults to the environment-driven singleton.
        transport: outbound HTTP transport for TMDB and Google calls
            (tests pass an `httpx.MockTransport`).
    """
    cfg = settings or default_settings
    configure_logging(cfg)

    app = FastAPI(
        title=cfg.PROJECT_NAME,
        version=cfg.VERSION,
        docs_url="/docs" if cfg.ENABLE_DOCS else None,
        redoc_url="/redoc" if cfg.ENABLE_DOCS else None,
        openapi_url="/openapi.json" if cfg.ENABLE_DOCS else None,
        lifespan=lifespan,
    )

    http = httpx.AsyncClient(transport=transport, timeout=cfg.CATALOG_TIMEOUT_SECONDS)
    app.state.settings = cfg
    app.state.http = http
    app.state.store = JsonStore(cfg.store_path)
    app.state.catalog = CatalogClient(cfg, http)
    app.state.oauth = GoogleOAuthClient(cfg, transport=transport)

    # ── Middlewares: last added runs outermost, so add innermost first ──────
    app.add_middleware(GZipMiddleware, minimum_size=1024)  # 6) GZip

    # 5) Rate limiter (SlowAPI middleware + 429 handler), off unless enabled
    limiter = install_rate_limiter(app, cfg)
    if limiter is not None:
        app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # 4) Session cookie; outside the limiter so its key function sees the user
    app.add_middleware(
        SessionMiddleware,
        secret_key=cfg.SESSION_SECRET.get_secret_value(),
        session_cookie=cfg.SESSION_COOKIE_NAME,
        max_age=cfg.SESSION_MAX_AGE_SECONDS,
        same_site="lax",
        https_only=cfg.SESSION_COOKIE_SECURE,
    )
    configure_cors(app, cfg)  # 3) CORS for the frontend origin, with cookies
    install_security(app)  # 2) Security headers
    app.add_middleware(RequestIDMiddleware)  # 1) Correlation ID on every response

    # ── Exception handlers ──────────────────────────────────────────────────
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)  # type: ignore[arg-type]

    # ── Routers ─────────────────────────────────────────────────────────────
    app.include_router(api_router)

    # ── Meta endpoints ──────────────────────────────────────────────────────
    @app.get("/health", tags=["meta"])
    async def health() -> dict[str, bool]:
        """Liveness check; no external dependencies."""
        return {"ok": True}

    if limiter is not None:
        limiter.exempt(health)

    return app


# ─────────────────────────────────────────────────────────────────────────────
# 🚀 Module-level ASGI app for Uvicorn
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()
__all__ = ["create_app", "app"]


# Local dev runner (prefer: `uvicorn cinetrack.main:app --reload`)
if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(
        "cinetrack.main:app",
        host="0.0.0.0",
        port=default_settings.PORT,
        reload=os.getenv("RELOAD", "0") == "1",
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
