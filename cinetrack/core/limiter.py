from __future__ import annotations

"""
CineTrack — HTTP Rate Limiting (SlowAPI)
========================================

Off by default; `RATE_LIMIT_ENABLED=true` installs a per-app limiter.

- Keyed per signed-in user (session identity), else per client IP
  (first `X-Forwarded-For` hop, `X-Real-IP`, then the socket peer).
- `DEFAULT_RATE_LIMIT` may hold several comma-separated limits.
- Storage comes from `RATELIMIT_STORAGE_URI` (`memory://` by default).

Usage
-----
    limiter = install_rate_limiter(app, settings)
    if limiter is not None:
        limiter.exempt(health)
"""

from typing import List, Optional

from loguru import logger
from slowapi import Limiter
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.requests import Request

from cinetrack.core.config import Settings


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
    if forwarded:
        return forwarded
    real_ip = request.headers.get("x-real-ip", "").strip()
    return real_ip or get_remote_address(request) or "unknown"


def get_user_rate_limit_key(request: Request) -> str:
    """`user:<id>` for a signed-in session, `ip:<addr>` otherwise."""
    session = request.scope.get("session") or {}
    user = session.get("user") if isinstance(session, dict) else None
    if isinstance(user, dict) and user.get("id"):
        return f"user:{user['id']}"
    return f"ip:{_client_ip(request)}"


def parse_limits(raw: str) -> List[str]:
    return [chunk.strip() for chunk in raw.split(",") if chunk.strip()]


def install_rate_limiter(app, cfg: Settings) -> Optional[Limiter]:
    """Attach a SlowAPI limiter and middleware when enabled; returns the limiter."""
    if not cfg.RATE_LIMIT_ENABLED:
        logger.debug("Rate limiting disabled by settings")
        return None

    limits = parse_limits(cfg.DEFAULT_RATE_LIMIT)
    limiter = Limiter(
        key_func=get_user_rate_limit_key,
        default_limits=limits,
        headers_enabled=True,
        storage_uri=cfg.RATELIMIT_STORAGE_URI or "memory://",
    )
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    logger.info(f"SlowAPI middleware installed | limits={limits}")
    return limiter


__all__ = ["get_user_rate_limit_key", "install_rate_limiter", "parse_limits"]
