from __future__ import annotations

"""
CineTrack · HTTP Utilities
==========================

Shared helpers for API routers:

- No-store JSON helper
- Structured `user_action` log lines
- Query parsing for browse endpoints (feed / genre / movieId)
"""

import logging
from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from cinetrack.core.exceptions import ValidationFailed
from cinetrack.schemas.enums import Feed

logger = logging.getLogger("cinetrack.user_action")

DEFAULT_GENRE_ID = 28

__all__ = [
    "json_no_store",
    "log_user_action",
    "parse_feed",
    "parse_genre",
    "parse_optional_movie_id",
    "DEFAULT_GENRE_ID",
]


def json_no_store(payload: Any, status_code: int = 200) -> JSONResponse:
    """Return a JSON response with strict `no-store` caching."""
    return JSONResponse(
        payload,
        status_code=status_code,
        headers={"Cache-Control": "no-store", "Pragma": "no-cache"},
    )


def log_user_action(request: Request, user_id: str, action: str, **meta: Any) -> None:
    logger.info(
        "user_action",
        extra={
            "action": action,
            "user_id": user_id,
            "ip": request.client.host if request.client else None,
            "ua": request.headers.get("user-agent"),
            "meta": meta or {},
        },
    )


def parse_feed(value: Optional[str]) -> Feed:
    if not value:
        return Feed.TRENDING
    try:
        return Feed(value)
    except ValueError:
        raise ValidationFailed("Invalid feed") from None


def parse_genre(value: Optional[str]) -> int:
    if value is None or value == "":
        return DEFAULT_GENRE_ID
    try:
        return int(value)
    except ValueError:
        raise ValidationFailed("Invalid genre") from None


def parse_optional_movie_id(value: Optional[str]) -> Optional[int]:
    """Unparseable ids select nothing rather than failing the screen."""
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None
