# cinetrack/core/exceptions.py
from __future__ import annotations

"""
CineTrack — Application Exceptions
==================================
A small, consistent layer on top of FastAPI/Starlette's `HTTPException` that
carries a one-line `message` rendered by `cinetrack.core.exception_handlers`
as `{"error": "<message>"}`.

Usage
-----
    raise ValidationFailed("Invalid rating")
    raise NotAuthenticated()
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

__all__ = [
    "AppException",
    "ValidationFailed",
    "NotAuthenticated",
    "OAuthNotConfigured",
    "OAuthExchangeFailed",
    "CatalogError",
    "CatalogCredentialsMissing",
]


# ──────────────────────────────────────────────────────────────
# 📦 Core: AppException
# ──────────────────────────────────────────────────────────────
class AppException(HTTPException):
    """Base application-level exception.

    Attributes
    -----------
    status_code : int
        HTTP status code (400/401/500).
    message : str
        One-line, human-readable error (also used as `detail`).
    """

    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.message: str = message

    def to_body(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationFailed(AppException):
    """Raised when a request body or query fails domain validation (400)."""

    def __init__(self, message: str) -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, message=message)


class NotAuthenticated(AppException):
    """Raised when a protected route is hit without a session identity (401)."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, message=message)


class OAuthNotConfigured(AppException):
    """Raised on login attempts while Google client credentials are unset (500)."""

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="Google OAuth is not configured on the server",
        )


# ──────────────────────────────────────────────────────────────
# 🌐 Upstream failures (never rendered directly; callers degrade)
# ──────────────────────────────────────────────────────────────
class OAuthExchangeFailed(Exception):
    """Google rejected the code exchange or the userinfo request."""


class CatalogError(Exception):
    """The catalog request failed (transport error or non-2xx status)."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CatalogCredentialsMissing(CatalogError):
    """Neither an API key nor a read access token is configured."""

    def __init__(self) -> None:
        super().__init__("TMDB credentials missing")
