from __future__ import annotations

"""
Request-scoped dependencies.

Everything a route needs (settings, catalog and OAuth clients, the
caller's identity) is built once by the application factory, parked on
`app.state`, and handed to routes through these functions. Tests swap any
of them with `app.dependency_overrides`.
"""

import logging
from typing import Optional

from fastapi import Depends, Request
from pydantic import ValidationError

from cinetrack.core.config import Settings
from cinetrack.core.exceptions import NotAuthenticated
from cinetrack.schemas.user import Identity
from cinetrack.services.auth.google_oauth import GoogleOAuthClient
from cinetrack.services.catalog.client import CatalogClient

log = logging.getLogger(__name__)

SESSION_USER_KEY = "user"


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_catalog_client(request: Request) -> CatalogClient:
    return request.app.state.catalog


def get_oauth_client(request: Request) -> GoogleOAuthClient:
    return request.app.state.oauth


def get_current_identity(request: Request) -> Optional[Identity]:
    """Identity stored in the signed session cookie, or None for guests."""
    raw = request.session.get(SESSION_USER_KEY)
    if not raw:
        return None
    try:
        return Identity.model_validate(raw)
    except ValidationError:
        log.warning("discarding malformed session identity")
        request.session.pop(SESSION_USER_KEY, None)
        return None


def require_identity(identity: Optional[Identity] = Depends(get_current_identity)) -> Identity:
    if identity is None:
        raise NotAuthenticated()
    return identity


def remember_identity(request: Request, identity: Identity) -> None:
    request.session[SESSION_USER_KEY] = identity.dump()


__all__ = [
    "SESSION_USER_KEY",
    "get_settings",
    "get_catalog_client",
    "get_oauth_client",
    "get_current_identity",
    "require_identity",
    "remember_identity",
]
