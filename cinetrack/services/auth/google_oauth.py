from __future__ import annotations

"""
Google sign-in (OpenID Connect authorization-code flow) via Authlib.

Flow
----
1) `login_redirect(request)` → 302 to Google; Authlib keeps `state` (and the
   OIDC `nonce`) in the signed session cookie.
2) `authenticate(request)` → verifies `state`, exchanges the `code`, and
   returns the caller's `Identity`, taken from the validated ID token or,
   when the token response carries none, from the userinfo endpoint.

Every provider-side failure surfaces as `OAuthExchangeFailed`; the callback
route turns that into a redirect to the frontend with `?auth=failed`.
"""

import logging
from typing import Any, Dict, Optional

import httpx
from authlib.common.errors import AuthlibBaseError
from authlib.integrations.starlette_client import OAuth
from starlette.requests import Request
from starlette.responses import RedirectResponse

from cinetrack.core.config import Settings
from cinetrack.core.exceptions import OAuthExchangeFailed, OAuthNotConfigured
from cinetrack.schemas.user import Identity

log = logging.getLogger(__name__)

DISCOVERY_URL = "https://accounts.google.com/.well-known/openid-configuration"
SCOPE = "openid profile email"


class GoogleOAuthClient:
    """
    One Authlib registry per app.

    `transport` is handed to every HTTP client Authlib opens (discovery,
    token, JWKS, userinfo); tests pass an `httpx.MockTransport`.
    """

    def __init__(self, settings: Settings, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.redirect_uri = settings.google_callback_url
        self.configured = settings.google_oauth_configured
        self._oauth = OAuth()
        if self.configured:
            client_kwargs: Dict[str, Any] = {"scope": SCOPE, "timeout": settings.CATALOG_TIMEOUT_SECONDS}
            if transport is not None:
                client_kwargs["transport"] = transport
            self._oauth.register(
                name="google",
                client_id=settings.GOOGLE_CLIENT_ID,
                client_secret=settings.GOOGLE_CLIENT_SECRET.get_secret_value(),
                server_metadata_url=DISCOVERY_URL,
                client_kwargs=client_kwargs,
            )

    def require_configured(self) -> None:
        if not self.configured:
            raise OAuthNotConfigured()

    async def login_redirect(self, request: Request) -> RedirectResponse:
        self.require_configured()
        return await self._oauth.google.authorize_redirect(request, self.redirect_uri, prompt="select_account")

    async def authenticate(self, request: Request) -> Identity:
        self.require_configured()
        google = self._oauth.google
        try:
            token = await google.authorize_access_token(request)
            if not token.get("access_token"):
                raise OAuthExchangeFailed("token response has no access_token")
            info = token.get("userinfo") or await google.userinfo(token=token)
        except AuthlibBaseError as e:
            raise OAuthExchangeFailed(f"{e.__class__.__name__}: {e}") from e
        except httpx.HTTPError as e:
            raise OAuthExchangeFailed(f"google request failed ({e.__class__.__name__})") from e
        except ValueError as e:
            # non-JSON answer from a Google endpoint
            raise OAuthExchangeFailed("google returned an unreadable response") from e
        return identity_from_userinfo(info)


def identity_from_userinfo(info: Any) -> Identity:
    """Map OIDC claims / a userinfo payload to an `Identity` (`sub` is required)."""
    if not isinstance(info, dict) or not info.get("sub"):
        raise OAuthExchangeFailed("userinfo payload has no subject")
    return Identity(
        id=str(info["sub"]),
        display_name=info.get("name") or info.get("email") or "",
        email=info.get("email") or "",
        avatar=info.get("picture") or "",
    )


__all__ = ["GoogleOAuthClient", "identity_from_userinfo", "DISCOVERY_URL", "SCOPE"]
