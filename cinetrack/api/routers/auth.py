# ╔══════════════════════════════════════════════════════════════════════════╗
# ║ CineTrack · Auth Session (Google OAuth + signed session cookie)          ║
# ╠──────────────────────────────────────────────────────────────────────────╣
# ║ Endpoints:                                                                ║
# ║  - GET  /auth/google             → 302 to Google (500 if unconfigured)   ║
# ║  - GET  /auth/google/callback    → 302 to FRONTEND_URL/?auth=...         ║
# ║  - POST /auth/logout             → {"ok": true}, session cleared         ║
# ╚══════════════════════════════════════════════════════════════════════════╝
"""
Browser sign-in.

Authlib keeps the anti-forgery `state` in the signed session cookie between
the two legs; after a successful exchange the caller's `Identity` lives there
too.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from starlette.concurrency import run_in_threadpool

from cinetrack.api.deps import get_oauth_client, get_settings, remember_identity, SESSION_USER_KEY
from cinetrack.api.http_utils import json_no_store, log_user_action
from cinetrack.core.config import Settings
from cinetrack.core.exceptions import OAuthExchangeFailed
from cinetrack.repositories.user import UserRepository, get_user_repository
from cinetrack.services.auth.google_oauth import GoogleOAuthClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _frontend_redirect(settings: Settings, outcome: str) -> RedirectResponse:
    return RedirectResponse(f"{settings.FRONTEND_URL}/?auth={outcome}", status_code=302)


@router.get("/google", summary="Start Google sign-in")
async def google_login(
    request: Request,
    oauth: GoogleOAuthClient = Depends(get_oauth_client),
):
    return await oauth.login_redirect(request)


@router.get("/google/callback", summary="Google sign-in callback")
async def google_callback(
    request: Request,
    oauth: GoogleOAuthClient = Depends(get_oauth_client),
    settings: Settings = Depends(get_settings),
    repo: UserRepository = Depends(get_user_repository),
):
    """
    Finish the authorization-code flow.

    Provider errors, a missing code and a `state` mismatch all redirect to
    `?auth=failed`; nothing is stored in that case.
    """
    oauth.require_configured()
    params = request.query_params
    if not params.get("code") and not params.get("error"):
        logger.info("google callback without code")
        return _frontend_redirect(settings, "failed")

    try:
        identity = await oauth.authenticate(request)
    except OAuthExchangeFailed as e:
        logger.warning("google sign-in failed: %s", e)
        return _frontend_redirect(settings, "failed")

    remember_identity(request, identity)
    await run_in_threadpool(repo.upsert_identity, identity)
    log_user_action(request, identity.id, "LOGIN", provider="google")
    return _frontend_redirect(settings, "success")


@router.post("/logout", summary="Sign out")
async def logout(request: Request):
    user = request.session.get(SESSION_USER_KEY)
    request.session.clear()
    if isinstance(user, dict) and user.get("id"):
        log_user_action(request, str(user["id"]), "LOGOUT")
    return json_no_store({"ok": True})


__all__ = ["router"]
