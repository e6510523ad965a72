# ╔══════════════════════════════════════════════════════════════════════════╗
# ║ CineTrack · User State API (identity, watch states, ratings, reviews)    ║
# ╠──────────────────────────────────────────────────────────────────────────╣
# ║ Endpoints:                                                                ║
# ║  - GET  /api/me                    → Current identity or {"user": null}   ║
# ║  - GET  /api/user-data             → watchStates + ratings (auth)         ║
# ║  - PUT  /api/status                → Set/clear a watch state (auth)       ║
# ║  - PUT  /api/rating                → Set/clear a 1–5 rating (auth)        ║
# ║  - POST /api/reviews               → Create review (201 + body, auth)     ║
# ║  - GET  /api/reviews/{movieId}     → Reviews for a movie, newest first    ║
# ╠──────────────────────────────────────────────────────────────────────────╣
# ║ Practices                                                                 ║
# ║  - Auth: signed session cookie; 401 {"error": "Unauthorized"} otherwise.  ║
# ║  - Bodies are validated before any store access; a rejected request      ║
# ║    never mutates the store.                                               ║
# ║  - Responses are `Cache-Control: no-store`.                               ║
# ║  - Mutations emit a structured `user_action` log line.                    ║
# ╚══════════════════════════════════════════════════════════════════════════╝
"""
User-facing endpoints for identity, tracking state and reviews.

Handlers are plain `def`: the JSON store is synchronous and FastAPI runs
them in its threadpool.
"""

import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, Path, Request, status

from cinetrack.api.deps import get_current_identity, require_identity
from cinetrack.api.http_utils import json_no_store, log_user_action
from cinetrack.repositories.user import UserRepository, get_user_repository
from cinetrack.schemas.user import Identity, RatingInput, ReviewInput, StatusInput

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["User"],
    responses={
        400: {"description": "Bad Request"},
        401: {"description": "Unauthorized"},
        500: {"description": "Internal Server Error"},
    },
)


def _numeric_movie_id(raw: str) -> Optional[float]:
    """Path ids are parsed as numbers; anything else matches no review."""
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


# ╭───────────────────────────────────────────────────────────────────────────╮
# │ Identity                                                                   │
# ╰───────────────────────────────────────────────────────────────────────────╯

@router.get("/me", summary="Current signed-in identity")
def get_me(
    identity: Optional[Identity] = Depends(get_current_identity),
    repo: UserRepository = Depends(get_user_repository),
):
    """
    Return the caller's identity, or `{"user": null}` for guests.

    Signed-in callers get their stored profile refreshed from the session;
    their tracking data is left untouched.
    """
    if identity is None:
        return json_no_store({"user": None})
    repo.upsert_identity(identity)
    return json_no_store({"user": identity.dump()})


# ╭───────────────────────────────────────────────────────────────────────────╮
# │ Tracking                                                                   │
# ╰───────────────────────────────────────────────────────────────────────────╯

@router.get("/user-data", summary="Watch states and ratings")
def get_user_data(
    identity: Identity = Depends(require_identity),
    repo: UserRepository = Depends(get_user_repository),
):
    return json_no_store(repo.get_tracking(identity).dump())


@router.put("/status", summary="Set or clear a watch state")
def put_status(
    payload: StatusInput,
    request: Request,
    identity: Identity = Depends(require_identity),
    repo: UserRepository = Depends(get_user_repository),
):
    """`status: null` removes the mapping for the movie."""
    watch_states = repo.set_status(identity, payload.movie_id, payload.status)
    log_user_action(
        request,
        identity.id,
        "STATUS_CLEAR" if payload.status is None else "STATUS_SET",
        movie_id=payload.movie_id,
        status=payload.status.value if payload.status else None,
    )
    return json_no_store({"watchStates": {k: v.value for k, v in watch_states.items()}})


@router.put("/rating", summary="Set or clear a rating")
def put_rating(
    payload: RatingInput,
    request: Request,
    identity: Identity = Depends(require_identity),
    repo: UserRepository = Depends(get_user_repository),
):
    """`rating: null` removes the rating; otherwise an integer 1–5."""
    ratings = repo.set_rating(identity, payload.movie_id, payload.rating)
    log_user_action(
        request,
        identity.id,
        "RATING_CLEAR" if payload.rating is None else "RATING_SET",
        movie_id=payload.movie_id,
        rating=payload.rating,
    )
    return json_no_store({"ratings": ratings})


# ╭───────────────────────────────────────────────────────────────────────────╮
# │ Reviews                                                                    │
# ╰───────────────────────────────────────────────────────────────────────────╯

@router.post("/reviews", status_code=status.HTTP_201_CREATED, summary="Publish a review")
def create_review(
    payload: ReviewInput,
    request: Request,
    identity: Identity = Depends(require_identity),
    repo: UserRepository = Depends(get_user_repository),
):
    """
    Publish an immutable review authored by the caller.

    Returns
    -------
    201 `{"review": Review}` with `author` set to the caller's display name.
    """
    review = repo.create_review(identity, payload.movie_id, payload.content, payload.rating)
    log_user_action(request, identity.id, "REVIEW_CREATE", movie_id=payload.movie_id, review_id=review.id)
    return json_no_store({"review": review.dump()}, status_code=status.HTTP_201_CREATED)


@router.get("/reviews/{movie_id}", summary="Reviews for a movie")
def list_reviews(
    movie_id: str = Path(..., description="Numeric movie id"),
    repo: UserRepository = Depends(get_user_repository),
):
    """Public; newest first. A non-numeric id yields an empty list."""
    numeric = _numeric_movie_id(movie_id)
    if numeric is None:
        return json_no_store({"reviews": []})
    return json_no_store({"reviews": [r.dump() for r in repo.list_reviews_for_movie(numeric)]})


__all__ = ["router"]
