# ╔══════════════════════════════════════════════════════════════════════════╗
# ║ CineTrack · Browse API (catalog feeds merged with the caller's state)    ║
# ╠──────────────────────────────────────────────────────────────────────────╣
# ║ Endpoints (public; signed-in callers see their own state):               ║
# ║  - GET /api/genres                         → {genres, live}              ║
# ║  - GET /api/movies?feed&genre&query        → {movies, error, live}       ║
# ║  - GET /api/recommendations?feed&genre&query → {recommendations}        ║
# ║  - GET /api/stats                          → watched/watchlist/avg       ║
# ║  - GET /api/browse?feed&genre&query&movieId → whole screen               ║
# ╠──────────────────────────────────────────────────────────────────────────╣
# ║ Catalog outages never fail these routes: sample data is served with an   ║
# ║ `error` banner instead.                                                   ║
# ╚══════════════════════════════════════════════════════════════════════════╝
"""Browse endpoints backed by the TMDB catalog client."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from starlette.concurrency import run_in_threadpool

from cinetrack.api.deps import get_catalog_client, get_current_identity
from cinetrack.api.http_utils import json_no_store, parse_feed, parse_genre, parse_optional_movie_id
from cinetrack.repositories.user import UserRepository, get_user_repository
from cinetrack.schemas.user import Identity, TrackingData
from cinetrack.services import browse
from cinetrack.services.catalog.client import CatalogClient
from cinetrack.services.recommendations import recommend

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Browse"])


async def _tracking_for(repo: UserRepository, identity: Optional[Identity]) -> TrackingData:
    if identity is None:
        return TrackingData()
    return await run_in_threadpool(repo.peek_tracking, identity.id)


@router.get("/genres", summary="Movie genres")
async def list_genres(catalog: CatalogClient = Depends(get_catalog_client)):
    genres, live = await browse.load_genres(catalog)
    return json_no_store({"genres": [g.model_dump() for g in genres], "live": live})


@router.get("/movies", summary="Movies for a feed or search")
async def list_movies(
    feed: Optional[str] = Query(None),
    genre: Optional[str] = Query(None),
    query: str = Query(""),
    catalog: CatalogClient = Depends(get_catalog_client),
    identity: Optional[Identity] = Depends(get_current_identity),
    repo: UserRepository = Depends(get_user_repository),
):
    """
    Browse results merged with the caller's rating and watch state.

    `error` carries the banner text for empty searches and catalog outages.
    """
    selected_feed, genre_id = parse_feed(feed), parse_genre(genre)
    tracking = await _tracking_for(repo, identity)
    genres, _ = await browse.load_genres(catalog)
    result = await browse.load_movies(catalog, selected_feed, genre_id, query)
    views = browse.to_movie_views(result.movies, catalog, tracking, genres)
    return json_no_store(
        {"movies": [v.model_dump() for v in views], "error": result.error, "live": result.live}
    )


@router.get("/recommendations", summary="Genre-based picks")
async def list_recommendations(
    feed: Optional[str] = Query(None),
    genre: Optional[str] = Query(None),
    query: str = Query(""),
    catalog: CatalogClient = Depends(get_catalog_client),
    identity: Optional[Identity] = Depends(get_current_identity),
    repo: UserRepository = Depends(get_user_repository),
):
    selected_feed, genre_id = parse_feed(feed), parse_genre(genre)
    tracking = await _tracking_for(repo, identity)
    genres, _ = await browse.load_genres(catalog)
    result = await browse.load_movies(catalog, selected_feed, genre_id, query)
    picks = await recommend(catalog, result.movies, tracking.watch_states, tracking.ratings)
    views = browse.to_movie_views(picks, catalog, tracking, genres)
    return json_no_store({"recommendations": [v.model_dump() for v in views]})


@router.get("/stats", summary="Tracking stats")
async def get_stats(
    identity: Optional[Identity] = Depends(get_current_identity),
    repo: UserRepository = Depends(get_user_repository),
):
    tracking = await _tracking_for(repo, identity)
    return json_no_store(browse.compute_stats(tracking).dump())


@router.get("/browse", summary="Whole browse screen")
async def get_browse(
    feed: Optional[str] = Query(None),
    genre: Optional[str] = Query(None),
    query: str = Query(""),
    movie_id: Optional[str] = Query(None, alias="movieId"),
    catalog: CatalogClient = Depends(get_catalog_client),
    identity: Optional[Identity] = Depends(get_current_identity),
    repo: UserRepository = Depends(get_user_repository),
):
    selected_feed, genre_id = parse_feed(feed), parse_genre(genre)
    tracking = await _tracking_for(repo, identity)
    view = await browse.build_browse_view(
        catalog,
        identity=identity,
        tracking=tracking,
        reviews_for=repo.list_reviews_for_movie,
        feed=selected_feed,
        genre_id=genre_id,
        query=query,
        movie_id=parse_optional_movie_id(movie_id),
    )
    return json_no_store(view)


__all__ = ["router"]
