from __future__ import annotations

"""
Browse view-model.

Assembles what the movie screen renders: genres, the current feed merged
with the caller's tracking state, stats, recommendations and the active
movie's reviews. Catalog failures degrade to the bundled sample data and an
`error` banner; they never raise out of this module.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from starlette.concurrency import run_in_threadpool

from cinetrack.core.exceptions import CatalogError
from cinetrack.schemas.catalog import Genre, Movie, MovieView
from cinetrack.schemas.enums import Feed, WatchState
from cinetrack.schemas.user import Identity, Review, Stats, TrackingData
from cinetrack.services.catalog.client import CatalogClient
from cinetrack.services.catalog.fallback import fallback_genres, fallback_movies
from cinetrack.services.recommendations import recommend

log = logging.getLogger(__name__)

GUEST_DISPLAY_NAME = "Guest Viewer"
GUEST_AVATAR = (
    "https://images.unsplash.com/photo-1570158268183-d296b2892211"
    "?auto=format&fit=crop&w=160&q=80"
)
OFFLINE_ERROR = "Could not load movies right now. Showing offline sample data."


@dataclass
class MovieFeed:
    movies: List[Movie] = field(default_factory=list)
    error: Optional[str] = None
    live: bool = False


# ─────────────────────────────────────────────────────────────
# Catalog loading (never raises)
# ─────────────────────────────────────────────────────────────
async def load_genres(catalog: CatalogClient) -> Tuple[List[Genre], bool]:
    if not catalog.configured:
        return fallback_genres(), False
    try:
        genres = await catalog.list_genres()
    except CatalogError as e:
        log.warning("genre list unavailable, using sample genres: %s", e)
        return fallback_genres(), False
    if not genres:
        return fallback_genres(), False
    return genres, True


async def load_movies(catalog: CatalogClient, feed: Feed, genre_id: int, query: str = "") -> MovieFeed:
    if not catalog.configured:
        return MovieFeed(movies=fallback_movies())
    trimmed = (query or "").strip()
    try:
        movies = await catalog.browse(feed, genre_id=genre_id, query=trimmed)
    except CatalogError as e:
        log.warning("catalog feed %s unavailable, using sample movies: %s", feed.value, e)
        return MovieFeed(movies=fallback_movies(), error=OFFLINE_ERROR)
    error = f'No results found for "{trimmed}".' if trimmed and not movies else None
    return MovieFeed(movies=movies, error=error, live=True)


# ─────────────────────────────────────────────────────────────
# Pure projections
# ─────────────────────────────────────────────────────────────
def format_year(release_date: Optional[str]) -> str:
    if not release_date:
        return "N/A"
    year = release_date[:4]
    return year if year.isdigit() else "N/A"


def to_movie_view(
    movie: Movie,
    catalog: CatalogClient,
    tracking: TrackingData,
    genre_names: Mapping[int, str],
) -> MovieView:
    key = str(movie.id)
    status = tracking.watch_states.get(key)
    return MovieView(
        **movie.model_dump(),
        userRating=tracking.ratings.get(key),
        userStatus=status.value if status is not None else None,
        posterUrl=catalog.poster_url(movie.poster_path),
        genreNames=[genre_names[g] for g in movie.genre_id_list() if g in genre_names],
        year=format_year(movie.release_date),
    )


def to_movie_views(
    movies: Sequence[Movie],
    catalog: CatalogClient,
    tracking: TrackingData,
    genres: Sequence[Genre],
) -> List[MovieView]:
    names = {g.id: g.name for g in genres}
    return [to_movie_view(m, catalog, tracking, names) for m in movies]


def compute_stats(tracking: TrackingData) -> Stats:
    states = list(tracking.watch_states.values())
    ratings = list(tracking.ratings.values())
    return Stats(
        watched_count=sum(1 for s in states if s == WatchState.WATCHED),
        watchlist_count=sum(1 for s in states if s == WatchState.WATCHLIST),
        avg_rating=(sum(ratings) / len(ratings)) if ratings else 0.0,
    )


def profile_for(identity: Optional[Identity]) -> Dict[str, str]:
    if identity is None:
        return {"displayName": GUEST_DISPLAY_NAME, "avatar": GUEST_AVATAR}
    return {
        "displayName": identity.display_name or GUEST_DISPLAY_NAME,
        "avatar": identity.avatar or GUEST_AVATAR,
    }


def pick_active(movies: Sequence[Movie], movie_id: Optional[int]) -> Optional[Movie]:
    if movie_id is not None:
        for movie in movies:
            if movie.id == movie_id:
                return movie
    return movies[0] if movies else None


# ─────────────────────────────────────────────────────────────
# Whole screen
# ─────────────────────────────────────────────────────────────
async def build_browse_view(
    catalog: CatalogClient,
    *,
    identity: Optional[Identity],
    tracking: TrackingData,
    reviews_for: Callable[[int], List[Review]],
    feed: Feed,
    genre_id: int,
    query: str = "",
    movie_id: Optional[int] = None,
) -> Dict[str, Any]:
    """Everything the browse screen needs in one payload.

    `reviews_for` returns a movie's reviews, newest first. It reads the
    store, so it runs in the threadpool.
    """
    genres, _ = await load_genres(catalog)
    movie_feed = await load_movies(catalog, feed, genre_id, query)
    recommendations = await recommend(catalog, movie_feed.movies, tracking.watch_states, tracking.ratings)

    active = pick_active(movie_feed.movies, movie_id)
    active_reviews: List[Review] = await run_in_threadpool(reviews_for, active.id) if active is not None else []

    names = {g.id: g.name for g in genres}
    return {
        "profile": profile_for(identity),
        "stats": compute_stats(tracking).dump(),
        "genres": [g.model_dump() for g in genres],
        "movies": [to_movie_view(m, catalog, tracking, names).model_dump() for m in movie_feed.movies],
        "error": movie_feed.error,
        "live": movie_feed.live,
        "recommendations": [to_movie_view(m, catalog, tracking, names).model_dump() for m in recommendations],
        "activeMovie": to_movie_view(active, catalog, tracking, names).model_dump() if active else None,
        "activeMovieReviews": [r.dump() for r in active_reviews],
    }


__all__ = [
    "MovieFeed",
    "GUEST_DISPLAY_NAME",
    "GUEST_AVATAR",
    "OFFLINE_ERROR",
    "load_genres",
    "load_movies",
    "format_year",
    "to_movie_view",
    "to_movie_views",
    "compute_stats",
    "profile_for",
    "pick_active",
    "build_browse_view",
]
