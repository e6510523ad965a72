from __future__ import annotations

"""
Genre-based recommendation heuristic.

Scores genres from the caller's own activity on the current browse set:
a movie rated 4+ contributes 2 to each of its genres, a watched or
watchlisted movie contributes 1. The two heaviest genres (ties by lower id)
seed a TMDB discover query sorted by vote average.

Degrades to browse-set picks whenever the catalog cannot help.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Mapping, Sequence

from cinetrack.core.exceptions import CatalogError
from cinetrack.schemas.catalog import Movie
from cinetrack.schemas.enums import WatchState
from cinetrack.services.catalog.client import CatalogClient

log = logging.getLogger(__name__)

RECOMMENDATION_LIMIT = 8
TOP_GENRES = 2


def movie_weight(movie_id: int, watch_states: Mapping[str, WatchState], ratings: Mapping[str, int]) -> int:
    key = str(movie_id)
    rating = ratings.get(key)
    if rating is not None and rating >= 4:
        return 2
    if watch_states.get(key) in (WatchState.WATCHED, WatchState.WATCHLIST):
        return 1
    return 0


def rank_genres(
    movies: Sequence[Movie],
    watch_states: Mapping[str, WatchState],
    ratings: Mapping[str, int],
    *,
    limit: int = TOP_GENRES,
) -> List[int]:
    """Genre ids with positive accumulated weight, heaviest first."""
    scores: Dict[int, int] = defaultdict(int)
    for movie in movies:
        weight = movie_weight(movie.id, watch_states, ratings)
        if not weight:
            continue
        for genre_id in movie.genre_id_list():
            scores[genre_id] += weight
    ranked = sorted(scores.items(), key=lambda kv: (-kv[1], kv[0]))
    return [genre_id for genre_id, _ in ranked[:limit]]


def fallback_picks(movies: Sequence[Movie], watch_states: Mapping[str, WatchState]) -> List[Movie]:
    """Untracked or watchlisted browse movies."""
    picks = [
        m for m in movies
        if watch_states.get(str(m.id)) in (None, WatchState.WATCHLIST)
    ]
    return picks[:RECOMMENDATION_LIMIT]


async def recommend(
    catalog: CatalogClient,
    movies: Sequence[Movie],
    watch_states: Mapping[str, WatchState],
    ratings: Mapping[str, int],
) -> List[Movie]:
    top = rank_genres(movies, watch_states, ratings)
    if not catalog.configured or not top:
        return fallback_picks(movies, watch_states)

    try:
        discovered = await catalog.discover_by_genres(top)
    except CatalogError as e:
        log.warning("recommendation query failed for genres %s: %s", top, e)
        return list(movies[:RECOMMENDATION_LIMIT])

    fresh = [m for m in discovered if str(m.id) not in watch_states]
    return fresh[:RECOMMENDATION_LIMIT]


__all__ = ["movie_weight", "rank_genres", "fallback_picks", "recommend", "RECOMMENDATION_LIMIT"]
