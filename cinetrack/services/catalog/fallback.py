"""Bundled sample catalog served when TMDB is unconfigured or unreachable."""

from __future__ import annotations

from typing import List

from cinetrack.schemas.catalog import Genre, Movie

FALLBACK_GENRES: List[Genre] = [
    Genre(id=28, name="Action"),
    Genre(id=18, name="Drama"),
    Genre(id=35, name="Comedy"),
    Genre(id=878, name="Sci-Fi"),
    Genre(id=53, name="Thriller"),
]

FALLBACK_MOVIES: List[Movie] = [
    Movie(
        id=90001,
        title="North Star Signal",
        overview=(
            "An ex-journalist uncovers a conspiracy hidden in analog radio broadcasts "
            "across remote Arctic towns."
        ),
        poster_path=None,
        release_date="2024-11-10",
        vote_average=7.8,
        vote_count=1290,
        genre_ids=[53, 18],
    ),
    Movie(
        id=90002,
        title="Velvet Orbit",
        overview=(
            "A retired pilot agrees to one final deep-space courier mission and "
            "discovers a fractured colony in silence."
        ),
        poster_path=None,
        release_date="2025-03-22",
        vote_average=8.1,
        vote_count=1824,
        genre_ids=[878, 18],
    ),
    Movie(
        id=90003,
        title="Brass Avenue",
        overview=(
            "A chaotic family-run cinema fights to survive in a city where blockbuster "
            "chains are buying every neighborhood screen."
        ),
        poster_path=None,
        release_date="2023-09-14",
        vote_average=7.1,
        vote_count=842,
        genre_ids=[35, 18],
    ),
]


def fallback_genres() -> List[Genre]:
    return [g.model_copy() for g in FALLBACK_GENRES]


def fallback_movies() -> List[Movie]:
    return [m.model_copy(deep=True) for m in FALLBACK_MOVIES]
