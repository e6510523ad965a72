from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Genre(BaseModel):
    id: int
    name: str


class Movie(BaseModel):
    """A catalog item as TMDB returns it (snake_case keys kept verbatim)."""

    model_config = ConfigDict(extra="ignore")

    id: int
    title: str = ""
    overview: Optional[str] = ""
    poster_path: Optional[str] = None
    release_date: Optional[str] = ""
    vote_average: float = 0.0
    vote_count: int = 0
    genre_ids: List[int] = Field(default_factory=list)
    genres: List[Genre] = Field(default_factory=list)

    def genre_id_list(self) -> List[int]:
        """Genre ids from `genre_ids`, or from `genres` for detail payloads."""
        if self.genre_ids:
            return list(self.genre_ids)
        return [g.id for g in self.genres]


class MovieView(Movie):
    """A catalog item merged with the caller's state, ready to render."""

    userRating: Optional[int] = None
    userStatus: Optional[str] = None
    posterUrl: Optional[str] = None
    genreNames: List[str] = Field(default_factory=list)
    year: str = "N/A"
