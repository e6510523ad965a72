from __future__ import annotations

"""
User, store and request-body schemas.

JSON keys are camelCase (the store file and the browser client both use
them); Python attributes are snake_case.
"""

import math
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)
from pydantic.alias_generators import to_camel

from cinetrack.schemas.enums import WatchState


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dump(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ─────────────────────────────────────────────────────────────
# Scalar validators
# ─────────────────────────────────────────────────────────────
def _finite_movie_id(value: Union[int, float]) -> Union[int, float]:
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError("movieId must be finite")
        if value.is_integer():
            return int(value)
    return value


def _star_rating(value: Union[int, float]) -> int:
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError("rating must be an integer")
        value = int(value)
    if value < 1 or value > 5:
        raise ValueError("rating must be between 1 and 5")
    return value


# JSON numbers only: strings and booleans are rejected.
MovieId = Annotated[Union[StrictInt, StrictFloat], AfterValidator(_finite_movie_id)]
StarRating = Annotated[Union[StrictInt, StrictFloat], AfterValidator(_star_rating)]


def movie_key(movie_id: Union[int, float]) -> str:
    """Object key used for a movie id in `watchStates` / `ratings`."""
    return str(_finite_movie_id(movie_id))


# ─────────────────────────────────────────────────────────────
# Identity & persisted records
# ─────────────────────────────────────────────────────────────
class Identity(CamelModel):
    id: str
    display_name: str = ""
    email: str = ""
    avatar: str = ""


class UserRecord(CamelModel):
    watch_states: Dict[str, WatchState] = Field(default_factory=dict)
    ratings: Dict[str, int] = Field(default_factory=dict)
    profile: Optional[Identity] = None


class Review(CamelModel):
    id: str
    movie_id: Union[int, float]
    author: str = ""
    rating: Optional[int] = None
    content: str
    created_at: str
    user_id: Optional[str] = None


class StoreDocument(CamelModel):
    users: Dict[str, UserRecord] = Field(default_factory=dict)
    reviews: List[Review] = Field(default_factory=list)

    @field_validator("users", "reviews", mode="before")
    @classmethod
    def _null_is_empty(cls, v, info):
        if v is None:
            return {} if info.field_name == "users" else []
        return v


# ─────────────────────────────────────────────────────────────
# Request bodies
# ─────────────────────────────────────────────────────────────
class StatusInput(CamelModel):
    movie_id: MovieId
    status: Optional[WatchState]


class RatingInput(CamelModel):
    movie_id: MovieId
    rating: Optional[StarRating]


class ReviewInput(CamelModel):
    movie_id: MovieId
    content: StrictStr
    rating: Optional[StarRating]

    @field_validator("content")
    @classmethod
    def _content_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("content is required")
        return v


# ─────────────────────────────────────────────────────────────
# Responses
# ─────────────────────────────────────────────────────────────
class TrackingData(CamelModel):
    watch_states: Dict[str, WatchState] = Field(default_factory=dict)
    ratings: Dict[str, int] = Field(default_factory=dict)


class Stats(CamelModel):
    watched_count: int = 0
    watchlist_count: int = 0
    avg_rating: float = 0.0
