from __future__ import annotations

from enum import Enum


class WatchState(str, Enum):
    """Per-(user, movie) tracking state. Absence means untracked."""

    WATCHED = "watched"
    WATCHING = "watching"
    WATCHLIST = "watchlist"


class Feed(str, Enum):
    """Browse feeds offered by the catalog view."""

    TRENDING = "trending"
    TOP_RATED = "top-rated"
    RECENT = "recent"
    GENRE = "genre"
