from __future__ import annotations

"""
TMDB catalog client.

Thin async wrapper over the TMDB v3 REST API:

- Credentials: `api_key` query parameter when an API key is configured,
  otherwise an `Authorization: Bearer` read-access token. With neither,
  every call raises `CatalogCredentialsMissing` without touching the network.
- Errors: transport failures, non-2xx responses and payloads of the wrong
  shape raise `CatalogError`; malformed list items are skipped;
  callers decide how to degrade.
- Caching: successful payloads are kept in a small in-process TTL map keyed
  by path + sorted params.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Type, TypeVar, Union

import httpx
from pydantic import BaseModel

from cinetrack.core.cache import TTLMap
from cinetrack.core.config import Settings
from cinetrack.core.exceptions import CatalogCredentialsMissing, CatalogError
from cinetrack.schemas.catalog import Genre, Movie
from cinetrack.schemas.enums import Feed

log = logging.getLogger(__name__)

ParamValue = Union[str, int, bool]
M = TypeVar("M", bound=BaseModel)
BROWSE_LIMIT = 24


def _encode(value: ParamValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class CatalogClient:
    def __init__(
        self,
        settings: Settings,
        http: Optional[httpx.AsyncClient] = None,
        *,
        cache: Optional[TTLMap] = None,
    ) -> None:
        self.base_url = settings.TMDB_BASE_URL
        self.image_url = settings.TMDB_IMAGE_URL
        self.api_key = settings.TMDB_API_KEY
        self.read_token = settings.TMDB_READ_ACCESS_TOKEN.get_secret_value()
        self.cache_ttl = settings.CATALOG_CACHE_TTL_SECONDS
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(timeout=settings.CATALOG_TIMEOUT_SECONDS)
        self.cache = cache if cache is not None else TTLMap(maxsize=256)

    @property
    def configured(self) -> bool:
        return bool(self.api_key or self.read_token)

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    # ── Transport ────────────────────────────────────────────
    async def get_json(self, path: str, params: Optional[Mapping[str, ParamValue]] = None) -> Dict[str, Any]:
        query: Dict[str, str] = {k: _encode(v) for k, v in (params or {}).items()}
        headers: Dict[str, str] = {"Accept": "application/json"}
        if self.api_key:
            query["api_key"] = self.api_key
        elif self.read_token:
            headers["Authorization"] = f"Bearer {self.read_token}"
        else:
            raise CatalogCredentialsMissing()

        cache_key = (path, tuple(sorted((k, v) for k, v in query.items() if k != "api_key")))
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            response = await self.http.get(f"{self.base_url}{path}", params=query, headers=headers)
        except httpx.HTTPError as e:
            raise CatalogError(f"TMDB request failed ({e.__class__.__name__})") from e
        if not response.is_success:
            raise CatalogError(f"TMDB request failed ({response.status_code})", status_code=response.status_code)
        try:
            data = response.json()
        except ValueError as e:
            raise CatalogError("TMDB returned invalid JSON") from e
        if not isinstance(data, dict):
            raise CatalogError("TMDB returned an unexpected payload")

        if self.cache_ttl > 0:
            self.cache.set(cache_key, data, self.cache_ttl)
        return data

    @staticmethod
    def _items(data: Mapping[str, Any], key: str, model: Type[M]) -> List[M]:
        raw = data.get(key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise CatalogError(f"TMDB returned an unexpected `{key}` payload")
        items: List[M] = []
        for item in raw:
            try:
                items.append(model.model_validate(item))
            except ValueError:
                log.debug("skipping malformed catalog %s item: %r", key, item)
        return items

    @classmethod
    def _movies(cls, data: Mapping[str, Any]) -> List[Movie]:
        return cls._items(data, "results", Movie)

    # ── Endpoints ────────────────────────────────────────────
    async def list_genres(self) -> List[Genre]:
        data = await self.get_json("/genre/movie/list", {"language": "en-US"})
        return self._items(data, "genres", Genre)

    async def browse(self, feed: Feed = Feed.TRENDING, *, genre_id: int = 28, query: str = "") -> List[Movie]:
        """Movies for a feed, or search results when `query` is not blank."""
        path, params = self.browse_request(feed, genre_id=genre_id, query=query)
        data = await self.get_json(path, params)
        return self._movies(data)[:BROWSE_LIMIT]

    @staticmethod
    def browse_request(feed: Feed, *, genre_id: int, query: str) -> tuple[str, Dict[str, ParamValue]]:
        trimmed = (query or "").strip()
        if trimmed:
            return "/search/movie", {"query": trimmed, "include_adult": False, "language": "en-US", "page": 1}
        if feed == Feed.TOP_RATED:
            return "/movie/top_rated", {"language": "en-US", "page": 1}
        if feed == Feed.RECENT:
            return "/discover/movie", {"sort_by": "primary_release_date.desc", "vote_count.gte": 50, "page": 1}
        if feed == Feed.GENRE:
            return "/discover/movie", {"with_genres": genre_id, "sort_by": "popularity.desc", "page": 1}
        return "/trending/movie/week", {}

    async def discover_by_genres(self, genre_ids: Sequence[int]) -> List[Movie]:
        data = await self.get_json(
            "/discover/movie",
            {
                "with_genres": ",".join(str(g) for g in genre_ids),
                "sort_by": "vote_average.desc",
                "vote_count.gte": 1000,
                "page": 1,
            },
        )
        return self._movies(data)

    def poster_url(self, poster_path: Optional[str]) -> Optional[str]:
        return f"{self.image_url}{poster_path}" if poster_path else None


__all__ = ["CatalogClient", "BROWSE_LIMIT"]
