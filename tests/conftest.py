# tests/conftest.py
"""
Global test bootstrap
- Builds an isolated app per test (store under tmp_path, no real upstreams)
- Fakes TMDB and Google behind one `httpx.MockTransport`
- Exposes `sign_in` to act as a signed-in user via dependency overrides
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from cinetrack.api.deps import get_current_identity
from cinetrack.core.config import Settings
from cinetrack.main import create_app
from cinetrack.schemas.user import Identity

ALICE = Identity(id="google-alice", display_name="Alice Doe", email="alice@example.com", avatar="https://img/a.png")
BOB = Identity(id="google-bob", display_name="Bob Roe", email="bob@example.com", avatar="")


@pytest.fixture(scope="session", autouse=True)
def anyio_backend():
    return "asyncio"


# ──────────────────────────────────────────────────────────────────────────────
# 🌐 Fake upstreams (TMDB + Google) behind one MockTransport
# ──────────────────────────────────────────────────────────────────────────────
class FakeUpstream:
    """
    Route table keyed by (host, path). A value is either a JSON payload
    (served with 200), a `(status, payload)` tuple, or an exception instance
    to raise as a transport error.
    """

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Any] = {}
        self.calls: List[httpx.Request] = []

    def tmdb(self, path: str, response: Any) -> None:
        self.routes[("api.themoviedb.org", f"/3{path}")] = response

    def google(self, host: str, path: str, response: Any) -> None:
        self.routes[(host, path)] = response

    def calls_to(self, path: str) -> List[httpx.Request]:
        return [r for r in self.calls if r.url.path.endswith(path)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self.routes.get((request.url.host, request.url.path))
        if route is None:
            return httpx.Response(404, json={"status_message": "not found"})
        if isinstance(route, Exception):
            raise route
        if isinstance(route, tuple):
            status, payload = route
            return httpx.Response(status, json=payload)
        return httpx.Response(200, json=route)


@pytest.fixture()
def upstream() -> FakeUpstream:
    return FakeUpstream()


# ──────────────────────────────────────────────────────────────────────────────
# 🧩 App + settings
# ──────────────────────────────────────────────────────────────────────────────
def _settings(tmp_path, **overrides: Any) -> Settings:
    base: Dict[str, Any] = dict(
        ENV="test",
        DATA_DIR=tmp_path / "data",
        FRONTEND_URL="http://localhost:5173",
        PUBLIC_BASE_URL="http://localhost:4000",
        SESSION_SECRET="test-secret",
        GOOGLE_CLIENT_ID="",
        GOOGLE_CLIENT_SECRET="",
        GOOGLE_CALLBACK_URL=None,
        TMDB_API_KEY="",
        TMDB_READ_ACCESS_TOKEN="",
        TMDB_BASE_URL="https://api.themoviedb.org/3",
        CATALOG_CACHE_TTL_SECONDS=0,
        RATE_LIMIT_ENABLED=False,
    )
    base.update(overrides)
    return Settings(**base)


@pytest.fixture()
def make_app(tmp_path, upstream: FakeUpstream) -> Callable[..., FastAPI]:
    """Factory: `make_app(TMDB_API_KEY="k", ...)` → app wired to the fake upstream."""

    def _factory(**overrides: Any) -> FastAPI:
        cfg = _settings(tmp_path, **overrides)
        return create_app(cfg, transport=httpx.MockTransport(upstream.handler))

    return _factory


@pytest.fixture()
def app(make_app) -> FastAPI:
    return make_app()


@pytest.fixture()
async def async_client(app: FastAPI):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def sign_in() -> Callable[[FastAPI, Optional[Identity]], Identity]:
    """Act as `identity` (default: Alice) on every request to `app`."""

    def _sign_in(app: FastAPI, identity: Optional[Identity] = None) -> Identity:
        who = identity or ALICE
        app.dependency_overrides[get_current_identity] = lambda: who
        return who

    return _sign_in


@pytest.fixture()
def store_doc(app: FastAPI) -> Callable[[], Dict[str, Any]]:
    """Raw JSON currently persisted by the app's store."""

    def _read() -> Dict[str, Any]:
        path = app.state.store.path
        if not path.exists():
            return {}
        return json.loads(path.read_text(encoding="utf-8"))

    return _read


@pytest.fixture()
def alice() -> Identity:
    return ALICE.model_copy()


@pytest.fixture()
def bob() -> Identity:
    return BOB.model_copy()
