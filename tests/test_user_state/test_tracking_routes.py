# tests/test_user_state/test_tracking_routes.py

import pytest
from httpx import AsyncClient


# ─────────────────────────────────────────────────────────────
# /api/me
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_me_is_null_for_guests(async_client: AsyncClient, store_doc):
    resp = await async_client.get("/api/me")
    assert resp.status_code == 200
    assert resp.json() == {"user": None}
    assert resp.headers["Cache-Control"].startswith("no-store")


@pytest.mark.anyio
async def test_me_upserts_profile_and_keeps_tracking(async_client: AsyncClient, app, sign_in, alice, store_doc):
    sign_in(app, alice)
    await async_client.put("/api/rating", json={"movieId": 90001, "rating": 5})

    renamed = alice.model_copy(update={"display_name": "Alice D."})
    sign_in(app, renamed)
    resp = await async_client.get("/api/me")

    assert resp.status_code == 200
    assert resp.json()["user"] == {
        "id": "google-alice",
        "displayName": "Alice D.",
        "email": "alice@example.com",
        "avatar": "https://img/a.png",
    }
    record = store_doc()["users"]["google-alice"]
    assert record["profile"]["displayName"] == "Alice D."
    assert record["ratings"] == {"90001": 5}


# ─────────────────────────────────────────────────────────────
# /api/user-data
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_user_data_requires_auth(async_client: AsyncClient):
    resp = await async_client.get("/api/user-data")
    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}


@pytest.mark.anyio
async def test_user_data_creates_empty_record(async_client: AsyncClient, app, sign_in, store_doc):
    sign_in(app)
    resp = await async_client.get("/api/user-data")

    assert resp.status_code == 200
    assert resp.json() == {"watchStates": {}, "ratings": {}}
    assert "google-alice" in store_doc()["users"]


# ─────────────────────────────────────────────────────────────
# PUT /api/status
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
@pytest.mark.parametrize("status", ["watched", "watching", "watchlist"])
async def test_status_update_is_reflected_in_user_data(async_client: AsyncClient, app, sign_in, status):
    sign_in(app)
    resp = await async_client.put("/api/status", json={"movieId": 90002, "status": status})
    assert resp.status_code == 200
    assert resp.json() == {"watchStates": {"90002": status}}

    data = (await async_client.get("/api/user-data")).json()
    assert data["watchStates"] == {"90002": status}


@pytest.mark.anyio
async def test_status_null_removes_mapping(async_client: AsyncClient, app, sign_in):
    sign_in(app)
    await async_client.put("/api/status", json={"movieId": 90002, "status": "watched"})
    await async_client.put("/api/status", json={"movieId": 90003, "status": "watchlist"})

    resp = await async_client.put("/api/status", json={"movieId": 90002, "status": None})

    assert resp.status_code == 200
    assert resp.json() == {"watchStates": {"90003": "watchlist"}}
    data = (await async_client.get("/api/user-data")).json()
    assert "90002" not in data["watchStates"]


@pytest.mark.anyio
@pytest.mark.parametrize(
    "body, message",
    [
        ({"movieId": "90001", "status": "watched"}, "Invalid movieId"),
        ({"movieId": True, "status": "watched"}, "Invalid movieId"),
        ({"status": "watched"}, "Invalid movieId"),
        ({"movieId": 90001, "status": "seen"}, "Invalid status"),
        ({"movieId": 90001}, "Invalid status"),
        ({"movieId": "x", "status": "seen"}, "Invalid movieId"),
    ],
)
async def test_status_validation_messages(async_client: AsyncClient, app, sign_in, store_doc, body, message):
    sign_in(app)
    await async_client.get("/api/user-data")
    before = store_doc()

    resp = await async_client.put("/api/status", json=body)

    assert resp.status_code == 400
    assert resp.json() == {"error": message}
    assert store_doc() == before


@pytest.mark.anyio
async def test_non_object_body_is_rejected(async_client: AsyncClient, app, sign_in):
    sign_in(app)
    resp = await async_client.put("/api/status", json=[1, 2, 3])
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request body"}


# ─────────────────────────────────────────────────────────────
# PUT /api/rating
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_rating_round_trip(async_client: AsyncClient, app, sign_in):
    sign_in(app)
    resp = await async_client.put("/api/rating", json={"movieId": 90001, "rating": 5})
    assert resp.status_code == 200
    assert resp.json() == {"ratings": {"90001": 5}}

    data = (await async_client.get("/api/user-data")).json()
    assert data["ratings"] == {"90001": 5}


@pytest.mark.anyio
async def test_rating_null_removes_entry(async_client: AsyncClient, app, sign_in):
    sign_in(app)
    await async_client.put("/api/rating", json={"movieId": 90001, "rating": 4})
    resp = await async_client.put("/api/rating", json={"movieId": 90001, "rating": None})
    assert resp.json() == {"ratings": {}}


@pytest.mark.anyio
@pytest.mark.parametrize("bad", [0, 6, -1, 4.5, "5", True, 100])
async def test_out_of_range_rating_leaves_state_unchanged(async_client: AsyncClient, app, sign_in, bad):
    sign_in(app)
    await async_client.put("/api/rating", json={"movieId": 90001, "rating": 3})

    resp = await async_client.put("/api/rating", json={"movieId": 90001, "rating": bad})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid rating"}
    data = (await async_client.get("/api/user-data")).json()
    assert data["ratings"] == {"90001": 3}


@pytest.mark.anyio
async def test_missing_rating_key_is_rejected(async_client: AsyncClient, app, sign_in):
    sign_in(app)
    resp = await async_client.put("/api/rating", json={"movieId": 90001})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid rating"}


@pytest.mark.anyio
async def test_integral_float_movie_id_uses_integer_key(async_client: AsyncClient, app, sign_in):
    sign_in(app)
    resp = await async_client.put("/api/rating", json={"movieId": 90001.0, "rating": 2})
    assert resp.json() == {"ratings": {"90001": 2}}


# ─────────────────────────────────────────────────────────────
# Auth gate
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
@pytest.mark.parametrize(
    "method, path, body",
    [
        ("PUT", "/api/status", {"movieId": 1, "status": "watched"}),
        ("PUT", "/api/rating", {"movieId": 1, "rating": 5}),
        ("POST", "/api/reviews", {"movieId": 1, "content": "Nice", "rating": None}),
    ],
)
async def test_mutations_require_auth_and_do_not_touch_store(async_client: AsyncClient, store_doc, method, path, body):
    resp = await async_client.request(method, path, json=body)

    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}
    doc = store_doc()
    assert doc.get("users", {}) == {}
    assert doc.get("reviews", []) == []


@pytest.mark.anyio
async def test_users_are_isolated(async_client: AsyncClient, app, sign_in, alice, bob):
    sign_in(app, alice)
    await async_client.put("/api/status", json={"movieId": 7, "status": "watched"})
    sign_in(app, bob)

    data = (await async_client.get("/api/user-data")).json()
    assert data == {"watchStates": {}, "ratings": {}}
