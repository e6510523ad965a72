# tests/test_session/test_google_auth.py

import time
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from authlib.jose import JsonWebKey, jwt
from fastapi.testclient import TestClient

GOOGLE_OK = dict(GOOGLE_CLIENT_ID="client-123", GOOGLE_CLIENT_SECRET="shh")

DISCOVERY = {
    "issuer": "https://accounts.google.com",
    "authorization_endpoint": "https://accounts.google.com/o/oauth2/v2/auth",
    "token_endpoint": "https://oauth2.googleapis.com/token",
    "userinfo_endpoint": "https://openidconnect.googleapis.com/v1/userinfo",
    "jwks_uri": "https://www.googleapis.com/oauth2/v3/certs",
    "id_token_signing_alg_values_supported": ["RS256"],
}

USERINFO = {
    "sub": "1094",
    "name": "Carol Vega",
    "email": "carol@example.com",
    "picture": "https://lh3.example/carol.png",
}


# ─────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def google_discovery(upstream):
    upstream.google("accounts.google.com", "/.well-known/openid-configuration", DISCOVERY)


def _google_ok(upstream):
    upstream.google("oauth2.googleapis.com", "/token", {"access_token": "at-1", "token_type": "Bearer"})
    upstream.google("openidconnect.googleapis.com", "/v1/userinfo", USERINFO)


def _authorize_params(client: TestClient) -> dict:
    resp = client.get("/auth/google", follow_redirects=False)
    assert resp.status_code == 302
    return {k: v[0] for k, v in parse_qs(urlparse(resp.headers["location"]).query).items()}


def _start_login(client: TestClient) -> str:
    return _authorize_params(client)["state"]


# ─────────────────────────────────────────────────────────────
# Unconfigured
# ─────────────────────────────────────────────────────────────

@pytest.mark.parametrize("path", ["/auth/google", "/auth/google/callback?code=x&state=y"])
def test_oauth_unconfigured_returns_500(make_app, path):
    client = TestClient(make_app())
    resp = client.get(path, follow_redirects=False)
    assert resp.status_code == 500
    assert resp.json() == {"error": "Google OAuth is not configured on the server"}


# ─────────────────────────────────────────────────────────────
# Login leg
# ─────────────────────────────────────────────────────────────

def test_login_redirects_to_google_with_state(make_app):
    client = TestClient(make_app(**GOOGLE_OK))
    resp = client.get("/auth/google", follow_redirects=False)

    assert resp.status_code == 302
    url = urlparse(resp.headers["location"])
    assert f"{url.scheme}://{url.netloc}{url.path}" == "https://accounts.google.com/o/oauth2/v2/auth"
    q = parse_qs(url.query)
    assert q["client_id"] == ["client-123"]
    assert q["redirect_uri"] == ["http://localhost:4000/auth/google/callback"]
    assert q["scope"] == ["openid profile email"]
    assert q["response_type"] == ["code"]
    assert q["state"][0]
    assert q["nonce"][0]
    assert q["prompt"] == ["select_account"]
    assert "cinetrack.sid" in resp.cookies


def test_configured_callback_url_is_used(make_app):
    client = TestClient(make_app(GOOGLE_CALLBACK_URL="https://api.example/auth/google/callback", **GOOGLE_OK))
    resp = client.get("/auth/google", follow_redirects=False)
    q = parse_qs(urlparse(resp.headers["location"]).query)
    assert q["redirect_uri"] == ["https://api.example/auth/google/callback"]


# ─────────────────────────────────────────────────────────────
# Callback leg
# ─────────────────────────────────────────────────────────────

def test_callback_success_signs_in_and_persists_profile(make_app, upstream):
    _google_ok(upstream)
    app = make_app(**GOOGLE_OK)
    client = TestClient(app)
    state = _start_login(client)

    resp = client.get(f"/auth/google/callback?code=abc&state={state}", follow_redirects=False)

    assert resp.status_code == 302
    assert resp.headers["location"] == "http://localhost:5173/?auth=success"

    token_call = upstream.calls_to("/token")[0]
    form = parse_qs(token_call.content.decode())
    assert form["code"] == ["abc"]
    assert form["grant_type"] == ["authorization_code"]
    assert upstream.calls_to("/v1/userinfo")[0].headers["Authorization"] == "Bearer at-1"

    me = client.get("/api/me").json()
    assert me == {
        "user": {
            "id": "1094",
            "displayName": "Carol Vega",
            "email": "carol@example.com",
            "avatar": "https://lh3.example/carol.png",
        }
    }
    assert app.state.store.read().users["1094"].profile.display_name == "Carol Vega"

    # Session cookie now authorizes mutations
    assert client.put("/api/rating", json={"movieId": 90001, "rating": 5}).json() == {"ratings": {"90001": 5}}


def test_callback_prefers_validated_id_token_claims(make_app, upstream):
    key = JsonWebKey.generate_key("RSA", 2048, is_private=True)
    upstream.google(
        "www.googleapis.com", "/oauth2/v3/certs", {"keys": [dict(key.as_dict(is_private=False), kid="k1")]}
    )
    client = TestClient(make_app(**GOOGLE_OK))
    params = _authorize_params(client)

    now = int(time.time())
    claims = {
        "iss": "https://accounts.google.com",
        "aud": "client-123",
        "sub": "2207",
        "email": "dana@example.com",
        "nonce": params["nonce"],
        "iat": now,
        "exp": now + 300,
    }
    id_token = jwt.encode({"alg": "RS256", "kid": "k1"}, claims, key).decode()
    upstream.google(
        "oauth2.googleapis.com", "/token", {"access_token": "at-2", "token_type": "Bearer", "id_token": id_token}
    )

    resp = client.get(f"/auth/google/callback?code=abc&state={params['state']}", follow_redirects=False)

    assert resp.headers["location"] == "http://localhost:5173/?auth=success"
    assert upstream.calls_to("/v1/userinfo") == []
    assert client.get("/api/me").json()["user"] == {
        "id": "2207",
        "displayName": "dana@example.com",
        "email": "dana@example.com",
        "avatar": "",
    }


def test_callback_rejects_id_token_for_another_client(make_app, upstream):
    key = JsonWebKey.generate_key("RSA", 2048, is_private=True)
    upstream.google(
        "www.googleapis.com", "/oauth2/v3/certs", {"keys": [dict(key.as_dict(is_private=False), kid="k1")]}
    )
    client = TestClient(make_app(**GOOGLE_OK))
    params = _authorize_params(client)

    now = int(time.time())
    claims = {
        "iss": "https://accounts.google.com",
        "aud": "someone-else",
        "sub": "2207",
        "nonce": params["nonce"],
        "iat": now,
        "exp": now + 300,
    }
    id_token = jwt.encode({"alg": "RS256", "kid": "k1"}, claims, key).decode()
    upstream.google(
        "oauth2.googleapis.com", "/token", {"access_token": "at-2", "token_type": "Bearer", "id_token": id_token}
    )

    resp = client.get(f"/auth/google/callback?code=abc&state={params['state']}", follow_redirects=False)

    assert resp.headers["location"] == "http://localhost:5173/?auth=failed"
    assert client.get("/api/me").json() == {"user": None}


def test_callback_state_mismatch_fails(make_app, upstream):
    _google_ok(upstream)
    client = TestClient(make_app(**GOOGLE_OK))
    _start_login(client)

    resp = client.get("/auth/google/callback?code=abc&state=forged", follow_redirects=False)

    assert resp.headers["location"] == "http://localhost:5173/?auth=failed"
    assert upstream.calls_to("/token") == []
    assert client.get("/api/me").json() == {"user": None}


def test_callback_provider_error_fails(make_app, upstream):
    client = TestClient(make_app(**GOOGLE_OK))
    state = _start_login(client)

    resp = client.get(f"/auth/google/callback?error=access_denied&state={state}", follow_redirects=False)

    assert resp.status_code == 302
    assert resp.headers["location"] == "http://localhost:5173/?auth=failed"


@pytest.mark.parametrize(
    "token_route",
    [(400, {"error": "invalid_grant"}), {"token_type": "Bearer"}, httpx.ConnectError("down")],
)
def test_callback_exchange_failures_redirect_failed(make_app, upstream, token_route):
    upstream.google("oauth2.googleapis.com", "/token", token_route)
    upstream.google("openidconnect.googleapis.com", "/v1/userinfo", USERINFO)
    client = TestClient(make_app(**GOOGLE_OK))
    state = _start_login(client)

    resp = client.get(f"/auth/google/callback?code=abc&state={state}", follow_redirects=False)

    assert resp.headers["location"] == "http://localhost:5173/?auth=failed"
    assert client.get("/api/me").json() == {"user": None}


def test_state_is_single_use(make_app, upstream):
    _google_ok(upstream)
    client = TestClient(make_app(**GOOGLE_OK))
    state = _start_login(client)
    client.get(f"/auth/google/callback?code=abc&state={state}", follow_redirects=False)
    client.post("/auth/logout")

    replay = client.get(f"/auth/google/callback?code=abc&state={state}", follow_redirects=False)
    assert replay.headers["location"] == "http://localhost:5173/?auth=failed"


# ─────────────────────────────────────────────────────────────
# Logout
# ─────────────────────────────────────────────────────────────

def test_logout_clears_session(make_app, upstream):
    _google_ok(upstream)
    client = TestClient(make_app(**GOOGLE_OK))
    state = _start_login(client)
    client.get(f"/auth/google/callback?code=abc&state={state}", follow_redirects=False)
    assert client.get("/api/me").json()["user"]["id"] == "1094"

    resp = client.post("/auth/logout")

    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert client.get("/api/me").json() == {"user": None}
    assert client.get("/api/user-data").status_code == 401


def test_logout_as_guest_is_ok(make_app):
    client = TestClient(make_app())
    resp = client.post("/auth/logout")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


def test_tampered_session_cookie_is_ignored(make_app):
    client = TestClient(make_app())
    client.cookies.set("cinetrack.sid", "eyJ1c2VyIjogeyJpZCI6ICJ4In19.bogus.sig")
    assert client.get("/api/me").json() == {"user": None}
