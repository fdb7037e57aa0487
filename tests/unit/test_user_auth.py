"""Unit tests for Google token verification and the auth dependencies

Google's endpoints are replaced with an httpx.MockTransport.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from noteq.api.errors import Unauthorized
from noteq.api.middleware import user_auth
from noteq.api.middleware.user_auth import clear_token_cache, verify_google_token
from noteq.infrastructure import settings
from noteq.storage import UserRepository

REAL_ASYNC_CLIENT = httpx.AsyncClient


@pytest.fixture(autouse=True)
def fresh_cache():
    clear_token_cache()
    yield
    clear_token_cache()


@pytest.fixture
def google(monkeypatch):
    """Fake tokeninfo/userinfo endpoints; returns the list of requested URLs."""
    state = {"aud": "client-123", "token_status": 200, "calls": []}

    def handler(request: httpx.Request) -> httpx.Response:
        state["calls"].append(str(request.url))
        if request.url.path == "/tokeninfo":
            if state["token_status"] != 200:
                return httpx.Response(state["token_status"], json={"error": "invalid_token"})
            return httpx.Response(200, json={"aud": state["aud"], "email": "pat@example.com"})
        return httpx.Response(
            200, json={"email": "Pat@Example.com", "name": "Pat", "picture": "https://img/p.png"}
        )

    def client_factory(*args, **kwargs):
        return REAL_ASYNC_CLIENT(transport=httpx.MockTransport(handler))

    monkeypatch.setattr(user_auth.httpx, "AsyncClient", client_factory)
    monkeypatch.setattr(settings, "GOOGLE_OAUTH_CLIENT_ID", "client-123")
    return state


def test_valid_token_returns_identity_and_is_cached(google):
    user = asyncio.run(verify_google_token("good-token"))

    assert user.email == "Pat@Example.com"
    assert user.name == "Pat"
    assert user.provider == "google"
    assert len(google["calls"]) == 2

    again = asyncio.run(verify_google_token("good-token"))
    assert again == user
    assert len(google["calls"]) == 2


def test_wrong_audience_is_rejected(google):
    google["aud"] = "someone-elses-client"

    with pytest.raises(Unauthorized) as exc_info:
        asyncio.run(verify_google_token("good-token"))

    assert exc_info.value.status_code == 401


def test_invalid_token_is_rejected(google):
    google["token_status"] = 400

    with pytest.raises(Unauthorized):
        asyncio.run(verify_google_token("expired-token"))


def test_api_requires_authorization_header(monkeypatch):
    from noteq.api.app import app

    monkeypatch.setattr(settings, "DEV_AUTH_BYPASS", False)
    with TestClient(app) as client:
        response = client.get("/api/notes")

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized", "details": "Missing authorization header"}
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_api_rejects_non_bearer_scheme(monkeypatch):
    from noteq.api.app import app

    monkeypatch.setattr(settings, "DEV_AUTH_BYPASS", False)
    with TestClient(app) as client:
        response = client.get("/api/todos", headers={"Authorization": "Basic abc123"})

    assert response.status_code == 401


def test_bearer_token_resolves_to_user_row(google):
    from noteq.api.app import app

    with TestClient(app) as client:
        response = client.get("/api/notes", headers={"Authorization": "Bearer good-token"})

    assert response.status_code == 200
    user = UserRepository.get_by_email("pat@example.com")
    assert user is not None
    assert user.last_provider == "google"


def test_dev_bypass_without_token(monkeypatch):
    from noteq.api.app import app

    monkeypatch.setattr(settings, "DEV_AUTH_BYPASS", True)
    monkeypatch.setattr(settings, "DEV_AUTH_EMAIL", "dev@noteq.local")
    with TestClient(app) as client:
        response = client.get("/api/todos")

    assert response.status_code == 200
    user = UserRepository.get_by_email("dev@noteq.local")
    assert user is not None
    assert user.last_provider == "dev-bypass"


def test_health_needs_no_auth(monkeypatch):
    from noteq.api.app import app

    monkeypatch.setattr(settings, "DEV_AUTH_BYPASS", False)
    with TestClient(app) as client:
        assert client.get("/health").json()["status"] == "healthy"
        assert client.get("/health/db").status_code == 200
        assert client.get("/").json()["service"] == "NoteQ API"
