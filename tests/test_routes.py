"""
HTTP-level tests for the LinkedIn connector routes.
"""

from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from auth.dependencies import db_session
from auth.jwt import create_token
from connectors import routes
from connectors.linkedin import LinkedInConnector
from connectors.state import create_state, decode_state

from conftest import FakeConnectionStore, FakeNonceStore


def _linkedin_transport() -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/oauth/v2/accessToken":
            return httpx.Response(200, json={"access_token": "T", "expires_in": 3600})
        return httpx.Response(200, json={"sub": "ext-123"})

    return httpx.MockTransport(handler)


def _query(location: str) -> dict:
    return {k: v[0] for k, v in parse_qs(location.split("?", 1)[1]).items()}


@pytest.fixture
def session():
    sess = MagicMock()
    sess.commit = AsyncMock()
    return sess


@pytest.fixture
def client(settings, session):
    app = FastAPI()
    app.include_router(routes.router, prefix="/api/v1/connectors/linkedin")

    connector = LinkedInConnector(settings, transport=_linkedin_transport())
    app.dependency_overrides[routes.get_connector] = lambda: connector

    async def _session():
        yield session

    app.dependency_overrides[db_session] = _session
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def stores(monkeypatch):
    store, nonces = FakeConnectionStore(), FakeNonceStore()
    monkeypatch.setattr(routes, "SqlConnectionStore", lambda _session: store)
    monkeypatch.setattr(routes, "SqlNonceStore", lambda _session: nonces)
    return store, nonces


def _auth(user_id: str = "U") -> dict:
    return {"Authorization": f"Bearer {create_token(user_id)}"}


class TestAuthUrl:
    def test_returns_url_for_caller(self, client):
        resp = client.get("/api/v1/connectors/linkedin/auth-url", headers=_auth("U"))

        assert resp.status_code == 200
        body = resp.json()
        assert body["provider"] == "linkedin"
        state = parse_qs(urlparse(body["auth_url"]).query)["state"][0]
        assert decode_state(state).user_id == "U"

    def test_requires_bearer(self, client):
        resp = client.get("/api/v1/connectors/linkedin/auth-url")
        assert resp.status_code in (401, 403)

    def test_not_configured(self, client, settings):
        blank = LinkedInConnector(settings.model_copy(update={"linkedin_client_id": ""}))
        client.app.dependency_overrides[routes.get_connector] = lambda: blank

        resp = client.get("/api/v1/connectors/linkedin/auth-url", headers=_auth())
        assert resp.status_code == 503

    def test_connect_redirects_to_linkedin(self, client, settings):
        resp = client.get("/api/v1/connectors/linkedin/connect", headers=_auth())

        assert resp.status_code == 307
        assert resp.headers["location"].startswith(settings.linkedin_auth_url)


class TestCallback:
    def test_success(self, client, stores):
        store, _ = stores
        resp = client.get(
            "/api/v1/connectors/linkedin/callback",
            params={"code": "abc", "state": create_state("U")},
        )

        assert resp.status_code == 307
        assert _query(resp.headers["location"]) == {"success": "true"}
        assert store.saved[0]["user_id"] == "U"
        assert store.saved[0]["external_profile_id"] == "ext-123"

    def test_provider_error(self, client, stores):
        store, _ = stores
        resp = client.get(
            "/api/v1/connectors/linkedin/callback",
            params={"error": "access_denied", "error_description": "user cancelled"},
        )

        assert _query(resp.headers["location"]) == {"error": "access_denied", "msg": "user cancelled"}
        assert store.saved == []

    def test_missing_code(self, client, stores):
        resp = client.get("/api/v1/connectors/linkedin/callback")
        assert _query(resp.headers["location"]) == {"error": "missing_code"}

    def test_session_user_mismatch(self, client, stores):
        resp = client.get(
            "/api/v1/connectors/linkedin/callback",
            params={"code": "abc", "state": create_state("U")},
            headers=_auth("someone-else"),
        )
        assert _query(resp.headers["location"]) == {
            "error": "state_mismatch",
            "msg": "State was issued to a different user",
        }


    def test_invalid_bearer_falls_back_to_state(self, client, stores):
        store, _ = stores
        resp = client.get(
            "/api/v1/connectors/linkedin/callback",
            params={"code": "abc", "state": create_state("U")},
            headers={"Authorization": "Bearer not-a-token"},
        )

        assert resp.status_code == 307
        assert _query(resp.headers["location"]) == {"success": "true"}
        assert store.saved[0]["user_id"] == "U"


class TestConnection:
    def test_status(self, client, monkeypatch):
        monkeypatch.setattr(
            routes, "get_connection", AsyncMock(return_value={"provider": "linkedin", "connected": True})
        )
        resp = client.get("/api/v1/connectors/linkedin/connection", headers=_auth())
        assert resp.status_code == 200
        assert resp.json()["connected"] is True

    def test_status_missing(self, client, monkeypatch):
        monkeypatch.setattr(routes, "get_connection", AsyncMock(return_value=None))
        resp = client.get("/api/v1/connectors/linkedin/connection", headers=_auth())
        assert resp.status_code == 404

    def test_disconnect(self, client, monkeypatch, session):
        fake_disconnect = AsyncMock(return_value=True)
        monkeypatch.setattr(routes, "disconnect", fake_disconnect)

        resp = client.delete("/api/v1/connectors/linkedin/connection", headers=_auth("U"))

        assert resp.status_code == 200
        assert resp.json()["status"] == "disconnected"
        assert fake_disconnect.await_args.args[0] == "U"
        session.commit.assert_awaited_once()

    def test_disconnect_missing(self, client, monkeypatch):
        monkeypatch.setattr(routes, "disconnect", AsyncMock(return_value=False))
        resp = client.delete("/api/v1/connectors/linkedin/connection", headers=_auth())
        assert resp.status_code == 404
