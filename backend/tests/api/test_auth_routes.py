"""Tests for the session and sign-in endpoints."""

from unittest.mock import MagicMock

import jwt
from fastapi.testclient import TestClient

from api.dependencies import get_factory
from providers.base import DatabaseClient, ProviderName
from providers.factory import DatabaseClientFactory
from providers.supabase import SupabaseAuthClient, SupabaseDataClient
from shared.config import get_settings
from tests.conftest import (
    InMemoryDataClient,
    InMemoryStorageClient,
    create_session_cookie,
    create_test_token,
)

COOKIE = "session"


class TestSessionEndpoints:
    def test_create_session_sets_cookie(self, client):
        response = client.post("/api/auth/session", json={"idToken": create_test_token()})

        assert response.status_code == 200
        assert response.json()["status"] == "success"
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith(f"{get_settings().session_cookie_name}=")
        assert "HttpOnly" in set_cookie
        assert "Max-Age=432000" in set_cookie

    def test_create_session_requires_token(self, client):
        response = client.post("/api/auth/session", json={})

        assert response.status_code == 400
        assert response.json() == {
            "status": "error",
            "message": "ID token is required.",
            "code": "MISSING_ID_TOKEN",
            "details": {},
        }

    def test_get_session_without_cookie(self, client):
        response = client.get("/api/auth/session")

        assert response.status_code == 401
        assert response.json()["message"] == "No session found"

    def test_get_session_with_cookie(self, client):
        client.cookies.update(create_session_cookie("user-42", "ada@example.com"))

        response = client.get("/api/auth/session")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "success"
        assert data["user"] == {"id": "user-42", "email": "ada@example.com"}
        assert data["expiresAt"] - data["issuedAt"] == 432000 * 1000

    def test_invalid_cookie_is_cleared(self, client):
        client.cookies.set(COOKIE, "garbage")

        response = client.get("/api/auth/session")

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired session"
        assert 'session=""' in response.headers["set-cookie"] or "Max-Age=0" in response.headers["set-cookie"]

    def test_delete_session(self, client):
        client.cookies.update(create_session_cookie())

        response = client.delete("/api/auth/session")

        assert response.status_code == 200
        assert "Max-Age=0" in response.headers["set-cookie"]


class TestSignInFlow:
    def test_sign_up_then_sign_in(self, client):
        response = client.post(
            "/api/auth/sign-up",
            json={"email": "ada@example.com", "password": "secret123", "name": "Ada"},
        )
        assert response.status_code == 201
        assert response.json()["data"]["name"] == "Ada"
        assert "set-cookie" in response.headers

        response = client.post("/api/auth/sign-in", json={"email": "ada@example.com", "password": "secret123"})
        assert response.status_code == 200
        assert response.json()["data"]["email"] == "ada@example.com"

        me = client.get("/api/users/me")
        assert me.status_code == 200
        assert me.json()["name"] == "Ada"

    def test_bad_credentials(self, client):
        response = client.post("/api/auth/sign-in", json={"email": "nobody@example.com", "password": "nope"})

        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_CREDENTIALS"
        assert "set-cookie" not in response.headers

    def test_sign_up_validates_password(self, client):
        response = client.post("/api/auth/sign-up", json={"email": "ada@example.com", "password": "123"})
        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_sign_out_clears_cookie(self, client):
        client.cookies.update(create_session_cookie())

        response = client.post("/api/auth/sign-out")

        assert response.status_code == 200
        assert "Max-Age=0" in response.headers["set-cookie"]


class TestSignOut:
    def test_without_session_leaves_provider_alone(self, client, factory):
        response = client.post("/api/auth/sign-out")

        assert response.status_code == 200
        assert factory.get().auth.signed_out == []

    def test_with_invalid_session_leaves_provider_alone(self, client, factory):
        client.cookies.update({COOKIE: "not-a-session"})

        client.post("/api/auth/sign-out")

        assert factory.get().auth.signed_out == []

    def test_ends_only_the_callers_session(self, client, factory):
        client.cookies.update(create_session_cookie("user-1", "a@example.com"))

        client.post("/api/auth/sign-out")

        signed_out = factory.get().auth.signed_out
        assert len(signed_out) == 1
        assert jwt.decode(signed_out[0], options={"verify_signature": False})["sub"] == "user-1"

    def test_anonymous_caller_cannot_end_someone_elses_session(self, app):
        gotrue = MagicMock()
        signed_in = gotrue.auth.sign_in_with_password.return_value
        signed_in.user.id = "alice-id"
        signed_in.user.email = "alice@example.com"
        signed_in.user.user_metadata = {}
        signed_in.session.access_token = create_test_token("alice-id", "alice@example.com")
        profiles = MagicMock(spec=SupabaseDataClient)
        profiles.fetch_user_row.return_value = {"id": "alice-id", "email": "alice@example.com"}
        auth = SupabaseAuthClient(lambda: gotrue, profiles)

        def build() -> DatabaseClient:
            return DatabaseClient(
                provider=ProviderName.SUPABASE,
                auth=auth,
                data=InMemoryDataClient(),
                storage=InMemoryStorageClient(),
            )

        supabase_only = DatabaseClientFactory(
            flag_reader=lambda: True,
            builders={ProviderName.SUPABASE: build},
        )
        app.dependency_overrides[get_factory] = lambda: supabase_only

        alice = TestClient(app)
        response = alice.post("/api/auth/sign-in", json={"email": "alice@example.com", "password": "secret"})
        assert response.status_code == 200

        response = TestClient(app).post("/api/auth/sign-out")

        assert response.status_code == 200
        gotrue.auth.admin.sign_out.assert_not_called()
        gotrue.auth.sign_out.assert_not_called()


class TestProtectedRoutes:
    def test_requires_session(self, client):
        response = client.get("/api/agreements")

        assert response.status_code == 401
        assert response.json()["code"] == "MISSING_SESSION"

    def test_accepts_bearer_session(self, client, auth_headers):
        response = client.get("/api/agreements", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == []
