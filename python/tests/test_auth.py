"""Tests for authentication and user bootstrap.

Tests cover:
- Missing, malformed, expired and forged tokens are rejected with 401
- The session cookie is accepted when no bearer header is sent
- /auth/me and /auth/logout serve anonymous callers
- First sign-in creates the user; later sign-ins refresh the profile
- The configured owner identity is bootstrapped as admin
- The internal header is enforced when required
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from codevault.app import create_app
from codevault.auth.middleware import INTERNAL_HEADER, AuthMiddleware
from codevault.config import clear_settings_cache
from codevault.db.models import User
from codevault.middleware import add_request_id_middleware
from codevault.services.bootstrap import ensure_user, get_user
from tests.helpers import (
    auth_headers,
    create_test_open_id,
    mint_expired_token,
    mint_test_token,
    mint_token_with_bad_signature,
)
from tests.support.mock_verifier import MockJwtVerifier


class TestTokenRejection:
    """Protected routes require a valid token."""

    def test_missing_token(self, client):
        response = client.get("/projects")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "E_UNAUTHENTICATED"

    def test_bad_header_format(self, client):
        response = client.get("/projects", headers={"Authorization": "Token abc"})

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid authorization header format"

    def test_expired_token(self, client):
        token = mint_expired_token(create_test_open_id())

        response = client.get("/projects", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_bad_signature(self, client):
        token = mint_token_with_bad_signature(create_test_open_id())

        response = client.get("/projects", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_wrong_audience(self, client):
        token = mint_test_token(create_test_open_id(), audience="someone-else")

        response = client.get("/projects", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_health_is_public(self, client):
        assert client.get("/health").status_code == 200


class TestSessionCookie:
    """The session cookie is an alternative to the bearer header."""

    def test_cookie_token_accepted(self, client):
        token = mint_test_token(create_test_open_id())

        response = client.get("/projects", headers={"Cookie": f"codevault_session={token}"})

        assert response.status_code == 200
        assert response.json() == {"data": []}

    def test_bearer_header_wins_over_cookie(self, client):
        open_id = create_test_open_id()
        headers = {**auth_headers(open_id), "Cookie": "codevault_session=garbage"}

        response = client.get("/auth/me", headers=headers)

        assert response.json()["data"]["open_id"] == open_id


class TestAuthRoutes:
    """/auth/me and /auth/logout."""

    def test_me_anonymous_returns_null(self, client):
        response = client.get("/auth/me")

        assert response.status_code == 200
        assert response.json() == {"data": None}

    def test_me_with_invalid_token_returns_null(self, client):
        token = mint_expired_token(create_test_open_id())

        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.json() == {"data": None}

    def test_me_returns_profile(self, client):
        open_id = create_test_open_id()

        response = client.get(
            "/auth/me",
            headers=auth_headers(
                open_id, name="Ada", email="ada@example.com", login_method="github"
            ),
        )

        data = response.json()["data"]
        assert data["open_id"] == open_id
        assert data["name"] == "Ada"
        assert data["email"] == "ada@example.com"
        assert data["login_method"] == "github"
        assert data["role"] == "user"

    def test_logout_clears_cookie(self, client):
        response = client.post("/auth/logout")

        assert response.status_code == 200
        assert response.json() == {"data": {"success": True}}
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith("codevault_session=")
        assert "Max-Age=0" in set_cookie
        assert "HttpOnly" in set_cookie


class TestEnsureUser:
    """User bootstrap on sign-in."""

    def test_idempotent(self, db_session):
        open_id = create_test_open_id()

        first = ensure_user(db_session, open_id, name="Ada")
        second = ensure_user(db_session, open_id)

        assert first.user_id == second.user_id
        count = db_session.scalar(
            select(func.count()).select_from(User).where(User.open_id == open_id)
        )
        assert count == 1

    def test_missing_profile_fields_keep_stored_values(self, db_session):
        open_id = create_test_open_id()
        ensure_user(db_session, open_id, name="Ada", email="ada@example.com")

        refreshed = ensure_user(db_session, open_id, name="Ada L.")

        assert refreshed.name == "Ada L."
        assert refreshed.email == "ada@example.com"

    def test_sign_in_refreshes_last_signed_in(self, db_session):
        open_id = create_test_open_id()
        user_id = ensure_user(db_session, open_id).user_id
        before = get_user(db_session, user_id).last_signed_in
        db_session.expire_all()

        ensure_user(db_session, open_id)

        db_session.expire_all()
        assert get_user(db_session, user_id).last_signed_in >= before

    def test_owner_is_admin(self, db_session, monkeypatch):
        monkeypatch.setenv("OWNER_OPEN_ID", "owner-identity")
        clear_settings_cache()

        owner = ensure_user(db_session, "owner-identity")
        other = ensure_user(db_session, create_test_open_id())

        assert owner.role == "admin"
        assert other.role == "user"

    def test_owner_admin_over_http(self, client, monkeypatch):
        monkeypatch.setenv("OWNER_OPEN_ID", "owner-identity")
        clear_settings_cache()

        response = client.get("/auth/me", headers=auth_headers("owner-identity"))

        assert response.json()["data"]["role"] == "admin"


class TestInternalHeader:
    """Deployments behind the web tier require the internal secret header."""

    @pytest.fixture
    def internal_client(self, session_factory, storage, completion):
        app = create_app(
            skip_auth_middleware=True,
            session_factory=session_factory,
            storage_client=storage,
            completion_service=completion,
        )
        app.add_middleware(
            AuthMiddleware,
            verifier=MockJwtVerifier(),
            requires_internal_header=True,
            internal_secret="s3cret",
        )
        add_request_id_middleware(app, log_requests=False)
        with TestClient(app) as client:
            yield client

    def test_missing_header_forbidden(self, internal_client):
        response = internal_client.get("/projects", headers=auth_headers(create_test_open_id()))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "E_INTERNAL_ONLY"

    def test_wrong_header_forbidden(self, internal_client):
        headers = {**auth_headers(create_test_open_id()), INTERNAL_HEADER: "nope"}

        assert internal_client.get("/projects", headers=headers).status_code == 403

    def test_health_skips_header_check(self, internal_client):
        assert internal_client.get("/health").status_code == 200

    def test_correct_header_passes(self, internal_client):
        headers = {**auth_headers(create_test_open_id()), INTERNAL_HEADER: "s3cret"}

        # No bootstrap callback here, so the viewer is user 0 with no rows
        response = internal_client.get("/projects", headers=headers)

        assert response.status_code == 200
        assert response.json() == {"data": []}
