"""
Unit tests for the authentication endpoints.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.auth.routes import get_jwt_service, get_user_service
from vault_core.auth.jwt_service import JwtService
from vault_core.domain.exceptions import ConflictError, ValidationError
from vault_core.domain.models import UserProfile
from vault_core.infrastructure.rate_limiter import limiter


def make_profile(**overrides):
    fields = {
        "id": "user-1",
        "name": "Ada",
        "email": "ada@example.com",
        "storage_used": 0,
        "storage_limit": 1073741824,
        "created_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
    }
    fields.update(overrides)
    return UserProfile(**fields)


@pytest.fixture
def user_service():
    service = MagicMock()
    service.register.return_value = make_profile()
    service.authenticate.return_value = make_profile()
    service.get_by_id.return_value = make_profile()
    service.guest_profile.side_effect = lambda guest_id: make_profile(
        id=guest_id, name="Guest", email="", storage_limit=104857600, is_guest=True
    )
    return service


@pytest.fixture
def test_client(user_service):
    from app.main import app

    app.dependency_overrides[get_user_service] = lambda: user_service
    app.dependency_overrides[get_jwt_service] = lambda: JwtService()
    limiter.reset()

    yield TestClient(app)

    app.dependency_overrides.clear()


class TestSignup:
    def test_signup_returns_token_and_profile(self, test_client, user_service):
        response = test_client.post(
            "/auth/signup",
            json={"name": "Ada", "email": "ada@example.com", "password": "secret1"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["user"]["storageLimit"] == 1073741824
        assert "passwordHash" not in body["user"]
        assert JwtService().verify_access_token(body["token"])["sub"] == "user-1"
        user_service.register.assert_called_once_with(
            name="Ada", email="ada@example.com", password="secret1"
        )

    def test_duplicate_email_is_400(self, test_client, user_service):
        user_service.register.side_effect = ConflictError("User with this email already exists")

        response = test_client.post(
            "/auth/signup",
            json={"name": "Ada", "email": "ada@example.com", "password": "secret1"},
        )

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "User with this email already exists",
        }

    def test_short_password_is_400(self, test_client, user_service):
        user_service.register.side_effect = ValidationError("Password must be at least 6 characters")

        response = test_client.post(
            "/auth/signup",
            json={"name": "Ada", "email": "ada@example.com", "password": "abc"},
        )

        assert response.status_code == 400

    def test_missing_fields_is_400(self, test_client):
        response = test_client.post("/auth/signup", json={"email": "ada@example.com"})

        assert response.status_code == 400
        assert response.json()["success"] is False


class TestLogin:
    def test_login_success(self, test_client):
        response = test_client.post(
            "/auth/login", json={"email": "ada@example.com", "password": "secret1"}
        )

        assert response.status_code == 200
        assert response.json()["user"]["email"] == "ada@example.com"

    def test_wrong_password_is_401(self, test_client, user_service):
        user_service.authenticate.return_value = None

        response = test_client.post(
            "/auth/login", json={"email": "ada@example.com", "password": "nope"}
        )

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid credentials"}


class TestGuestAndMe:
    def test_guest_session_then_me(self, test_client, user_service):
        guest = test_client.post("/auth/guest").json()

        assert guest["user"]["isGuest"] is True
        assert guest["user"]["id"].startswith("guest:")

        me = test_client.get("/auth/me", headers={"Authorization": f"Bearer {guest['token']}"})

        assert me.status_code == 200
        assert me.json()["data"]["isGuest"] is True
        user_service.get_by_id.assert_not_called()

    def test_me_for_registered_user(self, test_client):
        token = JwtService().create_access_token("user-1", email="ada@example.com")

        response = test_client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.json()["data"]["id"] == "user-1"

    def test_me_requires_token(self, test_client):
        assert test_client.get("/auth/me").status_code == 401


class TestProfile:
    def test_update_profile(self, test_client, user_service):
        user_service.update_profile.return_value = make_profile(name="Ada L.")
        token = JwtService().create_access_token("user-1", email="ada@example.com")

        response = test_client.put(
            "/api/user/profile",
            json={"name": "Ada L."},
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Ada L."

    def test_profile_rejects_storage_fields(self, test_client):
        token = JwtService().create_access_token("user-1", email="ada@example.com")

        response = test_client.put(
            "/api/user/profile",
            json={"storageLimit": 999999999999},
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 400

    def test_guest_cannot_update_profile(self, test_client):
        _, token = JwtService().create_guest_token()

        response = test_client.put(
            "/api/user/profile",
            json={"name": "Me"},
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 400
