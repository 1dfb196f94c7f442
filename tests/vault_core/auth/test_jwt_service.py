"""Unit tests for JwtService."""

from __future__ import annotations

import jwt
import pytest

from vault_core.auth.jwt_service import GUEST_PREFIX, JwtService

SECRET = "test-secret-key-256-bits-long-ok"


class TestAccessToken:
    """Tests for access token generation and verification."""

    def test_create_access_token_returns_string(self):
        """Access token should be a JWT string."""
        service = JwtService(secret=SECRET)
        token = service.create_access_token(user_id="user-123", email="test@example.com")

        assert isinstance(token, str)
        # JWT has 3 parts separated by dots
        assert token.count(".") == 2

    def test_verify_access_token_returns_payload(self):
        service = JwtService(secret=SECRET)
        token = service.create_access_token(user_id="user-123", email="test@example.com")

        payload = service.verify_access_token(token)

        assert payload is not None
        assert payload["sub"] == "user-123"
        assert payload["email"] == "test@example.com"
        assert payload["guest"] is False
        assert payload["exp"] - payload["iat"] == service.access_ttl

    def test_verify_access_token_invalid_returns_none(self):
        service = JwtService(secret=SECRET)

        assert service.verify_access_token("invalid.token.here") is None

    def test_verify_access_token_wrong_secret_returns_none(self):
        """Token signed with different secret should return None."""
        token = JwtService(secret="secret-one-long-enough-for-256").create_access_token("u", None)

        assert JwtService(secret="secret-two-long-enough-for-256").verify_access_token(token) is None

    def test_expired_token_returns_none(self):
        service = JwtService(secret=SECRET)
        service.access_ttl = -1

        assert service.verify_access_token(service.create_access_token("u", None)) is None

    def test_token_without_sub_returns_none(self):
        token = jwt.encode({"iat": 0, "exp": 9999999999}, SECRET, algorithm="HS256")

        assert JwtService(secret=SECRET).verify_access_token(token) is None


class TestGuestToken:
    def test_guest_token_carries_prefixed_id_and_claim(self):
        service = JwtService(secret=SECRET)

        guest_id, token = service.create_guest_token()
        payload = service.verify_access_token(token)

        assert guest_id.startswith(GUEST_PREFIX)
        assert payload["sub"] == guest_id
        assert payload["guest"] is True
        assert payload["email"] is None

    def test_each_guest_session_is_distinct(self):
        service = JwtService(secret=SECRET)

        assert service.create_guest_token()[0] != service.create_guest_token()[0]


def test_missing_secret_raises():
    from vault_core.config import Settings

    with pytest.raises(ValueError):
        JwtService(settings=Settings(JWT_SECRET=""))
