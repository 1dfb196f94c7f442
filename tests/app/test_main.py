"""
Unit tests for the FastAPI application.

These tests verify app wiring: health, auth enforcement, the error
envelope and CORS.
"""

from unittest.mock import MagicMock

import psycopg
import pytest
from fastapi.testclient import TestClient

from app.documents.dependencies import get_document_index
from vault_core.auth.jwt_service import JwtService


class TestHealth:
    """Tests for the health endpoint."""

    def test_health_endpoint_returns_ok(self, test_client):
        """The /health endpoint should return status ok."""
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_health_reports_storage_mode(self, test_client):
        """Without MinIO credentials the app runs on local storage."""
        response = test_client.get("/health")

        assert response.json()["storage"] == "local"


class TestAuthEnforcement:
    @pytest.mark.parametrize(
        "path",
        ["/api/documents", "/api/activities", "/api/stats", "/api/user/profile", "/uploads/u/f.pdf"],
    )
    def test_protected_paths_require_token(self, test_client, path):
        response = test_client.get(path)

        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_expired_token_rejected(self, test_client):
        expired = JwtService()
        expired.access_ttl = -10
        stale = expired.create_access_token("user-1", email=None)

        response = test_client.get("/api/stats", headers={"Authorization": f"Bearer {stale}"})

        assert response.status_code == 401
        assert response.json()["message"] == "Not authorized, token failed"


class TestErrorEnvelope:
    def test_database_outage_is_503(self, test_client):
        from app.main import app

        index = MagicMock()
        index.list_for_user.side_effect = psycopg.OperationalError("connection refused")
        app.dependency_overrides[get_document_index] = lambda: index
        token = JwtService().create_access_token("user-1", email=None)

        try:
            response = test_client.get("/api/documents", headers={"Authorization": f"Bearer {token}"})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 503
        assert response.json() == {"success": False, "message": "Database temporarily unavailable"}

    def test_unknown_route_is_404(self, test_client):
        token = JwtService().create_access_token("user-1", email=None)

        response = test_client.get("/api/nothing", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 404


class TestCORS:
    """Tests for CORS configuration."""

    def test_cors_allows_localhost_origin(self, test_client):
        """CORS should allow requests from localhost development servers."""
        response = test_client.options(
            "/health",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "GET",
            },
        )

        assert "access-control-allow-origin" in response.headers


class TestOpenAPI:
    def test_openapi_schema_available(self, test_client):
        response = test_client.get("/openapi.json")

        assert response.status_code == 200
        assert "/api/documents" in response.json()["paths"]


# --- Fixtures ---


@pytest.fixture
def test_client():
    """
    Provides a TestClient for the FastAPI app.
    """
    from app.main import app

    return TestClient(app)
