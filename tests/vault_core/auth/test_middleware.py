"""Unit tests for AuthMiddleware and the auth dependencies."""

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from vault_core.auth import (
    AuthMiddleware,
    JwtService,
    get_current_user_id,
    require_registered_user,
)
from vault_core.domain.exceptions import VaultError


@pytest.fixture
def test_client():
    app = FastAPI()
    app.add_middleware(AuthMiddleware)

    @app.exception_handler(VaultError)
    async def handler(request, exc):
        from fastapi.responses import JSONResponse

        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.get("/whoami")
    def whoami(user_id: str = Depends(get_current_user_id)):
        return {"user_id": user_id}

    @app.get("/registered-only")
    def registered_only(auth=Depends(require_registered_user)):
        return {"user_id": auth.user_id}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return TestClient(app)


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def test_public_path_needs_no_token(test_client):
    assert test_client.get("/health").status_code == 200


def test_user_id_comes_from_token(test_client):
    token = JwtService().create_access_token("user-42", email="a@b.co")

    response = test_client.get("/whoami", headers=bearer(token))

    assert response.json() == {"user_id": "user-42"}


def test_missing_token(test_client):
    response = test_client.get("/whoami")

    assert response.status_code == 401
    assert response.json()["message"] == "Not authorized, no token"


def test_malformed_token(test_client):
    response = test_client.get("/whoami", headers=bearer("garbage"))

    assert response.status_code == 401
    assert response.json()["message"] == "Not authorized, token failed"


def test_guest_rejected_from_registered_only(test_client):
    _, token = JwtService().create_guest_token()

    assert test_client.get("/whoami", headers=bearer(token)).status_code == 200
    assert test_client.get("/registered-only", headers=bearer(token)).status_code == 400
