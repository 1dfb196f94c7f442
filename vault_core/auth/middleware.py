"""
FastAPI auth middleware.

Authenticates requests via an Authorization Bearer token and attaches
AuthContext to request.state.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from vault_core.domain.auth import AuthContext, Principal

# Endpoints that don't require authentication
PUBLIC_PATHS = frozenset(
    {
        "/health",
        "/docs",
        "/openapi.json",
        "/redoc",
        "/auth/signup",
        "/auth/login",
        "/auth/guest",
    }
)


def _unauthorized(message: str) -> JSONResponse:
    return JSONResponse(status_code=401, content={"success": False, "message": message})


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware to authenticate requests via JWT.

    All requests to non-public paths must include a valid bearer token.
    The derived user identity is attached to request.state.auth as an
    AuthContext.
    """

    def __init__(self, app):
        super().__init__(app)
        self._jwt_service = None  # Lazy init so JWT_SECRET is read after settings load

    @property
    def jwt_service(self):
        """Lazily initialize JWT service to avoid import-time issues."""
        if self._jwt_service is None:
            from vault_core.auth.jwt_service import JwtService
            from vault_core.config import settings

            if settings.JWT_SECRET:
                self._jwt_service = JwtService()
        return self._jwt_service

    def _try_bearer_auth(self, request: Request, request_id: str) -> AuthContext | None:
        """Try to authenticate via Bearer JWT token."""
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return None

        if not self.jwt_service:
            logger.warning(f"[{request_id}] JWT service not configured")
            return None

        token = auth_header[7:]  # Strip "Bearer "

        try:
            payload = self.jwt_service.verify_access_token(token)
        except Exception as e:
            logger.error(f"[{request_id}] JWT verification error: {e}")
            return None

        if not payload:
            return None

        return AuthContext(
            principal=Principal(
                user_id=payload["sub"],
                email=payload["email"],
                is_guest=payload["guest"],
            ),
            authenticated_at=datetime.now(timezone.utc),
            request_id=request_id,
        )

    async def dispatch(self, request: Request, call_next):
        """Process incoming request for authentication."""
        # Generate request_id for correlation
        request_id = request.headers.get("X-Request-Id", str(uuid.uuid4()))
        request.state.request_id = request_id

        path = request.url.path.rstrip("/") or "/"

        if path in PUBLIC_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        auth_context = self._try_bearer_auth(request, request_id)

        if not auth_context:
            if request.headers.get("Authorization"):
                logger.warning(f"[{request_id}] Invalid Bearer token for {path}")
                return _unauthorized("Not authorized, token failed")
            logger.warning(f"[{request_id}] Missing auth credentials for {path}")
            return _unauthorized("Not authorized, no token")

        request.state.auth = auth_context

        logger.debug(
            f"[{request_id}] Authenticated: user={auth_context.user_id} "
            f"guest={auth_context.is_guest}"
        )

        return await call_next(request)
