"""
FastAPI dependencies for authentication.

Provides dependency injection for extracting the authenticated user
from requests.
"""

from __future__ import annotations

from fastapi import Depends, Request

from vault_core.domain.auth import AuthContext
from vault_core.domain.exceptions import AuthenticationError, ValidationError


def get_auth_context(request: Request) -> AuthContext:
    """Get auth context from request state.

    Raises:
        AuthenticationError: 401 if not authenticated.
    """
    auth = getattr(request.state, "auth", None)
    if not auth:
        raise AuthenticationError("Not authorized, no token")
    return auth


def get_current_user_id(auth: AuthContext = Depends(get_auth_context)) -> str:
    """The canonical way to get the owning user id in routes.

    The id comes from the verified token, never from client input.
    """
    return auth.user_id


def require_registered_user(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """Reject guest sessions for endpoints that need a users row."""
    if auth.is_guest:
        raise ValidationError("This action requires a registered account")
    return auth
