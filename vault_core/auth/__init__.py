"""
Auth module for docvault.

Provides user authentication, JWT tokens, middleware, and request
dependencies.
"""

from vault_core.auth.dependencies import (
    get_auth_context,
    get_current_user_id,
    require_registered_user,
)
from vault_core.auth.jwt_service import JwtService
from vault_core.auth.middleware import AuthMiddleware
from vault_core.auth.user_service import UserService

__all__ = [
    "UserService",
    "JwtService",
    "AuthMiddleware",
    "get_auth_context",
    "get_current_user_id",
    "require_registered_user",
]
