"""
Authentication domain models.

This module defines the core data structures for auth:
- Principal: Authenticated identity (from a bearer token)
- AuthContext: Request-scoped auth context
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Principal:
    """Authenticated identity derived from a JWT."""

    user_id: str
    email: str | None
    is_guest: bool = False


@dataclass
class AuthContext:
    """Request-scoped authentication context.

    Attached to request.state.auth by the auth middleware.
    """

    principal: Principal
    authenticated_at: datetime
    request_id: str

    @property
    def user_id(self) -> str:
        return self.principal.user_id

    @property
    def is_guest(self) -> bool:
        return self.principal.is_guest
