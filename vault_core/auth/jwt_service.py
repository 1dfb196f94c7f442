"""
JWT service for access token generation and validation.

Tokens are stateless HS256 bearer tokens. Registered users carry their
user_id as ``sub``; guest sessions carry a ``guest:`` prefixed id and the
``guest`` claim, and never have a row in the users table.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import TypedDict

import jwt

from vault_core.config import Settings, settings as default_settings

GUEST_PREFIX = "guest:"


class TokenPayload(TypedDict):
    """Decoded JWT payload."""

    sub: str  # user_id
    email: str | None
    guest: bool
    iat: int
    exp: int


class JwtService:
    """Service for JWT token generation and validation."""

    ALGORITHM = "HS256"

    def __init__(self, secret: str | None = None, settings: Settings | None = None):
        """Initialize the JWT service.

        Args:
            secret: JWT signing secret. Defaults to settings.JWT_SECRET.
            settings: Settings providing the secret and TTL.
        """
        cfg = settings or default_settings
        self.secret = secret or cfg.JWT_SECRET
        self.access_ttl = cfg.JWT_ACCESS_TTL

        if not self.secret:
            raise ValueError("JWT_SECRET must be configured")

    def create_access_token(
        self,
        user_id: str,
        email: str | None,
        guest: bool = False,
    ) -> str:
        """Create an access token.

        Args:
            user_id: The user's id (or guest session id).
            email: User's email, None for guests.
            guest: Whether this is an ephemeral guest session.

        Returns:
            Encoded JWT string.
        """
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "email": email,
            "guest": guest,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=self.access_ttl)).timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm=self.ALGORITHM)

    def create_guest_token(self) -> tuple[str, str]:
        """Create a token for a fresh guest session.

        Returns:
            Tuple of (guest_id, token).
        """
        guest_id = f"{GUEST_PREFIX}{uuid.uuid4()}"
        return guest_id, self.create_access_token(guest_id, email=None, guest=True)

    def verify_access_token(self, token: str) -> TokenPayload | None:
        """Verify and decode an access token.

        Args:
            token: The JWT string.

        Returns:
            Decoded payload if valid, None otherwise.
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.ALGORITHM])
            return TokenPayload(
                sub=payload["sub"],
                email=payload.get("email"),
                guest=bool(payload.get("guest", False)),
                iat=payload["iat"],
                exp=payload["exp"],
            )
        except jwt.ExpiredSignatureError:
            return None
        except (jwt.InvalidTokenError, KeyError):
            return None
