"""
User service for email/password authentication.

Handles user registration, authentication and profile management.
Passwords are hashed using bcrypt with cost factor 12.
"""

from __future__ import annotations

import re
import uuid

import bcrypt
import psycopg
from loguru import logger
from psycopg.rows import dict_row

from vault_core.config import Settings, settings as default_settings
from vault_core.domain.exceptions import ConflictError, ValidationError
from vault_core.domain.models import UserProfile
from vault_core.infrastructure.postgres import get_db_connection

_PROFILE_COLUMNS = """
    user_id, name, email, avatar, storage_used, storage_limit, is_guest, created_at
"""


def _profile_from_row(row: dict) -> UserProfile:
    return UserProfile(
        id=str(row["user_id"]),
        name=row["name"],
        email=row["email"],
        avatar=row["avatar"],
        storage_used=row["storage_used"],
        storage_limit=row["storage_limit"],
        is_guest=row["is_guest"],
        created_at=row["created_at"],
    )


class UserService:
    """Service for user authentication and management."""

    BCRYPT_COST = 12
    MIN_PASSWORD_LENGTH = 6
    EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or default_settings

    def _hash_password(self, password: str) -> str:
        """Hash a password using bcrypt."""
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(self.BCRYPT_COST)).decode()

    def _verify_password(self, password: str, password_hash: str) -> bool:
        """Verify a password against its bcrypt hash."""
        return bcrypt.checkpw(password.encode(), password_hash.encode())

    def _validate_email(self, email: str) -> bool:
        return bool(self.EMAIL_PATTERN.match(email))

    def _validate_password(self, password: str) -> tuple[bool, str | None]:
        """Validate password strength.

        Returns:
            Tuple of (is_valid, error_message).
        """
        if len(password) < self.MIN_PASSWORD_LENGTH:
            return False, f"Password must be at least {self.MIN_PASSWORD_LENGTH} characters"
        return True, None

    def register(self, name: str, email: str, password: str) -> UserProfile:
        """Register a new user with the default storage limit.

        Args:
            name: Display name.
            email: User's email address (stored lowercased).
            password: Plain text password (will be hashed).

        Returns:
            UserProfile of the new user.

        Raises:
            ValidationError: If name/email/password are invalid.
            ConflictError: If the email is already registered.
        """
        name = name.strip()
        email = email.strip().lower()
        if not name:
            raise ValidationError("Name is required")
        if not self._validate_email(email):
            raise ValidationError("Please provide a valid email")

        is_valid, error = self._validate_password(password)
        if not is_valid:
            raise ValidationError(error)

        password_hash = self._hash_password(password)
        user_id = str(uuid.uuid4())

        with get_db_connection(self.settings) as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute("SELECT 1 FROM users WHERE email = %s", (email,))
                if cur.fetchone():
                    raise ConflictError("User with this email already exists")

                try:
                    cur.execute(
                        f"""
                        INSERT INTO users (user_id, name, email, password_hash, storage_limit)
                        VALUES (%s, %s, %s, %s, %s)
                        RETURNING {_PROFILE_COLUMNS}
                        """,
                        (user_id, name, email, password_hash, self.settings.DEFAULT_STORAGE_LIMIT),
                    )
                except psycopg.errors.UniqueViolation:
                    # Lost a race with a concurrent signup for the same email
                    raise ConflictError("User with this email already exists")
                row = cur.fetchone()
                conn.commit()

        logger.info(f"New user registered: {email}")
        return _profile_from_row(row)

    def authenticate(self, email: str, password: str) -> UserProfile | None:
        """Authenticate a user by email and password.

        Returns:
            UserProfile if authentication succeeds, None otherwise.
        """
        with get_db_connection(self.settings) as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_PROFILE_COLUMNS}, password_hash FROM users WHERE email = %s",
                    (email.strip().lower(),),
                )
                row = cur.fetchone()

        if not row or not self._verify_password(password, row["password_hash"]):
            return None

        return _profile_from_row(row)

    def get_by_id(self, user_id: str) -> UserProfile | None:
        with get_db_connection(self.settings) as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_PROFILE_COLUMNS} FROM users WHERE user_id = %s",
                    (user_id,),
                )
                row = cur.fetchone()

        return _profile_from_row(row) if row else None

    def update_profile(
        self,
        user_id: str,
        name: str | None = None,
        avatar: str | None = None,
    ) -> UserProfile | None:
        """Update display name and/or avatar.

        Returns:
            The updated profile, or None if the user does not exist.
        """
        if name is not None and not name.strip():
            raise ValidationError("Name cannot be empty")

        with get_db_connection(self.settings) as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    UPDATE users
                    SET name = COALESCE(%s, name), avatar = COALESCE(%s, avatar)
                    WHERE user_id = %s
                    RETURNING {_PROFILE_COLUMNS}
                    """,
                    (name.strip() if name else None, avatar, user_id),
                )
                row = cur.fetchone()
                conn.commit()

        return _profile_from_row(row) if row else None

    def guest_profile(self, guest_id: str) -> UserProfile:
        """In-memory profile for a guest session (never persisted)."""
        return UserProfile(
            id=guest_id,
            name="Guest",
            email="",
            storage_used=0,
            storage_limit=self.settings.GUEST_STORAGE_LIMIT,
            is_guest=True,
        )
