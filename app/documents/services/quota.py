"""
QuotaLedger: per-user storage accounting.

The ledger lives on the ``users`` row (storage_used / storage_limit).
Checks read the current value; increments and decrements are single
atomic UPDATE statements, so concurrent uploads can at worst briefly
overshoot the limit but the counter always ends up exact.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from vault_core.config import Settings, settings as default_settings
from vault_core.domain.exceptions import NotFoundError, QuotaExceededError
from vault_core.infrastructure.postgres import get_db_connection


@dataclass(frozen=True)
class QuotaUsage:
    used: int
    limit: int

    @property
    def available(self) -> int:
        return max(0, self.limit - self.used)


class QuotaLedger:
    """
    Service for enforcing and tracking per-user storage quotas in PostgreSQL.

    Usage:
        ledger = QuotaLedger()
        ledger.check_and_reserve(user_id, len(content))
        ledger.charge(user_id, len(content))
        ledger.release(user_id, document.size)
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or default_settings

    def get_usage(self, user_id: str) -> QuotaUsage:
        """
        Read the user's current usage and limit.

        Raises:
            NotFoundError: If the user does not exist.
        """
        with get_db_connection(self.settings) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT storage_used, storage_limit FROM users WHERE user_id = %s",
                (user_id,),
            )
            row = cursor.fetchone()

        if not row:
            raise NotFoundError("User not found")

        used, limit = row
        return QuotaUsage(
            used=used or 0,
            limit=limit if limit is not None else self.settings.DEFAULT_STORAGE_LIMIT,
        )

    def check_and_reserve(self, user_id: str, additional_bytes: int) -> int:
        """
        Verify that ``additional_bytes`` fit within the user's limit.

        Args:
            user_id: The user.
            additional_bytes: Actual stored size of the new document.

        Returns:
            int: The projected storage_used after the upload.

        Raises:
            QuotaExceededError: If used + additional_bytes > limit.
        """
        usage = self.get_usage(user_id)
        new_used = usage.used + additional_bytes
        if new_used > usage.limit:
            logger.info(
                f"Quota exceeded for user {user_id}: "
                f"used={usage.used} limit={usage.limit} requested={additional_bytes}"
            )
            raise QuotaExceededError(used=usage.used, limit=usage.limit, requested=additional_bytes)
        return new_used

    def charge(self, user_id: str, size_bytes: int) -> int:
        """
        Atomically add ``size_bytes`` to storage_used.

        Returns:
            int: The new storage_used total.
        """
        with get_db_connection(self.settings) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE users
                SET storage_used = storage_used + %s
                WHERE user_id = %s
                RETURNING storage_used
                """,
                (size_bytes, user_id),
            )
            row = cursor.fetchone()
            conn.commit()

        if not row:
            raise NotFoundError("User not found")

        logger.debug(f"Charged {size_bytes} bytes to user {user_id}: used={row[0]}")
        return row[0]

    def release(self, user_id: str, size_bytes: int) -> int:
        """
        Atomically subtract ``size_bytes`` from storage_used, never below zero.

        Returns:
            int: The new storage_used total.
        """
        with get_db_connection(self.settings) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE users
                SET storage_used = GREATEST(0, storage_used - %s)
                WHERE user_id = %s
                RETURNING storage_used
                """,
                (size_bytes, user_id),
            )
            row = cursor.fetchone()
            conn.commit()

        if not row:
            raise NotFoundError("User not found")

        logger.debug(f"Released {size_bytes} bytes for user {user_id}: used={row[0]}")
        return row[0]

    def reconcile(self, user_id: str) -> int:
        """
        Recompute storage_used from the user's documents.

        Repairs drift left by failed compensations (see scripts/reconcile_quota.py).

        Returns:
            int: The corrected storage_used.
        """
        with get_db_connection(self.settings) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE users
                SET storage_used = (
                    SELECT COALESCE(SUM(size), 0) FROM documents WHERE user_id = %s
                )
                WHERE user_id = %s
                RETURNING storage_used
                """,
                (user_id, user_id),
            )
            row = cursor.fetchone()
            conn.commit()

        if not row:
            raise NotFoundError("User not found")

        logger.info(f"Reconciled storage for user {user_id}: used={row[0]}")
        return row[0]

    def list_user_ids(self) -> list[str]:
        """All registered user ids, for bulk reconciliation."""
        with get_db_connection(self.settings) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT user_id FROM users WHERE NOT is_guest ORDER BY created_at")
            rows = cursor.fetchall()
        return [str(row[0]) for row in rows]
