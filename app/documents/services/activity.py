"""
ActivityRecorder: append-only history of user actions on documents.

Entries keep a snapshot of the document name, so the history survives
renames and deletions. Recording is best-effort: a failure is logged and
never surfaces to the operation it is attached to.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from loguru import logger
from psycopg.rows import dict_row

from vault_core.config import Settings, settings as default_settings
from vault_core.domain.models import ActivityAction, ActivityLogEntry
from vault_core.infrastructure.postgres import get_db_connection

DEFAULT_ACTIVITY_LIMIT = 50
MAX_ACTIVITY_LIMIT = 200


class ActivityRecorder:
    """Service for the activity_logs table."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or default_settings

    def record(
        self,
        user_id: str,
        action: ActivityAction,
        document_id: str,
        document_name: str,
    ) -> None:
        """
        Append an activity entry. Never raises.
        """
        try:
            with get_db_connection(self.settings) as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    INSERT INTO activity_logs
                    (activity_id, user_id, action, document_id, document_name, created_at)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    """,
                    (
                        str(uuid.uuid4()),
                        user_id,
                        action.value,
                        document_id,
                        document_name,
                        datetime.now(timezone.utc),
                    ),
                )
                conn.commit()
        except Exception as e:
            logger.error(
                f"Failed to log {action.value} activity for document {document_id}: {e}"
            )
            return

        logger.debug(f"Recorded {action.value} on {document_id} by {user_id}")

    def list_for_user(self, user_id: str, limit: int = DEFAULT_ACTIVITY_LIMIT) -> list[ActivityLogEntry]:
        """
        Most recent entries first, at most ``limit`` (clamped to 1..200).
        """
        limit = max(1, min(limit, MAX_ACTIVITY_LIMIT))

        with get_db_connection(self.settings) as conn:
            with conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(
                    """
                    SELECT activity_id, user_id, action, document_id, document_name, created_at
                    FROM activity_logs
                    WHERE user_id = %s
                    ORDER BY created_at DESC
                    LIMIT %s
                    """,
                    (user_id, limit),
                )
                rows = cursor.fetchall()

        return [ActivityLogEntry.from_db_row(row) for row in rows]
