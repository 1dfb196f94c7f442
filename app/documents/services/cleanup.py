"""
Cleanup of orphaned blobs.

When a document row is removed but its bytes cannot be deleted, the
locator is written to ``orphaned_blobs``. ``OrphanRegistry.purge`` retries
those deletions out of band (see scripts/cleanup_orphans.py).
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from loguru import logger

from app.documents.services.storage_protocol import StorageBackend
from vault_core.config import Settings, settings as default_settings
from vault_core.domain.models import LocalLocator, RemoteLocator, ResourceKind, StorageKind, StorageLocator
from vault_core.infrastructure.postgres import get_db_connection


def _locator_from_row(storage_kind: str, storage_locator: str, resource_kind: str) -> StorageLocator:
    if storage_kind == StorageKind.REMOTE.value:
        return RemoteLocator(public_url="", delete_key=storage_locator, resource_kind=ResourceKind(resource_kind))
    return LocalLocator(relative_path=storage_locator)


class OrphanRegistry:
    """
    Durable record of blobs whose deletion failed.

    Usage:
        registry = OrphanRegistry()
        registry.record(document.locator, reason="delete failed")
        summary = registry.purge(get_storage_backend())
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or default_settings

    def record(self, locator: StorageLocator, reason: str = "") -> None:
        """
        Remember a locator for later cleanup. Never raises.
        """
        key = locator.delete_key if isinstance(locator, RemoteLocator) else locator.relative_path
        try:
            with get_db_connection(self.settings) as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    INSERT INTO orphaned_blobs
                    (orphan_id, storage_kind, storage_locator, resource_kind, reason, created_at)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    """,
                    (
                        str(uuid.uuid4()),
                        locator.kind,
                        key,
                        locator.resource_kind.value,
                        reason[:500],
                        datetime.now(timezone.utc),
                    ),
                )
                conn.commit()
        except Exception as e:
            logger.error(f"Failed to record orphaned blob {key}: {e}")
            return

        logger.warning(f"Recorded orphaned blob {key}: {reason}")

    def purge(self, storage: StorageBackend, limit: Optional[int] = None) -> dict:
        """
        Retry deletion of recorded orphans that belong to ``storage``.

        Args:
            storage: The backend the blobs live in.
            limit: Maximum number of orphans to process.

        Returns:
            dict: Summary with ``deleted`` and ``failed`` counts.
        """
        deleted = 0
        failed = 0

        with get_db_connection(self.settings) as conn:
            cursor = conn.cursor()
            query = """
                SELECT orphan_id, storage_kind, storage_locator, resource_kind
                FROM orphaned_blobs
                WHERE storage_kind = %s
                ORDER BY created_at
            """
            params: tuple = (storage.kind.value,)
            if limit is not None:
                query += " LIMIT %s"
                params += (limit,)
            cursor.execute(query, params)
            rows = cursor.fetchall()

            for orphan_id, storage_kind, storage_locator, resource_kind in rows:
                try:
                    storage.delete(_locator_from_row(storage_kind, storage_locator, resource_kind))
                except Exception as e:
                    failed += 1
                    logger.warning(f"Failed to delete orphaned blob {storage_locator}: {e}")
                    continue

                cursor.execute(
                    "DELETE FROM orphaned_blobs WHERE orphan_id = %s",
                    (orphan_id,),
                )
                deleted += 1

            conn.commit()

        logger.info(f"Orphan cleanup complete: deleted={deleted}, failed={failed}")
        return {"deleted": deleted, "failed": failed}
