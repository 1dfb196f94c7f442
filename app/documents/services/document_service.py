"""
Read and update flows for documents.

Uploads and deletions go through IngestionPipeline; everything else a
user does to an existing document goes through DocumentService.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from app.documents.services.activity import ActivityRecorder
from app.documents.services.document_index import DocumentIndex
from app.documents.services.quota import QuotaLedger
from app.documents.services.storage_protocol import StorageBackend
from vault_core.config import Settings, settings as default_settings
from vault_core.domain.exceptions import StorageFailure
from vault_core.domain.models import (
    ActivityAction,
    Category,
    Document,
    DocumentFilters,
    DocumentUpdate,
    StorageStats,
)
from vault_core.runtime.errors import ServiceError


@dataclass(frozen=True)
class DownloadTarget:
    """Where to send the client: a (presigned) URL or a local file."""

    document: Document
    url: str | None = None
    path: Path | None = None


class DocumentService:
    def __init__(
        self,
        index: DocumentIndex,
        activity: ActivityRecorder,
        storage: StorageBackend,
        quota: QuotaLedger,
        settings: Settings | None = None,
    ):
        self.index = index
        self.activity = activity
        self.storage = storage
        self.quota = quota
        self.settings = settings or default_settings

    def list(self, user_id: str, filters: DocumentFilters) -> list[Document]:
        return self.index.list_for_user(user_id, filters)

    def get(self, user_id: str, document_id: str) -> Document:
        """Fetch a document and record a ``view``."""
        document = self.index.get(user_id, document_id)
        self.activity.record(user_id, ActivityAction.VIEW, document.id, document.name)
        return document

    def update(self, user_id: str, document_id: str, changes: DocumentUpdate) -> Document:
        """
        Apply a partial update.

        Records ``rename`` when the name changes and ``archive`` when the
        archive flag changes.
        """
        before = self.index.get(user_id, document_id)
        after = self.index.update(user_id, document_id, changes)

        if after.name != before.name:
            self.activity.record(user_id, ActivityAction.RENAME, after.id, after.name)
        if after.is_archived != before.is_archived:
            self.activity.record(user_id, ActivityAction.ARCHIVE, after.id, after.name)
        return after

    def toggle_archive(self, user_id: str, document_id: str) -> Document:
        document = self.index.get(user_id, document_id)
        updated = self.index.update(
            user_id, document_id, DocumentUpdate(is_archived=not document.is_archived)
        )
        self.activity.record(user_id, ActivityAction.ARCHIVE, updated.id, updated.name)
        return updated

    def toggle_favorite(self, user_id: str, document_id: str) -> Document:
        document = self.index.get(user_id, document_id)
        return self.index.update(
            user_id, document_id, DocumentUpdate(is_favorite=not document.is_favorite)
        )

    def prepare_download(self, user_id: str, document_id: str) -> DownloadTarget:
        """
        Resolve the document's bytes for download and record a ``download``.

        Raises:
            NotFoundError: Unknown id, or the document belongs to another user.
            StorageFailure: The storage backend could not resolve the locator.
        """
        document = self.index.get(user_id, document_id)
        try:
            target = self.storage.locate(document.locator)
        except ServiceError as e:
            logger.error(f"Could not resolve download for {document_id} ({e.code}): {e.message_debug}")
            raise StorageFailure("Error retrieving file. Please try again later.") from e

        self.activity.record(user_id, ActivityAction.DOWNLOAD, document.id, document.name)
        if isinstance(target, Path):
            return DownloadTarget(document=document, path=target)
        return DownloadTarget(document=document, url=target)

    def stats(self, user_id: str) -> StorageStats:
        """Usage, limit and per-category counts over non-archived documents."""
        usage = self.quota.get_usage(user_id)
        count, breakdown = self.index.category_breakdown(user_id)
        return StorageStats(
            used=usage.used,
            limit=usage.limit,
            document_count=count,
            category_breakdown=breakdown,
        )

    def guest_stats(self) -> StorageStats:
        """Guests store nothing, so their stats are empty."""
        return StorageStats(
            used=0,
            limit=self.settings.GUEST_STORAGE_LIMIT,
            document_count=0,
            category_breakdown={c.value: 0 for c in Category},
        )
