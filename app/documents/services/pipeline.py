"""
Ingestion Pipeline: upload and deletion of documents.

An upload moves through these stages:

    received -> validated -> stored -> quota_checked -> indexed -> logged -> complete

A failure raises a VaultError whose ``stage`` names the stage that could
not be reached. Once bytes are stored, every failure path deletes them
again before the error propagates.

The index row is written before the quota is charged. If the charge
fails, the row is removed, so a Document never exists without its bytes
being counted against the owner's quota.

Usage:
    pipeline = IngestionPipeline(storage, QuotaLedger(), DocumentIndex(), ActivityRecorder())
    document = pipeline.ingest(UploadRequest(user_id=uid, content=data, mime_type="application/pdf"))
    pipeline.delete(uid, document.id)
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from loguru import logger

from app.documents.services.activity import ActivityRecorder
from app.documents.services.cleanup import OrphanRegistry
from app.documents.services.document_index import DocumentIndex
from app.documents.services.quota import QuotaLedger
from app.documents.services.storage_protocol import StorageBackend
from vault_core.config import MIB, Settings, settings as default_settings
from vault_core.domain.exceptions import (
    GuestStorageError,
    NoFileError,
    PersistenceError,
    StorageFailure,
    UnsupportedTypeError,
    ValidationError,
    VaultError,
)
from vault_core.domain.models import (
    ActivityAction,
    Category,
    Document,
    DocumentMetadata,
    DocumentType,
    FileType,
    NewDocument,
    StorageLocator,
    locator_key,
    normalize_mime,
)
from vault_core.runtime.errors import ServiceError
from vault_core.runtime.retry import STORAGE_RETRY_POLICY, RetryPolicy, sync_with_retry


class IngestionStage(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    STORED = "stored"
    QUOTA_CHECKED = "quota_checked"
    INDEXED = "indexed"
    LOGGED = "logged"
    COMPLETE = "complete"


@dataclass
class UploadRequest:
    """A single upload as received from the client."""

    user_id: str
    content: Optional[bytes]
    mime_type: Optional[str]
    filename: Optional[str] = None
    name: Optional[str] = None
    type: Optional[DocumentType] = None
    category: Optional[Category] = None
    tags: list[str] = field(default_factory=list)
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    is_guest: bool = False
    request_id: str = "-"


class IngestionPipeline:
    """
    Orchestrates uploads and deletions across storage, quota, index and activity.

    All collaborators are injected; routes build the pipeline through
    ``app.documents.dependencies.get_pipeline`` so tests can swap in fakes.
    """

    def __init__(
        self,
        storage: StorageBackend,
        quota: QuotaLedger,
        index: DocumentIndex,
        activity: ActivityRecorder,
        orphans: OrphanRegistry | None = None,
        settings: Settings | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        self.storage = storage
        self.quota = quota
        self.index = index
        self.activity = activity
        self.settings = settings or default_settings
        self.orphans = orphans or OrphanRegistry(self.settings)
        self.retry_policy = retry_policy or STORAGE_RETRY_POLICY

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def ingest(self, request: UploadRequest, record_activity: bool = True) -> Document:
        """
        Run an upload through every stage.

        With ``record_activity=False`` the caller logs the upload itself
        through record_upload once it knows the document is kept.

        Returns:
            Document: The catalogued document.

        Raises:
            ValidationError: Missing file, unsupported type, oversize or guest upload.
            StorageFailure: The bytes could not be stored.
            QuotaExceededError: The upload does not fit the owner's quota.
            PersistenceError: The document could not be recorded.
        """
        log_prefix = f"[{request.request_id}]"
        logger.info(f"{log_prefix} Upload received for user {request.user_id}")

        file_type = self._validate(request)
        mime_type = normalize_mime(request.mime_type)
        size = len(request.content)
        logger.debug(f"{log_prefix} Validated {file_type.value} upload of {size} bytes")

        locator = self._store(request, mime_type, log_prefix)
        logger.info(f"{log_prefix} Stored {size} bytes at {locator_key(locator)}")

        stage = IngestionStage.QUOTA_CHECKED
        try:
            self.quota.check_and_reserve(request.user_id, size)

            stage = IngestionStage.INDEXED
            document = self._index(request, file_type, size, locator, log_prefix)
        except Exception as e:
            self._discard_blob(locator, f"upload failed at {stage.value}: {type(e).__name__}")
            if isinstance(e, VaultError):
                e.stage = e.stage or stage.value
            logger.warning(f"{log_prefix} Upload failed at {stage.value}: {e}")
            raise

        if record_activity:
            self.record_upload(request.user_id, document)
        logger.info(f"{log_prefix} Upload complete: document {document.id}")
        return document

    def record_upload(self, user_id: str, document: Document) -> None:
        self.activity.record(user_id, ActivityAction.UPLOAD, document.id, document.name)

    def _validate(self, request: UploadRequest) -> FileType:
        stage = IngestionStage.VALIDATED.value
        if request.is_guest:
            raise GuestStorageError(stage=stage)
        if not request.content:
            raise NoFileError(stage=stage)

        mime_type = normalize_mime(request.mime_type)
        file_type = FileType.from_mime(mime_type)
        if mime_type not in self.settings.allowed_mime_types or file_type is None:
            logger.info(f"[{request.request_id}] Rejected MIME type {request.mime_type!r}")
            raise UnsupportedTypeError(stage=stage)

        self.ensure_within_size_limit(len(request.content))
        return file_type

    def ensure_within_size_limit(self, size: int) -> None:
        """Reject payloads larger than MAX_FILE_SIZE."""
        if size > self.settings.MAX_FILE_SIZE:
            raise ValidationError(
                f"File too large. Maximum size is {self.settings.MAX_FILE_SIZE // MIB} MB",
                stage=IngestionStage.VALIDATED.value,
            )

    def _store(self, request: UploadRequest, mime_type: str, log_prefix: str) -> StorageLocator:
        store = sync_with_retry(self.retry_policy)(self.storage.store)
        try:
            return store(request.user_id, request.content, mime_type)
        except ServiceError as e:
            logger.error(
                f"{log_prefix} Storage write failed ({e.code}, debug_id={e.debug_id}): "
                f"{e.message_debug or e.message_safe}"
            )
            raise StorageFailure(stage=IngestionStage.STORED.value) from e
        except Exception as e:
            logger.exception(f"{log_prefix} Unexpected storage error: {e}")
            raise StorageFailure(stage=IngestionStage.STORED.value) from e

    def _index(
        self,
        request: UploadRequest,
        file_type: FileType,
        size: int,
        locator: StorageLocator,
        log_prefix: str,
    ) -> Document:
        """Write the index row, then charge the quota; undo the row if the charge fails."""
        file_url = self.storage.url_for(locator)
        new_document = NewDocument(
            user_id=request.user_id,
            name=self._document_name(request),
            type=request.type or (DocumentType.PDF if file_type is FileType.PDF else DocumentType.IMAGE),
            category=request.category or Category.OTHER,
            file_type=file_type,
            size=size,
            tags=request.tags,
            metadata=request.metadata,
            thumbnail_url=file_url if file_type.is_image else None,
            file_url=file_url,
            storage_kind=self.storage.kind,
            storage_locator=locator_key(locator),
            storage_resource_kind=locator.resource_kind,
        )

        try:
            document = self.index.create(new_document)
        except Exception as e:
            logger.error(f"{log_prefix} Could not index document: {e}")
            raise PersistenceError(stage=IngestionStage.INDEXED.value) from e

        try:
            self.quota.charge(request.user_id, size)
        except Exception as e:
            logger.error(f"{log_prefix} Quota charge failed for document {document.id}: {e}")
            try:
                self.index.delete(request.user_id, document.id)
            except Exception as rollback_error:
                logger.error(
                    f"{log_prefix} Could not remove index row {document.id} "
                    f"after failed charge: {rollback_error}"
                )
            raise PersistenceError(stage=IngestionStage.INDEXED.value) from e

        return document

    @staticmethod
    def _document_name(request: UploadRequest) -> str:
        for candidate in (request.name, request.filename):
            if candidate and candidate.strip():
                return candidate.strip()
        return f"Document-{int(time.time() * 1000)}"

    def _discard_blob(self, locator: StorageLocator, reason: str) -> None:
        """Best-effort delete of stored bytes; failures land in the orphan registry."""
        try:
            self.storage.delete(locator)
        except Exception as e:
            logger.error(f"Compensating delete failed for {locator_key(locator)}: {e}")
            self.orphans.record(locator, reason=reason)

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def delete(self, user_id: str, document_id: str) -> Document:
        """
        Delete a document: index row, then quota, then bytes, then log.

        If the index row cannot be removed nothing else is touched.

        Returns:
            Document: The removed document.

        Raises:
            NotFoundError: Unknown id, or the document belongs to another user.
        """
        document = self._remove(user_id, document_id)
        self.activity.record(user_id, ActivityAction.DELETE, document.id, document.name)
        return document

    def discard(self, user_id: str, document_id: str) -> Document:
        """Undo a completed upload without recording activity."""
        logger.info(f"Discarding document {document_id} for user {user_id}")
        return self._remove(user_id, document_id)

    def _remove(self, user_id: str, document_id: str) -> Document:
        document = self.index.get(user_id, document_id)
        self.index.delete(user_id, document_id)

        try:
            self.quota.release(user_id, document.size)
        except Exception as e:
            logger.error(f"Could not release {document.size} bytes for user {user_id}: {e}")

        locator = document.locator
        try:
            self.storage.delete(locator)
        except Exception as e:
            logger.error(f"Could not delete bytes for document {document_id}: {e}")
            self.orphans.record(locator, reason=f"delete of document {document_id} failed")

        logger.info(f"Deleted document {document_id} ({document.size} bytes)")
        return document
