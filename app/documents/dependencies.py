"""
Service factories for the documents API.

Routes receive their collaborators through these functions, so tests can
replace any of them with ``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Depends

from app.documents.services.activity import ActivityRecorder
from app.documents.services.cleanup import OrphanRegistry
from app.documents.services.document_index import DocumentIndex
from app.documents.services.document_service import DocumentService
from app.documents.services.pipeline import IngestionPipeline
from app.documents.services.quota import QuotaLedger
from app.documents.services.storage import get_storage_backend
from app.documents.services.storage_protocol import StorageBackend

_storage_service = None


def get_storage_service() -> StorageBackend:
    """Lazily construct storage backend to avoid side effects at import."""
    global _storage_service
    if _storage_service is None:
        _storage_service = get_storage_backend()
    return _storage_service


def get_quota_ledger() -> QuotaLedger:
    return QuotaLedger()


def get_document_index() -> DocumentIndex:
    return DocumentIndex()


def get_activity_recorder() -> ActivityRecorder:
    return ActivityRecorder()


def get_orphan_registry() -> OrphanRegistry:
    return OrphanRegistry()


def get_pipeline(
    storage: StorageBackend = Depends(get_storage_service),
    quota: QuotaLedger = Depends(get_quota_ledger),
    index: DocumentIndex = Depends(get_document_index),
    activity: ActivityRecorder = Depends(get_activity_recorder),
    orphans: OrphanRegistry = Depends(get_orphan_registry),
) -> IngestionPipeline:
    return IngestionPipeline(storage, quota, index, activity, orphans=orphans)


def get_document_service(
    storage: StorageBackend = Depends(get_storage_service),
    quota: QuotaLedger = Depends(get_quota_ledger),
    index: DocumentIndex = Depends(get_document_index),
    activity: ActivityRecorder = Depends(get_activity_recorder),
) -> DocumentService:
    return DocumentService(index, activity, storage, quota)
