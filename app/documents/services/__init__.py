# Document services

from .activity import ActivityRecorder
from .cleanup import OrphanRegistry
from .document_index import DocumentIndex
from .document_service import DocumentService, DownloadTarget
from .local_storage import LocalStorage
from .pipeline import IngestionPipeline, IngestionStage, UploadRequest
from .quota import QuotaLedger, QuotaUsage
from .storage import MinIOStorage, get_storage_backend
from .storage_protocol import StorageBackend

__all__ = [
    # Core services
    "ActivityRecorder",
    "DocumentIndex",
    "DocumentService",
    "DownloadTarget",
    "OrphanRegistry",
    "QuotaLedger",
    "QuotaUsage",
    # Storage backends
    "StorageBackend",
    "MinIOStorage",
    "LocalStorage",
    "get_storage_backend",
    # Pipeline
    "IngestionPipeline",
    "IngestionStage",
    "UploadRequest",
]
