"""
Storage backends for document bytes.

This module provides:
- MinIOStorage: Remote object storage using MinIO (S3-compatible)
- get_storage_backend: Factory that picks the backend once per process

The backend is selected from the presence of MinIO credentials
(Settings.storage_mode). A deployment never switches backends per request.
"""

from __future__ import annotations

import io
from datetime import timedelta

import urllib3
from loguru import logger
from minio.error import S3Error, ServerError

from app.documents.services.storage_protocol import StorageBackend, build_object_name
from vault_core.config import Settings, settings as default_settings
from vault_core.domain.models import (
    FileType,
    RemoteLocator,
    ResourceKind,
    StorageKind,
    StorageLocator,
)
from vault_core.infrastructure.minio import get_minio_client
from vault_core.runtime.errors import ErrorCode, RetryableError, ServiceError, TerminalError

_MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "NoSuchObject"})


def _classify(e: Exception, code: str, message: str) -> ServiceError:
    """Translate a MinIO/urllib3 exception into a retryable or terminal error."""
    if isinstance(e, ServerError):
        return RetryableError(code=code, message_safe=message, message_debug=str(e), cause=e)
    if isinstance(e, S3Error):
        status = getattr(e.response, "status", None) if e.response is not None else None
        if status is not None and status >= 500:
            return RetryableError(code=code, message_safe=message, message_debug=str(e), cause=e)
        return TerminalError(code=code, message_safe=message, message_debug=str(e), cause=e)
    if isinstance(e, (urllib3.exceptions.HTTPError, OSError)):
        # Timeouts, refused connections and resets
        return RetryableError(
            code=ErrorCode.STORAGE_UNAVAILABLE, message_safe=message, message_debug=str(e), cause=e
        )
    return TerminalError(code=code, message_safe=message, message_debug=str(e), cause=e)


class MinIOStorage:
    """
    MinIO-based storage for production deployments.

    Stores documents in a single bucket keyed by ``{user_id}/...``.
    Implements the StorageBackend protocol.

    Usage:
        storage = MinIOStorage()
        locator = storage.store("user-1", content, "application/pdf")
        url = storage.locate(locator)
    """

    kind = StorageKind.REMOTE

    def __init__(self, settings: Settings | None = None):
        """Initialize the MinIO storage service."""
        cfg = settings or default_settings
        self._client = get_minio_client(cfg)
        self.bucket = cfg.MINIO_BUCKET
        self.presigned_ttl = timedelta(seconds=cfg.PRESIGNED_URL_TTL)
        scheme = "https" if cfg.MINIO_SECURE else "http"
        self.public_base_url = (cfg.MINIO_PUBLIC_URL or f"{scheme}://{cfg.MINIO_ENDPOINT}").rstrip("/")

        self.ensure_bucket_exists(self.bucket)

    def ensure_bucket_exists(self, bucket_name: str) -> None:
        """Create bucket if it doesn't exist."""
        try:
            if not self._client.bucket_exists(bucket_name):
                self._client.make_bucket(bucket_name)
                logger.info(f"Created MinIO bucket '{bucket_name}'")
        except Exception as e:
            logger.warning(f"Could not ensure bucket '{bucket_name}' exists: {e}")

    @staticmethod
    def _split_key(locator: StorageLocator) -> tuple[str, str]:
        if not isinstance(locator, RemoteLocator):
            raise TerminalError(
                code=ErrorCode.INVALID_LOCATOR,
                message_safe="Locator does not belong to remote storage",
            )
        parts = locator.delete_key.split("/", 1)
        if len(parts) != 2 or not all(parts):
            raise TerminalError(
                code=ErrorCode.INVALID_LOCATOR,
                message_safe="Invalid storage key",
                message_debug=locator.delete_key,
            )
        return parts[0], parts[1]

    def store(self, user_id: str, content: bytes, mime_type: str) -> RemoteLocator:
        """
        Upload content to MinIO.

        PDFs are tagged with the ``raw`` resource kind so downstream
        consumers never attempt image processing on them.

        Returns:
            RemoteLocator with the public URL and the ``bucket/object`` delete key.

        Raises:
            RetryableError: Provider unreachable or returned 5xx.
            TerminalError: Provider rejected the write or returned an incomplete result.
        """
        object_name = build_object_name(user_id, mime_type)
        file_type = FileType.from_mime(mime_type)
        resource_kind = ResourceKind.for_file_type(file_type) if file_type else ResourceKind.RAW

        logger.info(f"Uploading document to {self.bucket}/{object_name}")

        try:
            result = self._client.put_object(
                bucket_name=self.bucket,
                object_name=object_name,
                data=io.BytesIO(content),
                length=len(content),
                content_type=mime_type,
                metadata={"resource-kind": resource_kind.value},
            )
        except Exception as e:
            raise _classify(e, ErrorCode.STORAGE_WRITE_ERROR, "Object storage write failed") from e

        # Both the address and the deletion key must come from the provider's answer
        bucket_name = getattr(result, "bucket_name", None)
        stored_name = getattr(result, "object_name", None)
        if not bucket_name or not stored_name:
            logger.error(
                f"MinIO write result incomplete for {object_name}: "
                f"bucket={bucket_name!r} object={stored_name!r}"
            )
            raise TerminalError(
                code=ErrorCode.STORAGE_BAD_RESPONSE,
                message_safe="Object storage returned an incomplete write result",
            )

        locator = RemoteLocator(
            public_url=f"{self.public_base_url}/{bucket_name}/{stored_name}",
            delete_key=f"{bucket_name}/{stored_name}",
            resource_kind=resource_kind,
        )
        logger.info(f"Uploaded to {locator.delete_key}")
        return locator

    def locate(self, locator: StorageLocator) -> str:
        """Presigned GET URL valid for PRESIGNED_URL_TTL seconds."""
        bucket_name, object_name = self._split_key(locator)
        try:
            return self._client.presigned_get_object(
                bucket_name, object_name, expires=self.presigned_ttl
            )
        except Exception as e:
            raise _classify(e, ErrorCode.STORAGE_UNAVAILABLE, "Could not sign download URL") from e

    def url_for(self, locator: StorageLocator) -> str:
        return locator.public_url

    def delete(self, locator: StorageLocator) -> None:
        """
        Delete an object. Missing objects are treated as already deleted.
        """
        bucket_name, object_name = self._split_key(locator)

        logger.info(f"Deleting {bucket_name}/{object_name}")
        try:
            self._client.remove_object(bucket_name, object_name)
        except S3Error as e:
            if e.code in _MISSING_OBJECT_CODES:
                logger.warning(f"Object not found for deletion: {bucket_name}/{object_name}")
                return
            raise _classify(e, ErrorCode.STORAGE_DELETE_ERROR, "Object storage delete failed") from e
        except Exception as e:
            raise _classify(e, ErrorCode.STORAGE_DELETE_ERROR, "Object storage delete failed") from e


def get_storage_backend(settings: Settings | None = None) -> StorageBackend:
    """
    Factory function to get the configured storage backend.

    Returns MinIOStorage when MinIO credentials are present, LocalStorage
    otherwise. A MinIO construction failure propagates; there is no
    silent fallback to local disk.

    Returns:
        StorageBackend: The configured storage backend instance.
    """
    cfg = settings or default_settings

    if cfg.storage_mode == StorageKind.REMOTE.value:
        logger.info("Using MinIOStorage backend")
        return MinIOStorage(cfg)

    from .local_storage import LocalStorage

    logger.info("Using LocalStorage backend")
    return LocalStorage(settings=cfg)
