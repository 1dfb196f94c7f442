"""
Storage backend protocol for document bytes.

This module defines the abstract interface for storage backends,
enabling the remote object store (MinIO) and the local filesystem to be
used interchangeably by the ingestion pipeline.
"""

import secrets
import time
from pathlib import Path
from typing import Protocol, runtime_checkable

from vault_core.domain.models import FileType, StorageKind, StorageLocator


def build_object_name(user_id: str, mime_type: str) -> str:
    """
    Build a collision-resistant key: ``{user_id}/{epoch_millis}-{random}{ext}``.

    Uniqueness is probabilistic (millisecond timestamp plus nine random
    digits), which is ample for per-user upload volumes.
    """
    file_type = FileType.from_mime(mime_type)
    extension = file_type.extension if file_type else ""
    suffix = secrets.randbelow(10**9)
    return f"{user_id}/{int(time.time() * 1000)}-{suffix:09d}{extension}"


@runtime_checkable
class StorageBackend(Protocol):
    """
    Abstract storage interface for document bytes.

    Implementations raise vault_core.runtime.errors.RetryableError for
    transient provider failures and TerminalError for everything else.
    """

    kind: StorageKind

    def store(self, user_id: str, content: bytes, mime_type: str) -> StorageLocator:
        """
        Persist bytes under a collision-resistant name.

        Args:
            user_id: Owner of the document; used as the key prefix.
            content: The file content as bytes.
            mime_type: Normalized MIME type of the content.

        Returns:
            StorageLocator addressing the stored blob.
        """
        ...

    def locate(self, locator: StorageLocator) -> str | Path:
        """
        Resolve a locator for download.

        Returns:
            A (time-limited) URL for remote blobs or an absolute path for local ones.
        """
        ...

    def url_for(self, locator: StorageLocator) -> str:
        """Stable user-facing URL recorded on the Document as file_url."""
        ...

    def delete(self, locator: StorageLocator) -> None:
        """
        Delete a blob. Deleting a blob that does not exist is not an error.
        """
        ...
