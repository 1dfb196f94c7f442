"""
Local filesystem storage backend.

This implementation stores files on the local filesystem. It is selected
at startup when no MinIO credentials are configured.
"""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from app.documents.services.storage_protocol import build_object_name
from vault_core.config import Settings, settings as default_settings
from vault_core.domain.models import LocalLocator, StorageKind, StorageLocator
from vault_core.runtime.errors import ErrorCode, TerminalError


class LocalStorage:
    """
    File-system based storage.

    Stores files in a configurable base directory, one subdirectory per
    user. Provides the same interface as MinIOStorage.

    Usage:
        storage = LocalStorage(base_path="/var/lib/docvault")
        locator = storage.store("user-1", content, "application/pdf")
        path = storage.locate(locator)
    """

    kind = StorageKind.LOCAL

    def __init__(self, base_path: str | None = None, settings: Settings | None = None):
        """
        Initialize local storage.

        Args:
            base_path: Root directory for all stored files.
            settings: Settings providing defaults for base path and public URL.
        """
        cfg = settings or default_settings
        self.base_path = Path(base_path or cfg.LOCAL_STORAGE_PATH).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.public_base_url = cfg.PUBLIC_BASE_URL.rstrip("/")
        logger.info(f"LocalStorage initialized at {self.base_path}")

    def _resolve(self, locator: StorageLocator) -> Path:
        if not isinstance(locator, LocalLocator):
            raise TerminalError(
                code=ErrorCode.INVALID_LOCATOR,
                message_safe="Locator does not belong to local storage",
            )
        target = (self.base_path / locator.relative_path).resolve()
        # Reject paths that escape the storage root (e.g. "../")
        if not target.is_relative_to(self.base_path):
            raise TerminalError(
                code=ErrorCode.INVALID_LOCATOR,
                message_safe="Locator escapes the storage root",
                message_debug=locator.relative_path,
            )
        return target

    def store(self, user_id: str, content: bytes, mime_type: str) -> LocalLocator:
        """
        Write content to ``{base_path}/{user_id}/{epoch_ms}-{random}{ext}``.

        Returns:
            LocalLocator with the path relative to the storage root.
        """
        locator = LocalLocator(relative_path=build_object_name(user_id, mime_type))
        target_file = self._resolve(locator)

        try:
            target_file.parent.mkdir(parents=True, exist_ok=True)
            target_file.write_bytes(content)
        except OSError as e:
            raise TerminalError(
                code=ErrorCode.STORAGE_WRITE_ERROR,
                message_safe="Could not write file to local storage",
                message_debug=str(e),
                cause=e,
            ) from e

        logger.info(f"Stored {len(content)} bytes at {locator.relative_path}")
        return locator

    def locate(self, locator: StorageLocator) -> Path:
        return self._resolve(locator)

    def url_for(self, locator: StorageLocator) -> str:
        return f"{self.public_base_url}/uploads/{locator.relative_path}"

    def delete(self, locator: StorageLocator) -> None:
        """
        Delete a file. Missing files are logged and ignored.
        """
        target_file = self._resolve(locator)

        try:
            target_file.unlink()
        except FileNotFoundError:
            logger.warning(f"File not found for deletion: {locator.relative_path}")
            return
        except OSError as e:
            raise TerminalError(
                code=ErrorCode.STORAGE_DELETE_ERROR,
                message_safe="Could not delete file from local storage",
                message_debug=str(e),
                cause=e,
            ) from e

        logger.info(f"Deleted {locator.relative_path}")
