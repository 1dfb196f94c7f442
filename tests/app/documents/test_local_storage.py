"""Unit tests for LocalStorage."""

import re

import pytest

from app.documents.services.local_storage import LocalStorage
from vault_core.domain.models import LocalLocator, RemoteLocator, ResourceKind
from vault_core.runtime.errors import ErrorCode, TerminalError


@pytest.fixture
def storage(tmp_path, local_settings):
    return LocalStorage(base_path=str(tmp_path), settings=local_settings)


class TestLocalStore:
    def test_store_writes_file_under_user_directory(self, storage, tmp_path):
        locator = storage.store("user-1", b"%PDF-1.4", "application/pdf")

        assert isinstance(locator, LocalLocator)
        assert re.fullmatch(r"user-1/\d+-\d{9}\.pdf", locator.relative_path)
        assert (tmp_path / locator.relative_path).read_bytes() == b"%PDF-1.4"

    def test_distinct_uploads_get_distinct_names(self, storage):
        first = storage.store("user-1", b"a", "image/png")
        second = storage.store("user-1", b"b", "image/png")

        assert first.relative_path != second.relative_path

    def test_resource_kind_is_auto(self, storage):
        locator = storage.store("user-1", b"a", "image/png")

        assert locator.resource_kind == ResourceKind.AUTO


class TestLocalLocate:
    def test_locate_returns_absolute_path(self, storage, tmp_path):
        locator = storage.store("user-1", b"data", "image/gif")

        path = storage.locate(locator)

        assert path.is_absolute()
        assert path == (tmp_path / locator.relative_path).resolve()

    def test_url_for_uses_public_base_url(self, storage):
        url = storage.url_for(LocalLocator("user-1/1-000000001.pdf"))

        assert url == "http://vault.test/uploads/user-1/1-000000001.pdf"

    def test_path_traversal_rejected(self, storage):
        with pytest.raises(TerminalError) as exc_info:
            storage.locate(LocalLocator("../../etc/passwd"))

        assert exc_info.value.code == ErrorCode.INVALID_LOCATOR

    def test_remote_locator_rejected(self, storage):
        with pytest.raises(TerminalError):
            storage.locate(RemoteLocator("https://x", "bucket/key", ResourceKind.RAW))


class TestLocalDelete:
    def test_delete_removes_file(self, storage, tmp_path):
        locator = storage.store("user-1", b"data", "application/pdf")

        storage.delete(locator)

        assert not (tmp_path / locator.relative_path).exists()

    def test_delete_twice_is_not_an_error(self, storage):
        locator = storage.store("user-1", b"data", "application/pdf")

        storage.delete(locator)
        storage.delete(locator)

    def test_delete_missing_file_is_not_an_error(self, storage):
        storage.delete(LocalLocator("user-1/never-existed.pdf"))
