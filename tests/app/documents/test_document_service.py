"""Unit tests for DocumentService read/update flows."""

from pathlib import Path

import pytest

from app.documents.services.document_service import DocumentService
from tests.app.documents.fakes import (
    GIB,
    FakeActivityRecorder,
    FakeDocumentIndex,
    FakeQuotaLedger,
    FakeStorage,
)
from vault_core.domain.exceptions import NotFoundError, StorageFailure
from vault_core.domain.models import Category, DocumentUpdate, StorageKind
from vault_core.runtime.errors import ErrorCode, RetryableError

USER = "user-1"


@pytest.fixture
def index():
    return FakeDocumentIndex()


@pytest.fixture
def activity():
    return FakeActivityRecorder()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def quota():
    ledger = FakeQuotaLedger()
    ledger.add_user(USER, used=300, limit=GIB)
    return ledger


@pytest.fixture
def service(index, activity, storage, quota):
    return DocumentService(index, activity, storage, quota)


class TestGet:
    def test_get_records_view(self, service, index, activity):
        document = index.add(USER, "Passport")

        assert service.get(USER, document.id).id == document.id
        assert activity.actions() == ["view"]

    def test_get_foreign_document_is_not_found(self, service, index, activity):
        document = index.add("user-2", "Secret")

        with pytest.raises(NotFoundError):
            service.get(USER, document.id)
        assert activity.entries == []


class TestUpdate:
    def test_rename_records_rename_with_new_name(self, service, index, activity):
        document = index.add(USER, "Old")

        updated = service.update(USER, document.id, DocumentUpdate(name="New"))

        assert updated.name == "New"
        assert activity.actions() == ["rename"]
        assert activity.entries[0].document_name == "New"

    def test_archive_change_records_archive(self, service, index, activity):
        document = index.add(USER, "Doc")

        service.update(USER, document.id, DocumentUpdate(is_archived=True))

        assert activity.actions() == ["archive"]

    def test_category_change_not_logged(self, service, index, activity):
        document = index.add(USER, "Doc")

        updated = service.update(USER, document.id, DocumentUpdate(category=Category.LEGAL))

        assert updated.category == Category.LEGAL
        assert activity.entries == []

    def test_rename_keeps_earlier_snapshots(self, service, index, activity):
        document = index.add(USER, "First")
        service.get(USER, document.id)

        service.update(USER, document.id, DocumentUpdate(name="Second"))

        assert [entry.document_name for entry in activity.entries] == ["First", "Second"]


class TestToggles:
    def test_toggle_archive_flips_and_logs(self, service, index, activity):
        document = index.add(USER, "Doc")

        assert service.toggle_archive(USER, document.id).is_archived is True
        assert service.toggle_archive(USER, document.id).is_archived is False
        assert activity.actions() == ["archive", "archive"]

    def test_toggle_favorite_flips_without_logging(self, service, index, activity):
        document = index.add(USER, "Doc")

        assert service.toggle_favorite(USER, document.id).is_favorite is True
        assert activity.entries == []


class TestDownload:
    def test_remote_download_returns_url(self, service, index, activity):
        document = index.add(USER, "Doc")

        target = service.prepare_download(USER, document.id)

        assert target.url.startswith("https://signed.test/")
        assert target.path is None
        assert activity.actions() == ["download"]

    def test_local_download_returns_path(self, index, activity, quota):
        storage = FakeStorage(kind=StorageKind.LOCAL)
        service = DocumentService(index, activity, storage, quota)
        document = index.add(
            USER, "Doc", storage_kind=StorageKind.LOCAL, storage_locator=f"{USER}/1.pdf"
        )

        target = service.prepare_download(USER, document.id)

        assert target.path == Path("/srv/uploads") / USER / "1.pdf"
        assert target.url is None

    def test_storage_error_becomes_storage_failure(self, service, index, storage, activity, monkeypatch):
        document = index.add(USER, "Doc")

        def failing_locate(locator):
            raise RetryableError(code=ErrorCode.STORAGE_UNAVAILABLE, message_safe="down")

        monkeypatch.setattr(storage, "locate", failing_locate)

        with pytest.raises(StorageFailure):
            service.prepare_download(USER, document.id)
        assert activity.entries == []


class TestStats:
    def test_stats_counts_non_archived_by_category(self, service, index):
        index.add(USER, "A", category=Category.IDENTITY)
        index.add(USER, "B", category=Category.IDENTITY)
        archived = index.add(USER, "C", category=Category.TRAVEL)
        service.toggle_archive(USER, archived.id)
        index.add("user-2", "D", category=Category.TRAVEL)

        stats = service.stats(USER)

        assert stats.used == 300
        assert stats.limit == GIB
        assert stats.document_count == 2
        assert stats.category_breakdown["identity"] == 2
        assert stats.category_breakdown["travel"] == 0
        assert len(stats.category_breakdown) == 8

    def test_guest_stats_are_empty(self, service):
        stats = service.guest_stats()

        assert stats.used == 0
        assert stats.document_count == 0
        assert stats.limit == 100 * 1024 * 1024
