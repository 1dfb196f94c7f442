"""
Shared fixtures for the docvault test suite.

Environment defaults are applied before any application module is
imported so the module-level Settings instance picks them up.
"""

import os
import tempfile
from unittest.mock import MagicMock, patch

import pytest

os.environ.setdefault("JWT_SECRET", "test-secret-key-256-bits-long-ok")
os.environ.setdefault("LOCAL_STORAGE_PATH", tempfile.mkdtemp(prefix="docvault-test-"))
os.environ.setdefault("RATE_LIMIT_STORAGE_URI", "memory://")
os.environ["MINIO_ENDPOINT"] = ""
os.environ["MINIO_ACCESS_KEY"] = ""
os.environ["MINIO_SECRET_KEY"] = ""


@pytest.fixture
def mock_postgres():
    """Patch psycopg.connect so every get_db_connection() yields the same mocks.

    Both ``conn.cursor()`` and ``with conn.cursor(row_factory=...) as cur``
    resolve to the same cursor mock.
    """
    cursor = MagicMock()
    cursor.__enter__.return_value = cursor
    cursor.__exit__.return_value = False
    cursor.fetchone.return_value = None
    cursor.fetchall.return_value = []
    cursor.rowcount = 1

    connection = MagicMock()
    connection.__enter__.return_value = connection
    connection.__exit__.return_value = False
    connection.cursor.return_value = cursor

    with patch("vault_core.infrastructure.postgres.psycopg.connect", return_value=connection) as connect:
        yield {"connect": connect, "connection": connection, "cursor": cursor}


@pytest.fixture
def mock_minio_module():
    """Patch the Minio class used by the connector."""
    from vault_core.infrastructure.minio import MinioClientConnector

    MinioClientConnector._instance = None
    with patch("vault_core.infrastructure.minio.Minio") as minio_cls:
        yield minio_cls
    MinioClientConnector._instance = None


@pytest.fixture
def mock_minio_connector():
    """Patch the MinIO client handed to MinIOStorage."""
    client = MagicMock()
    client.bucket_exists.return_value = True
    with patch("app.documents.services.storage.get_minio_client", return_value=client):
        yield client


@pytest.fixture
def remote_settings():
    """Settings for a deployment with MinIO credentials."""
    from vault_core.config import Settings

    return Settings(
        MINIO_ENDPOINT="minio.example.com:9000",
        MINIO_ACCESS_KEY="access",
        MINIO_SECRET_KEY="secret",
        MINIO_BUCKET="vault",
        MINIO_PUBLIC_URL="https://files.example.com",
    )


@pytest.fixture
def local_settings(tmp_path):
    """Settings for a deployment storing bytes under tmp_path."""
    from vault_core.config import Settings

    return Settings(
        MINIO_ENDPOINT="",
        MINIO_ACCESS_KEY="",
        MINIO_SECRET_KEY="",
        LOCAL_STORAGE_PATH=str(tmp_path),
        PUBLIC_BASE_URL="http://vault.test",
    )
