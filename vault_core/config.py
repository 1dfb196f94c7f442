"""
Unified configuration for docvault.

This module provides a single Settings class that consolidates all
environment variables used by the API, the storage backends and the
maintenance scripts. Constructors across the codebase accept a Settings
instance and fall back to the module-level ``settings`` when none is given.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Determine project root for .env file loading (allows running from any CWD)
PROJECT_ROOT = Path(__file__).resolve().parent.parent

GIB = 1024 * 1024 * 1024
MIB = 1024 * 1024


class Settings(BaseSettings):
    """
    Unified settings for all docvault services.

    Environment variables are loaded from .env file and can be overridden
    by actual environment variables.
    """

    # Service identification
    SERVICE_NAME: str = "docvault"

    # PostgreSQL
    POSTGRES_DSN: str = "host=localhost port=5432 dbname=docvault user=postgres password=postgres"
    DB_CONNECT_TIMEOUT: int = 5
    DB_STATEMENT_TIMEOUT_MS: int = 10_000

    # MinIO (remote object storage). Leave credentials empty to store on local disk.
    MINIO_ENDPOINT: str = ""
    MINIO_ACCESS_KEY: str = ""
    MINIO_SECRET_KEY: str = ""
    MINIO_BUCKET: str = "docvault"
    MINIO_SECURE: bool = False
    MINIO_PUBLIC_URL: str = ""
    STORAGE_TIMEOUT_SECONDS: float = 30.0
    PRESIGNED_URL_TTL: int = 900

    # Local disk storage
    LOCAL_STORAGE_PATH: str = str(PROJECT_ROOT / "uploads")
    PUBLIC_BASE_URL: str = "http://localhost:8081"

    # Upload policy
    ALLOWED_FILE_TYPES: str = (
        "application/pdf,image/jpeg,image/jpg,image/png,image/webp,image/gif"
    )
    MAX_FILE_SIZE: int = 20 * MIB

    # Quotas
    DEFAULT_STORAGE_LIMIT: int = GIB
    GUEST_STORAGE_LIMIT: int = 100 * MIB

    # Auth settings
    JWT_SECRET: str = ""
    JWT_ACCESS_TTL: int = 7 * 24 * 3600

    # HTTP surface
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8081
    CORS_ORIGINS: str = "http://localhost:8080,http://localhost:5173"
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    model_config = SettingsConfigDict(
        env_file=PROJECT_ROOT / ".env",
        extra="ignore"
    )

    @property
    def storage_mode(self) -> str:
        """'remote' when MinIO credentials are configured, otherwise 'local'."""
        if self.MINIO_ENDPOINT and self.MINIO_ACCESS_KEY and self.MINIO_SECRET_KEY:
            return "remote"
        return "local"

    @property
    def allowed_mime_types(self) -> frozenset[str]:
        return frozenset(
            t.strip().lower() for t in self.ALLOWED_FILE_TYPES.split(",") if t.strip()
        )

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


# Global settings instance
settings = Settings()  # type: ignore
