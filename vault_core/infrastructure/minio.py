"""
MinIO client connector for docvault.

This module provides a singleton MinIO client shared by the remote
storage backend. The client is built with an explicit urllib3 pool so
every request has finite connect/read timeouts and urllib3 performs no
hidden retries (the ingestion pipeline owns the retry decision).
"""

import urllib3
from loguru import logger
from minio import Minio

from vault_core.config import Settings, settings as default_settings


class MinioClientConnector:
    """
    Singleton connector for MinIO object storage.

    Usage:
        client = MinioClientConnector.get_instance()
        client.put_object(bucket_name="docvault", ...)
    """

    _instance: Minio | None = None

    @classmethod
    def get_instance(cls, settings: Settings | None = None) -> Minio:
        """
        Get or create the MinIO client instance.

        Args:
            settings: Settings to build the client from on first use.

        Returns:
            Minio: The MinIO client instance.
        """
        if cls._instance is None:
            cfg = settings or default_settings
            timeout = cfg.STORAGE_TIMEOUT_SECONDS
            try:
                cls._instance = Minio(
                    endpoint=cfg.MINIO_ENDPOINT,
                    access_key=cfg.MINIO_ACCESS_KEY,
                    secret_key=cfg.MINIO_SECRET_KEY,
                    secure=cfg.MINIO_SECURE,
                    http_client=urllib3.PoolManager(
                        timeout=urllib3.Timeout(connect=min(timeout, 10.0), read=timeout),
                        retries=False,
                    ),
                )
                logger.info(f"Connected to MinIO at '{cfg.MINIO_ENDPOINT}'")
            except Exception as e:
                logger.error(f"Failed to connect to MinIO at '{cfg.MINIO_ENDPOINT}': {e}")
                raise

        return cls._instance


def get_minio_client(settings: Settings | None = None) -> Minio:
    """
    Convenience function to get the MinIO client.

    Returns:
        Minio: The MinIO client instance.
    """
    return MinioClientConnector.get_instance(settings)
