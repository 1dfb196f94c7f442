"""
PostgreSQL connection helper for docvault.

This module provides a simple connection function for PostgreSQL access.
Uses psycopg for the connection.
"""

import psycopg
from loguru import logger

from vault_core.config import Settings, settings as default_settings


def get_db_connection(settings: Settings | None = None) -> psycopg.Connection:
    """
    Get a PostgreSQL database connection.

    Returns a context manager that can be used with 'with' statement.
    The transaction is committed when the block exits cleanly and rolled
    back otherwise; the connection is closed in both cases.

    Every connection is opened with a connect timeout and a server-side
    statement_timeout so no query can block a request indefinitely.

    Usage:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM documents")

    Returns:
        psycopg.Connection: A PostgreSQL connection.
    """
    cfg = settings or default_settings
    try:
        conn = psycopg.connect(
            cfg.POSTGRES_DSN,
            connect_timeout=cfg.DB_CONNECT_TIMEOUT,
            options=f"-c statement_timeout={cfg.DB_STATEMENT_TIMEOUT_MS}",
        )
        logger.debug("Connected to PostgreSQL")
        return conn
    except Exception as e:
        logger.error(f"Failed to connect to PostgreSQL: {e}")
        raise
