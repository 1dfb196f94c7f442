"""Unit tests for the PostgreSQL connection helper."""

import psycopg
import pytest

from vault_core.infrastructure.postgres import get_db_connection


def test_connect_applies_timeouts(mock_postgres):
    from vault_core.config import Settings

    get_db_connection(Settings(POSTGRES_DSN="dbname=t", DB_CONNECT_TIMEOUT=3, DB_STATEMENT_TIMEOUT_MS=1500))

    args, kwargs = mock_postgres["connect"].call_args
    assert args == ("dbname=t",)
    assert kwargs["connect_timeout"] == 3
    assert kwargs["options"] == "-c statement_timeout=1500"


def test_connect_failure_propagates(mock_postgres):
    mock_postgres["connect"].side_effect = psycopg.OperationalError("refused")

    with pytest.raises(psycopg.OperationalError):
        get_db_connection()
