"""Unit tests for ActivityRecorder."""

from datetime import datetime, timezone

import psycopg

from app.documents.services.activity import ActivityRecorder
from vault_core.domain.models import ActivityAction


class TestRecord:
    def test_record_inserts_name_snapshot(self, mock_postgres):
        cursor = mock_postgres["cursor"]

        ActivityRecorder().record("user-1", ActivityAction.RENAME, "doc-1", "New Name")

        sql, params = cursor.execute.call_args[0]
        assert "INSERT INTO activity_logs" in sql
        assert params[1:5] == ("user-1", "rename", "doc-1", "New Name")
        mock_postgres["connection"].commit.assert_called_once()

    def test_record_never_raises(self, mock_postgres):
        mock_postgres["cursor"].execute.side_effect = psycopg.OperationalError("down")

        ActivityRecorder().record("user-1", ActivityAction.VIEW, "doc-1", "Doc")

    def test_record_survives_connection_failure(self, mock_postgres):
        mock_postgres["connect"].side_effect = psycopg.OperationalError("refused")

        ActivityRecorder().record("user-1", ActivityAction.VIEW, "doc-1", "Doc")


class TestList:
    def test_list_newest_first_with_limit(self, mock_postgres):
        cursor = mock_postgres["cursor"]
        cursor.fetchall.return_value = [
            {
                "activity_id": "act-2",
                "user_id": "user-1",
                "action": "delete",
                "document_id": "doc-1",
                "document_name": "Passport",
                "created_at": datetime(2026, 3, 2, tzinfo=timezone.utc),
            },
        ]

        entries = ActivityRecorder().list_for_user("user-1", limit=10)

        sql, params = cursor.execute.call_args[0]
        assert "ORDER BY created_at DESC" in sql
        assert params == ("user-1", 10)
        assert entries[0].action == ActivityAction.DELETE
        assert entries[0].document_name == "Passport"

    def test_limit_is_clamped(self, mock_postgres):
        cursor = mock_postgres["cursor"]
        recorder = ActivityRecorder()

        recorder.list_for_user("user-1", limit=10_000)
        assert cursor.execute.call_args[0][1] == ("user-1", 200)

        recorder.list_for_user("user-1", limit=0)
        assert cursor.execute.call_args[0][1] == ("user-1", 1)
