"""
DocumentIndex: the durable catalog of document records.

Every query is scoped by the owning user, so a document id that belongs
to someone else is indistinguishable from one that does not exist.
"""

from __future__ import annotations

import uuid
from collections import Counter
from datetime import datetime, timezone

from loguru import logger
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from vault_core.config import Settings, settings as default_settings
from vault_core.domain.exceptions import NotFoundError
from vault_core.domain.models import (
    Category,
    Document,
    DocumentFilters,
    DocumentUpdate,
    NewDocument,
    matches_search,
)
from vault_core.infrastructure.postgres import get_db_connection

_COLUMNS = """
    document_id, user_id, name, type, category, file_type, size, tags, metadata,
    thumbnail_url, file_url, storage_kind, storage_locator, storage_resource_kind,
    is_archived, is_favorite, created_at, updated_at
"""

# Column names for the fields DocumentUpdate may touch
_MUTABLE_COLUMNS = ("name", "category", "tags", "metadata", "is_archived", "is_favorite")


def _to_db_value(column: str, value):
    if column == "metadata":
        return Jsonb(value.model_dump(mode="json"))
    if column == "category":
        return value.value
    return value


class DocumentIndex:
    """
    Service for storing and querying Document records in PostgreSQL.

    Usage:
        index = DocumentIndex()
        document = index.create(new_document)
        documents = index.list_for_user(user_id, DocumentFilters(search="passport"))
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or default_settings

    def create(self, doc: NewDocument) -> Document:
        """
        Insert a new document, assigning its id and timestamps.

        Returns:
            Document: The stored record.
        """
        document_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)

        with get_db_connection(self.settings) as conn:
            with conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(
                    f"""
                    INSERT INTO documents (
                        document_id, user_id, name, type, category, file_type, size,
                        tags, metadata, thumbnail_url, file_url, storage_kind,
                        storage_locator, storage_resource_kind, is_archived,
                        is_favorite, created_at, updated_at
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s,
                            FALSE, FALSE, %s, %s)
                    RETURNING {_COLUMNS}
                    """,
                    (
                        document_id,
                        doc.user_id,
                        doc.name,
                        doc.type.value,
                        doc.category.value,
                        doc.file_type.value,
                        doc.size,
                        doc.tags,
                        Jsonb(doc.metadata.model_dump(mode="json")),
                        doc.thumbnail_url,
                        doc.file_url,
                        doc.storage_kind.value,
                        doc.storage_locator,
                        doc.storage_resource_kind.value,
                        now,
                        now,
                    ),
                )
                row = cursor.fetchone()
                conn.commit()

        logger.info(f"Indexed document {document_id} for user {doc.user_id}")
        return Document.from_db_row(row)

    def list_for_user(self, user_id: str, filters: DocumentFilters | None = None) -> list[Document]:
        """
        List a user's documents, newest first.

        Category, favorite and archive filters run in SQL; the free-text
        search is applied afterwards as an OR over name, tags, issuer and notes.
        """
        filters = filters or DocumentFilters()
        clauses = ["user_id = %s", "is_archived = %s"]
        params: list = [user_id, filters.is_archived]

        if filters.category is not None:
            clauses.append("category = %s")
            params.append(filters.category.value)
        if filters.is_favorite is not None:
            clauses.append("is_favorite = %s")
            params.append(filters.is_favorite)

        with get_db_connection(self.settings) as conn:
            with conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(
                    f"""
                    SELECT {_COLUMNS}
                    FROM documents
                    WHERE {" AND ".join(clauses)}
                    ORDER BY created_at DESC
                    """,
                    tuple(params),
                )
                rows = cursor.fetchall()

        documents = [Document.from_db_row(row) for row in rows]
        term = (filters.search or "").strip()
        if term:
            documents = [doc for doc in documents if matches_search(doc, term)]
        return documents

    def get(self, user_id: str, document_id: str) -> Document:
        """
        Fetch one document owned by ``user_id``.

        Raises:
            NotFoundError: Unknown id, or the document belongs to another user.
        """
        with get_db_connection(self.settings) as conn:
            with conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(
                    f"SELECT {_COLUMNS} FROM documents WHERE document_id = %s AND user_id = %s",
                    (document_id, user_id),
                )
                row = cursor.fetchone()

        if not row:
            raise NotFoundError()
        return Document.from_db_row(row)

    def update(self, user_id: str, document_id: str, changes: DocumentUpdate) -> Document:
        """
        Apply a partial update to the mutable fields of a document.

        Raises:
            NotFoundError: Unknown id, or the document belongs to another user.
        """
        fields = {
            column: getattr(changes, column)
            for column in _MUTABLE_COLUMNS
            if column in changes.model_fields_set and getattr(changes, column) is not None
        }
        if not fields:
            return self.get(user_id, document_id)

        assignments = ", ".join(f"{column} = %s" for column in fields)
        params = [_to_db_value(column, value) for column, value in fields.items()]

        with get_db_connection(self.settings) as conn:
            with conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(
                    f"""
                    UPDATE documents
                    SET {assignments}, updated_at = %s
                    WHERE document_id = %s AND user_id = %s
                    RETURNING {_COLUMNS}
                    """,
                    (*params, datetime.now(timezone.utc), document_id, user_id),
                )
                row = cursor.fetchone()
                conn.commit()

        if not row:
            raise NotFoundError()
        logger.debug(f"Updated document {document_id}: {sorted(fields)}")
        return Document.from_db_row(row)

    def delete(self, user_id: str, document_id: str) -> None:
        """
        Remove a document record.

        Raises:
            NotFoundError: Unknown id, or the document belongs to another user.
        """
        with get_db_connection(self.settings) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM documents WHERE document_id = %s AND user_id = %s",
                (document_id, user_id),
            )
            deleted = cursor.rowcount
            conn.commit()

        if not deleted:
            raise NotFoundError()
        logger.info(f"Removed document {document_id} from index")

    def total_size(self, user_id: str) -> int:
        """Sum of ``size`` over all of the user's documents, archived included."""
        with get_db_connection(self.settings) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT COALESCE(SUM(size), 0) FROM documents WHERE user_id = %s",
                (user_id,),
            )
            row = cursor.fetchone()
        return int(row[0]) if row else 0

    def category_breakdown(self, user_id: str) -> tuple[int, dict[str, int]]:
        """
        Count the user's non-archived documents per category.

        Returns:
            Tuple of (total count, {category: count}) with every category present.
        """
        documents = self.list_for_user(user_id, DocumentFilters(is_archived=False))
        counts = Counter(doc.category.value for doc in documents)
        return len(documents), {c.value: counts.get(c.value, 0) for c in Category}
