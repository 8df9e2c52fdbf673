"""
Document Store
==============

Key/value document persistence used for the source list, the cached item
snapshot and diagnostic logs.

``DocumentStore`` is the collaborator interface. ``SQLiteDocumentStore``
persists to the pooled SQLite database; ``InMemoryDocumentStore`` keeps
everything in process and is used for tests and dry runs.

All failures surface as ``StorageError``.
"""

import copy
import json
import sqlite3
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from .connection import DatabaseConnection
from ..utils.exceptions import StorageError, ErrorCode
from ..utils.logging import get_logger_for_component

Document = Dict[str, Any]


class DocumentStore(ABC):
    """Collection/key addressed JSON document store."""

    @abstractmethod
    def get(self, collection: str, key: str) -> Optional[Document]:
        """Return the document or None when absent."""

    @abstractmethod
    def set(self, collection: str, key: str, document: Document) -> None:
        """Create or overwrite a document."""

    @abstractmethod
    def delete(self, collection: str, key: str) -> None:
        """Delete a document; deleting an absent key is a no-op."""

    @abstractmethod
    def list_all(self, collection: str) -> List[Tuple[str, Document]]:
        """All ``(key, document)`` pairs of a collection in write order."""

    @abstractmethod
    def write_batch(self, collection: str, documents: List[Tuple[str, Document]]) -> int:
        """Write several documents at once. Later duplicates of a key win."""

    @abstractmethod
    def delete_all(self, collection: str) -> int:
        """Delete every document in a collection; returns the count removed."""

    @abstractmethod
    def replace_collection(self, collection: str, documents: List[Tuple[str, Document]]) -> int:
        """Delete all documents of a collection then write ``documents``.

        Readers observe either the old or the new complete collection.
        Returns the number of distinct keys written.
        """


class SQLiteDocumentStore(DocumentStore):
    """Document store persisted in the ``documents`` SQLite table."""

    def __init__(self, db_connection: DatabaseConnection):
        """Initialize the store.

        Args:
            db_connection: Database connection manager
        """
        self.db = db_connection
        self.logger = get_logger_for_component("document_store")

    def get(self, collection: str, key: str) -> Optional[Document]:
        try:
            with self.db.get_connection() as conn:
                row = conn.execute(
                    "SELECT body FROM documents WHERE collection = ? AND key = ?",
                    (collection, key),
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(
                f"Failed to read {collection}/{key}: {e}",
                collection=collection,
                operation="get",
            ) from e

        return self._decode(row["body"], collection) if row else None

    def set(self, collection: str, key: str, document: Document) -> None:
        self.write_batch(collection, [(key, document)])

    def delete(self, collection: str, key: str) -> None:
        try:
            with self.db.transaction() as conn:
                conn.execute(
                    "DELETE FROM documents WHERE collection = ? AND key = ?",
                    (collection, key),
                )
        except sqlite3.Error as e:
            raise StorageError(
                f"Failed to delete {collection}/{key}: {e}",
                collection=collection,
                operation="delete",
                error_code=ErrorCode.STORAGE_WRITE,
            ) from e

    def list_all(self, collection: str) -> List[Tuple[str, Document]]:
        try:
            with self.db.get_connection() as conn:
                rows = conn.execute(
                    "SELECT key, body FROM documents WHERE collection = ? ORDER BY seq, key",
                    (collection,),
                ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(
                f"Failed to list {collection}: {e}",
                collection=collection,
                operation="list_all",
            ) from e

        return [(row["key"], self._decode(row["body"], collection)) for row in rows]

    def write_batch(self, collection: str, documents: List[Tuple[str, Document]]) -> int:
        if not documents:
            return 0
        try:
            with self.db.transaction() as conn:
                return self._insert(conn, collection, documents)
        except (sqlite3.Error, TypeError, ValueError) as e:
            raise StorageError(
                f"Failed to write {len(documents)} documents to {collection}: {e}",
                collection=collection,
                operation="write_batch",
                error_code=ErrorCode.STORAGE_WRITE,
            ) from e

    def delete_all(self, collection: str) -> int:
        try:
            with self.db.transaction() as conn:
                cursor = conn.execute(
                    "DELETE FROM documents WHERE collection = ?", (collection,)
                )
                return cursor.rowcount
        except sqlite3.Error as e:
            raise StorageError(
                f"Failed to clear {collection}: {e}",
                collection=collection,
                operation="delete_all",
                error_code=ErrorCode.STORAGE_WRITE,
            ) from e

    def replace_collection(self, collection: str, documents: List[Tuple[str, Document]]) -> int:
        try:
            with self.db.transaction() as conn:
                deleted = conn.execute(
                    "DELETE FROM documents WHERE collection = ?", (collection,)
                ).rowcount
                written = self._insert(conn, collection, documents)
        except (sqlite3.Error, TypeError, ValueError) as e:
            raise StorageError(
                f"Failed to replace {collection}: {e}",
                collection=collection,
                operation="replace_collection",
                error_code=ErrorCode.STORAGE_WRITE,
            ) from e

        self.logger.debug(
            f"Replaced {collection}: {deleted} removed, {written} written"
        )
        return written

    def _insert(self, conn: sqlite3.Connection, collection: str,
                documents: List[Tuple[str, Document]]) -> int:
        row = conn.execute(
            "SELECT COALESCE(MAX(seq), 0) FROM documents WHERE collection = ?",
            (collection,),
        ).fetchone()
        next_seq = row[0] + 1

        rows = [
            (collection, key, json.dumps(document, ensure_ascii=False), next_seq + i)
            for i, (key, document) in enumerate(documents)
        ]
        conn.executemany(
            """
            INSERT INTO documents (collection, key, body, seq, updated_at)
            VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(collection, key) DO UPDATE SET
                body = excluded.body,
                updated_at = excluded.updated_at
            """,
            rows,
        )
        return len({key for key, _ in documents})

    def _decode(self, body: str, collection: str) -> Document:
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise StorageError(
                f"Corrupt document body in {collection}: {e}",
                collection=collection,
                operation="decode",
            ) from e


class InMemoryDocumentStore(DocumentStore):
    """Process-local document store."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Document]] = {}
        self._lock = threading.Lock()

    def get(self, collection: str, key: str) -> Optional[Document]:
        with self._lock:
            document = self._collections.get(collection, {}).get(key)
            return copy.deepcopy(document) if document is not None else None

    def set(self, collection: str, key: str, document: Document) -> None:
        self.write_batch(collection, [(key, document)])

    def delete(self, collection: str, key: str) -> None:
        with self._lock:
            self._collections.get(collection, {}).pop(key, None)

    def list_all(self, collection: str) -> List[Tuple[str, Document]]:
        with self._lock:
            return [
                (key, copy.deepcopy(document))
                for key, document in self._collections.get(collection, {}).items()
            ]

    def write_batch(self, collection: str, documents: List[Tuple[str, Document]]) -> int:
        with self._lock:
            target = self._collections.setdefault(collection, {})
            for key, document in documents:
                target[key] = copy.deepcopy(document)
        return len({key for key, _ in documents})

    def delete_all(self, collection: str) -> int:
        with self._lock:
            removed = self._collections.pop(collection, {})
        return len(removed)

    def replace_collection(self, collection: str, documents: List[Tuple[str, Document]]) -> int:
        replacement: Dict[str, Document] = {}
        for key, document in documents:
            replacement[key] = copy.deepcopy(document)
        with self._lock:
            self._collections[collection] = replacement
        return len(replacement)
