"""
BrewNews Database Schema
========================

SQLite schema for the document store. Every collection shares one
``documents`` table; a document is a JSON body addressed by
``(collection, key)``.
"""

import sqlite3
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class DatabaseSchema:
    """Database schema manager for the BrewNews SQLite document store."""

    def __init__(self, db_path: str = "data/brewnews.db"):
        """Initialize database schema manager.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables."""
        with sqlite3.connect(self.db_path) as conn:
            self._create_documents_table(conn)
            self._create_indexes(conn)
            conn.commit()
            logger.info("Database schema created successfully")

    def _create_documents_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS documents (
                collection TEXT NOT NULL,
                key TEXT NOT NULL,
                body TEXT NOT NULL,
                seq INTEGER NOT NULL DEFAULT 0,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (collection, key)
            )
        """
        )

    def _create_indexes(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_documents_collection_seq "
            "ON documents(collection, seq)"
        )

    def drop_tables(self) -> None:
        """Drop all tables (testing and resets only)."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("DROP TABLE IF EXISTS documents")
            conn.commit()
            logger.warning("All database tables dropped")

    def verify_schema(self) -> bool:
        """Check that the documents table exists."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name='documents'"
            )
            exists = cursor.fetchone() is not None

        if not exists:
            logger.error("Schema verification failed: documents table missing")
        return exists
