"""
Log Repository
==============

Append-only persisted diagnostic log entries.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..config.settings import BrewNewsSettings
from ..database.document_store import DocumentStore


class LogRepository:
    """Persists ``{timestamp, level, message, details}`` entries."""

    def __init__(self, store: DocumentStore, settings: BrewNewsSettings):
        self.store = store
        self.collection = settings.cache.logs_collection

    def add_log(
        self,
        level: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        timestamp: Optional[datetime] = None,
    ) -> str:
        timestamp = timestamp or datetime.now(timezone.utc)
        key = f"{timestamp.strftime('%Y%m%dT%H%M%S%f')}-{uuid.uuid4().hex[:8]}"
        document = {
            "timestamp": timestamp.isoformat(),
            "level": level,
            "message": message,
        }
        if details:
            document["details"] = {k: _jsonable(v) for k, v in details.items()}

        self.store.set(self.collection, key, document)
        return key

    def recent(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Most recent entries, newest first."""
        entries = [document for _, document in self.store.list_all(self.collection)]
        entries.sort(key=lambda d: d.get("timestamp", ""), reverse=True)
        return entries[:limit]


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return str(value)
