"""In-memory insight cache provider - process-local store for development and tests"""

import logging
import threading
import uuid
from datetime import datetime, timedelta
from typing import Any

from memento_insights.config import Settings
from memento_insights.models import CachedInsightRecord
from memento_insights.providers.base import InsightCacheProvider
from memento_insights.utils.timestamps import utcnow

logger = logging.getLogger(__name__)


class InMemoryInsightCacheProvider(InsightCacheProvider):
    """Keeps every generated record in a dict keyed by (user_id, insight_type).

    Nothing survives a restart. Records are appended newest-last and
    invalidation flips a flag instead of deleting, mirroring the SQL stores.
    """

    def __init__(self, settings: Settings | None = None):
        self._records: dict[tuple[str, str], list[tuple[CachedInsightRecord, bool]]] = {}
        self._lock = threading.Lock()

    def get_latest(self, user_id: str, insight_type: str) -> CachedInsightRecord | None:
        now = utcnow()
        with self._lock:
            for record, valid in reversed(self._records.get((user_id, insight_type), [])):
                if valid and not record.is_expired(now):
                    return record
        return None

    def upsert(
        self,
        user_id: str,
        insight_type: str,
        content: dict[str, Any],
        entries_count: int,
        ttl_hours: int,
        generated_at: datetime | None = None,
        metadata: dict[str, Any] | None = None
    ) -> CachedInsightRecord:
        generated_at = generated_at or utcnow()
        record = CachedInsightRecord(
            id=str(uuid.uuid4()),
            content=content,
            generated_at=generated_at,
            entries_analyzed_count=entries_count,
            expires_at=generated_at + timedelta(hours=ttl_hours),
            **(metadata or {}),
        )
        with self._lock:
            self._records.setdefault((user_id, insight_type), []).append((record, True))
        return record

    def invalidate(self, user_id: str, insight_type: str | None = None) -> int:
        count = 0
        with self._lock:
            for (owner, kind), records in self._records.items():
                if owner != user_id or (insight_type and kind != insight_type):
                    continue
                for i, (record, valid) in enumerate(records):
                    if valid:
                        records[i] = (record, False)
                        count += 1
        logger.info(f"Invalidated {count} cached insight(s) for user {user_id[:8]}...")
        return count

    def cleanup_expired(self) -> int:
        now = utcnow()
        count = 0
        with self._lock:
            for key, records in self._records.items():
                kept = [(r, v) for r, v in records if not r.is_expired(now)]
                count += len(records) - len(kept)
                self._records[key] = kept
        return count
