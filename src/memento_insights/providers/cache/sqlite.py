"""SQLite insight cache provider - Lightweight persistent cache using SQLite"""

import json
import logging
import sqlite3
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from memento_insights.config import Settings
from memento_insights.errors import CacheProviderError
from memento_insights.models import CachedInsightRecord
from memento_insights.providers.base import InsightCacheProvider
from memento_insights.utils.timestamps import parse_timestamp, to_iso, utcnow

logger = logging.getLogger(__name__)

METADATA_COLUMNS = ("model_version", "generation_time_ms", "prompt_tokens", "completion_tokens")


class SQLiteInsightCacheProvider(InsightCacheProvider):
    """SQLite-based insight cache provider"""

    def __init__(self, settings: Settings):
        self.db_path = Path(settings.insight_cache_db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()
        logger.info(f"SQLite insight cache initialized: {self.db_path}")

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with row factory"""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        """Initialize database schema"""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS user_insights (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    insight_type TEXT NOT NULL,
                    content TEXT NOT NULL,
                    entries_analyzed_count INTEGER NOT NULL,
                    generated_at TEXT NOT NULL,
                    expires_at TEXT,
                    is_valid INTEGER NOT NULL DEFAULT 1,
                    model_version TEXT,
                    generation_time_ms INTEGER,
                    prompt_tokens INTEGER,
                    completion_tokens INTEGER
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_user_insights_lookup
                ON user_insights(user_id, insight_type, generated_at)
            """)
            conn.commit()

    def _row_to_record(self, row: sqlite3.Row) -> CachedInsightRecord:
        """Convert a database row to a CachedInsightRecord"""
        return CachedInsightRecord(
            id=row["id"],
            content=json.loads(row["content"]),
            generated_at=parse_timestamp(row["generated_at"]),
            entries_analyzed_count=row["entries_analyzed_count"],
            expires_at=parse_timestamp(row["expires_at"]) if row["expires_at"] else None,
            model_version=row["model_version"],
            generation_time_ms=row["generation_time_ms"],
            prompt_tokens=row["prompt_tokens"],
            completion_tokens=row["completion_tokens"],
        )

    def get_latest(self, user_id: str, insight_type: str) -> CachedInsightRecord | None:
        """Get the newest valid, unexpired record"""
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    """
                    SELECT * FROM user_insights
                    WHERE user_id = ? AND insight_type = ? AND is_valid = 1
                      AND (expires_at IS NULL OR expires_at >= ?)
                    ORDER BY generated_at DESC, rowid DESC
                    LIMIT 1
                    """,
                    (user_id, insight_type, to_iso(utcnow()))
                )
                row = cursor.fetchone()
        except sqlite3.Error as e:
            raise CacheProviderError(f"SQLite cache read failed: {e}") from e

        return self._row_to_record(row) if row else None

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
        """Insert a new record; the newest valid record wins on read"""
        generated_at = generated_at or utcnow()
        expires_at = generated_at + timedelta(hours=ttl_hours)
        metadata = metadata or {}
        record_id = str(uuid.uuid4())

        try:
            with self._get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO user_insights (
                        id, user_id, insight_type, content, entries_analyzed_count,
                        generated_at, expires_at, is_valid,
                        model_version, generation_time_ms, prompt_tokens, completion_tokens
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, 1, ?, ?, ?, ?)
                    """,
                    (
                        record_id, user_id, insight_type, json.dumps(content), entries_count,
                        to_iso(generated_at), to_iso(expires_at),
                        *(metadata.get(column) for column in METADATA_COLUMNS),
                    )
                )
                conn.commit()
        except sqlite3.Error as e:
            raise CacheProviderError(f"SQLite cache write failed: {e}") from e

        logger.debug(f"Stored insight {record_id} for user {user_id[:8]}...")
        return CachedInsightRecord(
            id=record_id,
            content=content,
            generated_at=generated_at,
            entries_analyzed_count=entries_count,
            expires_at=expires_at,
            **{column: metadata.get(column) for column in METADATA_COLUMNS},
        )

    def invalidate(self, user_id: str, insight_type: str | None = None) -> int:
        """Flag records invalid without deleting them"""
        with self._get_connection() as conn:
            if insight_type:
                cursor = conn.execute(
                    "UPDATE user_insights SET is_valid = 0 "
                    "WHERE user_id = ? AND insight_type = ? AND is_valid = 1",
                    (user_id, insight_type)
                )
            else:
                cursor = conn.execute(
                    "UPDATE user_insights SET is_valid = 0 WHERE user_id = ? AND is_valid = 1",
                    (user_id,)
                )
            conn.commit()
            count = cursor.rowcount

        logger.info(f"Invalidated {count} cached insight(s) for user {user_id[:8]}...")
        return count

    def cleanup_expired(self) -> int:
        """Delete records whose expiry has passed"""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM user_insights WHERE expires_at IS NOT NULL AND expires_at < ?",
                (to_iso(utcnow()),)
            )
            conn.commit()
            count = cursor.rowcount

        if count:
            logger.info(f"Deleted {count} expired cached insight(s)")
        return count
