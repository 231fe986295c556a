"""Supabase insight cache provider - user_insights table via PostgREST RPC functions

The store is driven through four SQL functions:
    get_cached_insight(p_user_id, p_insight_type, p_date_start, p_date_end)
    save_insight_cache(p_user_id, p_insight_type, p_content, p_entries_count, p_ttl_hours)
    invalidate_insights(p_user_id, p_insight_type)
    cleanup_expired_insights()

Expiry is computed server-side from p_ttl_hours, and reads already filter
out invalid and expired rows.
"""

import logging
from datetime import datetime, timedelta
from typing import Any

import httpx

from memento_insights.config import Settings
from memento_insights.errors import CacheProviderError
from memento_insights.models import CachedInsightRecord
from memento_insights.providers.base import InsightCacheProvider
from memento_insights.providers.resilience import (
    CircuitOpenError,
    HttpClient,
    HttpClientConfig,
    HttpClientFactory,
)
from memento_insights.utils.timestamps import parse_timestamp, utcnow

logger = logging.getLogger(__name__)


class SupabaseInsightCacheProvider(InsightCacheProvider):
    """Insight cache backed by Supabase Postgres"""

    def __init__(self, settings: Settings, http_client: HttpClient | None = None):
        settings.validate_supabase_config()
        key = settings.supabase_service_role_key or settings.supabase_anon_key
        self.client = http_client or HttpClientFactory.get_client(
            "supabase-rest",
            HttpClientConfig(
                base_url=settings.supabase_url,
                headers={"apikey": key, "Authorization": f"Bearer {key}"},
                timeout=settings.supabase_timeout,
                max_retries=settings.supabase_max_retries,
            )
        )
        logger.info(f"Supabase insight cache initialized: {settings.supabase_url}")

    def _rpc(self, function: str, params: dict[str, Any]) -> Any:
        """Call a Postgres function and return its decoded JSON result"""
        try:
            response = self.client.post(f"/rest/v1/rpc/{function}", json=params)
        except (httpx.HTTPError, CircuitOpenError) as e:
            raise CacheProviderError(f"{function} failed: {e}") from e

        if response.status_code >= 400:
            raise CacheProviderError(
                f"{function} returned {response.status_code}: {response.text[:200]}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise CacheProviderError(f"{function} returned non-JSON body") from e

    def get_latest(self, user_id: str, insight_type: str) -> CachedInsightRecord | None:
        rows = self._rpc("get_cached_insight", {
            "p_user_id": user_id,
            "p_insight_type": insight_type,
            "p_date_start": None,
            "p_date_end": None,
        })
        if not rows:
            return None

        row = rows[0] if isinstance(rows, list) else rows
        try:
            return CachedInsightRecord(
                id=str(row["id"]),
                content=row["content"],
                generated_at=parse_timestamp(row["generated_at"]),
                entries_analyzed_count=row["entries_analyzed_count"],
                expires_at=parse_timestamp(row["expires_at"]) if row.get("expires_at") else None,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise CacheProviderError(f"get_cached_insight returned a malformed row: {e}") from e

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
        record_id = self._rpc("save_insight_cache", {
            "p_user_id": user_id,
            "p_insight_type": insight_type,
            "p_content": content,
            "p_entries_count": entries_count,
            "p_ttl_hours": ttl_hours,
        })
        logger.info(f"Saved insight to cache for user {user_id[:8]}... (expires in {ttl_hours}h)")

        # The row itself is timestamped by Postgres; this mirrors it closely enough for callers
        generated_at = generated_at or utcnow()
        return CachedInsightRecord(
            id=str(record_id),
            content=content,
            generated_at=generated_at,
            entries_analyzed_count=entries_count,
            expires_at=generated_at + timedelta(hours=ttl_hours),
            **(metadata or {}),
        )

    def invalidate(self, user_id: str, insight_type: str | None = None) -> int:
        count = self._rpc("invalidate_insights", {
            "p_user_id": user_id,
            "p_insight_type": insight_type,
        })
        logger.info(f"Invalidated {count} cached insight(s) for user {user_id[:8]}...")
        return int(count or 0)

    def cleanup_expired(self) -> int:
        rows = self._rpc("cleanup_expired_insights", {})
        if isinstance(rows, list):
            rows = rows[0] if rows else {}
        return int((rows or {}).get("deleted_count") or 0)
