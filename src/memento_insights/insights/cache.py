"""Cache read and write stages of the insight pipeline.

Both stages are fail-open: a store that cannot be read behaves like an
empty cache, and a store that cannot be written never blocks the response.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from memento_insights.config import Settings
from memento_insights.models import CachedInsightRecord, InsightContent
from memento_insights.providers.base import InsightCacheProvider
from memento_insights.utils.timestamps import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheLookup:
    """Outcome of a cache read.

    A stale record (older than cache_stale_hours) is still a hit; staleness
    is advisory and only logged.
    """
    record: CachedInsightRecord | None = None
    content: InsightContent | None = None
    stale: bool = False

    @property
    def hit(self) -> bool:
        return self.record is not None


MISS = CacheLookup()


@dataclass(frozen=True)
class CacheWriteResult:
    """Outcome of a cache write. Failures are reported here, never raised."""
    ok: bool
    record: CachedInsightRecord | None = None
    error: str | None = None


class CacheReader:
    """Looks up the latest insight for a user and classifies it."""

    def __init__(
        self,
        provider: InsightCacheProvider,
        config: Settings,
        clock: Callable[[], datetime] = utcnow
    ):
        self.provider = provider
        self.config = config
        self.clock = clock

    async def read(self, user_id: str, force_refresh: bool = False) -> CacheLookup:
        if force_refresh:
            logger.info("Force refresh requested, skipping cache")
            return MISS

        try:
            record = await asyncio.to_thread(
                self.provider.get_latest, user_id, self.config.insight_type
            )
        except Exception as e:
            logger.warning(f"Cache read failed, generating fresh insights: {e}")
            return MISS

        if record is None:
            logger.info("Cache MISS")
            return MISS

        now = self.clock()
        if record.is_expired(now):
            logger.info(f"Cache record {record.id} expired at {record.expires_at}, treating as miss")
            return MISS

        try:
            content = InsightContent.model_validate(record.content)
        except ValidationError as e:
            logger.warning(
                f"Cache record {record.id} has unreadable content "
                f"({e.error_count()} error(s)), treating as miss"
            )
            return MISS

        age_hours = record.age_hours(now)
        stale = age_hours > self.config.cache_stale_hours
        if stale:
            logger.info(f"Cache HIT but {round(age_hours)}h old, consider a refresh")
        else:
            logger.info("Cache HIT")

        return CacheLookup(record=record, content=content, stale=stale)


class CacheWriter:
    """Persists freshly generated insights with the configured TTL."""

    def __init__(self, provider: InsightCacheProvider, config: Settings):
        self.provider = provider
        self.config = config

    async def write(
        self,
        user_id: str,
        content: InsightContent,
        entries_count: int,
        generated_at: datetime,
        metadata: dict[str, Any] | None = None
    ) -> CacheWriteResult:
        try:
            record = await asyncio.to_thread(
                self.provider.upsert,
                user_id,
                self.config.insight_type,
                content.model_dump(),
                entries_count,
                self.config.cache_ttl_hours,
                generated_at,
                metadata,
            )
        except Exception as e:
            logger.error(f"Cache save failed (response unaffected): {e}", exc_info=True)
            return CacheWriteResult(ok=False, error=str(e))

        logger.info(f"Saved to cache (expires in {self.config.cache_ttl_hours}h)")
        return CacheWriteResult(ok=True, record=record)
