"""Data models for journal insights (request, generated content, cache, response)"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# ===== Request =====

class JournalEntry(BaseModel):
    """A single journal entry sent by the client"""
    model_config = ConfigDict(frozen=True, extra="ignore")

    date: str = Field("", description="ISO8601 timestamp of the entry")
    title: str | None = Field(None, description="Entry title (may be empty)")
    content: str = Field(..., description="Entry text content")
    word_count: int = Field(0, ge=0, description="Pre-calculated word count")
    mood: str | None = Field(None, description="Optional mood tag")


class GenerateInsightsRequest(BaseModel):
    """Validated request body"""
    model_config = ConfigDict(frozen=True, extra="ignore")

    entries: list[JournalEntry] = Field(..., description="Entries to analyze")
    force_refresh: bool = Field(False, description="Skip the cache and generate fresh insights")


# ===== Generated content =====

class SourceEntry(BaseModel):
    """Reference to a journal entry that contributed to a theme"""
    model_config = ConfigDict(frozen=True, extra="ignore")

    date: str = Field("", description="YYYY-MM-DD")
    title: str = Field("", description="Exact entry title")


class Annotation(BaseModel):
    """A significant emotional moment tied to one date"""
    model_config = ConfigDict(frozen=True, extra="ignore")

    date: str
    summary: str


class Theme(BaseModel):
    """A recurring emotional pattern identified across entries"""
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    icon: str = ""
    explanation: str = ""
    frequency: str = ""
    source_entries: list[SourceEntry] = Field(default_factory=list)


class InsightContent(BaseModel):
    """Canonical generated insight, as stored in the cache"""
    model_config = ConfigDict(frozen=True, extra="ignore")

    summary: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    annotations: list[Annotation] = Field(default_factory=list)
    themes: list[Theme] = Field(..., min_length=1)


# ===== Cache =====

class CachedInsightRecord(BaseModel):
    """Persisted insight as returned by the cache store"""
    model_config = ConfigDict(frozen=True)

    id: str
    content: dict
    generated_at: datetime
    entries_analyzed_count: int
    expires_at: datetime | None = None
    model_version: str | None = None
    generation_time_ms: int | None = None
    prompt_tokens: int | None = None
    completion_tokens: int | None = None

    def is_expired(self, now: datetime) -> bool:
        """True once now is past expires_at"""
        return self.expires_at is not None and now > self.expires_at

    def age_hours(self, now: datetime) -> float:
        return (now - self.generated_at).total_seconds() / 3600


# ===== Response =====

class InsightResponse(BaseModel):
    """Outbound success body"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    summary: str
    description: str
    annotations: list[Annotation]
    themes: list[Theme]
    entries_analyzed: int = Field(..., alias="entriesAnalyzed")
    generated_at: str = Field(..., alias="generatedAt")
    from_cache: bool = Field(..., alias="fromCache")
    cache_expires_at: str | None = Field(None, alias="cacheExpiresAt")

    def to_dict(self) -> dict:
        """Serialize with wire names, omitting cacheExpiresAt when absent"""
        body = self.model_dump(by_alias=True)
        if body["cacheExpiresAt"] is None:
            del body["cacheExpiresAt"]
        return body
