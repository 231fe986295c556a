"""Builds the outbound response body for success and error outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from memento_insights.errors import InsightError
from memento_insights.models import CachedInsightRecord, InsightContent, InsightResponse
from memento_insights.utils.timestamps import to_iso


@dataclass(frozen=True)
class AssembledResponse:
    """HTTP status plus JSON body, ready for any transport."""
    status_code: int
    body: dict
    insight: InsightResponse | None = None

    @property
    def ok(self) -> bool:
        return self.status_code < 400


class ResponseAssembler:

    def from_cache(self, record: CachedInsightRecord, content: InsightContent) -> AssembledResponse:
        """Cached content is echoed as stored, with its original timestamps.

        content is the validated view used for the typed insight; the body
        carries record.content itself, unknown keys included.
        """
        insight = InsightResponse(
            summary=content.summary,
            description=content.description,
            annotations=content.annotations,
            themes=content.themes,
            entries_analyzed=record.entries_analyzed_count,
            generated_at=to_iso(record.generated_at),
            from_cache=True,
            cache_expires_at=to_iso(record.expires_at) if record.expires_at else None,
        )
        envelope = {
            key: value for key, value in insight.to_dict().items()
            if key not in InsightContent.model_fields
        }
        return AssembledResponse(
            status_code=200,
            body={**record.content, **envelope},
            insight=insight,
        )

    def fresh(
        self,
        content: InsightContent,
        entries_analyzed: int,
        generated_at: datetime
    ) -> AssembledResponse:
        insight = InsightResponse(
            summary=content.summary,
            description=content.description,
            annotations=content.annotations,
            themes=content.themes,
            entries_analyzed=entries_analyzed,
            generated_at=to_iso(generated_at),
            from_cache=False,
        )
        return AssembledResponse(status_code=200, body=insight.to_dict(), insight=insight)

    def error(self, exc: InsightError) -> AssembledResponse:
        return AssembledResponse(status_code=exc.status_code, body=exc.to_dict())
