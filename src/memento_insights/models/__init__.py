"""Data models for memento-insights"""

from .insight import (
    Annotation,
    CachedInsightRecord,
    GenerateInsightsRequest,
    InsightContent,
    InsightResponse,
    JournalEntry,
    SourceEntry,
    Theme,
)

__all__ = [
    'Annotation',
    'CachedInsightRecord',
    'GenerateInsightsRequest',
    'InsightContent',
    'InsightResponse',
    'JournalEntry',
    'SourceEntry',
    'Theme',
]
