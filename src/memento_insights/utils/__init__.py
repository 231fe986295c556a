"""Utility modules for memento-insights."""

from .timestamps import (
    format_entry_date,
    parse_timestamp,
    to_iso,
    utcnow,
)

__all__ = [
    "format_entry_date",
    "parse_timestamp",
    "to_iso",
    "utcnow",
]
