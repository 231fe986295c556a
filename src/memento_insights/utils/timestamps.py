"""Timestamp helpers shared by the cache layer and the API."""
from datetime import datetime, timezone

from pydantic import TypeAdapter

# Accepts any fraction width; Postgres trims trailing zeros from timestamptz
_DATETIME = TypeAdapter(datetime)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """Format as ISO8601 in UTC with millisecond precision and a trailing Z."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO8601 string (Z suffix allowed) into an aware UTC datetime.

    Raises:
        ValueError: If the value is not a timestamp
    """
    if isinstance(value, str):
        value = value.strip()
    parsed = _DATETIME.validate_python(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_entry_date(value: str) -> str:
    """Reduce an entry timestamp to YYYY-MM-DD, keeping the raw string if unparsable."""
    try:
        return parse_timestamp(value).date().isoformat()
    except (ValueError, AttributeError):
        return value
