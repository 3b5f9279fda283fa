"""Date and time utility functions."""
from datetime import date, datetime, timezone
from typing import Optional


def parse_timestamp(timestamp: str) -> datetime:
    """
    Parse an ISO 8601 timestamp.

    Args:
        timestamp: e.g. "2025-09-01T10:15:00+00:00" or "2025-09-01T10:15:00Z"

    Returns:
        Timezone-aware datetime (naive input is taken as UTC)

    Raises:
        ValueError: If the timestamp is not ISO 8601
    """
    if not isinstance(timestamp, str):
        raise ValueError(f"Invalid timestamp: {timestamp!r}")
    parsed = datetime.fromisoformat(timestamp.replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(timestamp: Optional[str], fmt: str = "%Y-%m-%d %H:%M") -> str:
    """
    Render a stored timestamp in local time.

    Returns:
        Formatted string, "" for a missing value, or the raw value if it
        cannot be parsed
    """
    if not timestamp:
        return ""
    try:
        return parse_timestamp(timestamp).astimezone().strftime(fmt)
    except ValueError:
        return timestamp


def format_date(timestamp: Optional[str]) -> str:
    """Local date part of a stored timestamp."""
    return format_timestamp(timestamp, "%Y-%m-%d")


def today_iso(today: Optional[date] = None) -> str:
    """Today's date as YYYY-MM-DD."""
    return (today or date.today()).isoformat()
