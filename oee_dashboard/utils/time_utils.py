"""
OEE Dashboard - Time Helpers
"""

from datetime import datetime, timezone
from typing import Optional


def hours_between(start: datetime, end: datetime) -> float:
    """Elapsed hours from start to end (negative if end precedes start)."""
    return (end - start).total_seconds() / 3600


def to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Normalise an instant to naive UTC, the convention used by the record store."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_instant(value: str) -> datetime:
    """Parse an ISO-8601 instant, accepting a trailing 'Z'."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return to_utc_naive(datetime.fromisoformat(value))
