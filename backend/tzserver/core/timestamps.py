"""Timestamps — fixed-width UTC date-time strings for change tracking.

Invariants:
    - Every stamp produced here is exactly "YYYY-MM-DDTHH:MM:SSZ" (20 chars)
    - Lexicographic order of produced stamps equals chronological order
    - Naive inputs are taken as UTC
"""

from datetime import date, datetime, timezone

from tzserver.core.domain_types import UtcStamp

UTC_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def to_utc_stamp(value: datetime | date) -> UtcStamp:
    """Format a datetime (or date, taken as midnight UTC) as a fixed-width stamp."""
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return UtcStamp(value.astimezone(timezone.utc).strftime(UTC_FORMAT))


def normalize_utc(value: str) -> UtcStamp:
    """Parse an ISO-8601 date-time (extended or basic form) into a fixed-width stamp.

    Raises ValueError when the value is not a recognizable date-time.
    """
    text = value.strip()
    if not text:
        raise ValueError("empty timestamp")
    return to_utc_stamp(datetime.fromisoformat(text))
