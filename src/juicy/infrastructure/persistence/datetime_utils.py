"""Datetime utilities for persistence layer."""

from datetime import datetime, timezone


def normalize_to_utc(dt: datetime) -> datetime:
    """Ensure datetime is UTC and timezone-aware.

    SQLite stores datetimes without timezone info. Naive values read back
    are treated as UTC; aware values are converted to UTC.

    Args:
        dt: datetime to process

    Returns:
        timezone-aware datetime in UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_storage(dt: datetime) -> datetime:
    """Convert a datetime to the naive UTC form stored in SQLite.

    Values written and compared in queries must share one representation,
    otherwise string comparison in SQLite orders them incorrectly.

    Args:
        dt: datetime to convert (naive values are treated as UTC)

    Returns:
        naive datetime in UTC
    """
    return normalize_to_utc(dt).replace(tzinfo=None)
