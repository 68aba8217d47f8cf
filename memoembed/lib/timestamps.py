"""Timestamp utilities for record capture times."""

from datetime import datetime, timezone


def generate_timestamp() -> datetime:
    """
    Generate a timezone-aware UTC timestamp.

    Returns:
        datetime: Current UTC time with timezone info
    """
    return datetime.now(timezone.utc)


def to_epoch_millis(dt: datetime) -> int:
    """
    Convert a datetime to milliseconds since the Unix epoch.

    Naive datetimes are treated as UTC.

    Args:
        dt: Datetime to convert

    Returns:
        int: Milliseconds since 1970-01-01T00:00:00Z
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def from_epoch_millis(millis: int) -> datetime:
    """
    Convert milliseconds since the Unix epoch to a UTC datetime.

    Args:
        millis: Milliseconds since 1970-01-01T00:00:00Z

    Returns:
        datetime: Timezone-aware UTC datetime
    """
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
