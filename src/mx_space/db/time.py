# src/mx_space/db/time.py
"""Time utilities for database models."""

from datetime import UTC, datetime, timedelta


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def start_of_day(moment: datetime) -> datetime:
    """Return midnight of the day containing ``moment``."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(moment: datetime) -> datetime:
    """Return midnight of the Monday of the week containing ``moment``."""
    return start_of_day(moment) - timedelta(days=moment.weekday())
