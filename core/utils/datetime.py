"""Datetime utilities for common operations."""

from datetime import datetime, date, timedelta, timezone
from typing import Optional
import math


def now() -> datetime:
    """Get current datetime in UTC."""
    return datetime.now(timezone.utc)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Make a datetime timezone-aware in UTC.

    Naive values (SQLite round-trips drop the offset) are assumed to be UTC.

    Args:
        dt: Datetime to normalize

    Returns:
        Aware datetime in UTC, or None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string, accepting a trailing "Z".

    Args:
        value: Datetime string to parse

    Returns:
        Aware datetime or None if missing/invalid
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return as_utc(parsed)


def add_days(dt: datetime | date, days: int) -> datetime | date:
    """
    Add days to date/datetime.

    Args:
        dt: Date or datetime
        days: Number of days to add (can be negative)

    Returns:
        New date/datetime
    """
    return dt + timedelta(days=days)


def start_of_month(dt: datetime) -> datetime:
    """First instant of the month containing dt, in UTC."""
    dt = as_utc(dt)
    return dt.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def is_within_last_days(dt: Optional[datetime], days: int, reference: datetime) -> bool:
    """
    Check whether dt falls inside the trailing window of `days` ending at reference.

    Args:
        dt: Datetime to check
        days: Window length in days
        reference: End of the window ("now")

    Returns:
        True if reference - days <= dt
    """
    if dt is None:
        return False
    return as_utc(dt) >= as_utc(reference) - timedelta(days=days)


def days_until(target: Optional[datetime], reference: datetime) -> int:
    """
    Whole days from reference until target, rounded up, never negative.

    Args:
        target: Future datetime
        reference: Current datetime

    Returns:
        Days remaining (0 when target is missing or past)
    """
    if target is None:
        return 0
    seconds = (as_utc(target) - as_utc(reference)).total_seconds()
    if seconds <= 0:
        return 0
    return math.ceil(seconds / 86400)
