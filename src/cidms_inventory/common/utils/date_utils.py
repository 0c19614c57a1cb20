"""Utility functions for date manipulation."""

from datetime import date, datetime

import pytz


def now_utc() -> datetime:
    """Returns the current time as a timezone-aware UTC datetime."""
    return datetime.now(pytz.utc)


def to_utc(dt: datetime | None) -> datetime | None:
    """Treats naive datetimes (as returned by MySQL DATETIME columns) as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return pytz.utc.localize(dt)
    return dt.astimezone(pytz.utc)


def to_db_datetime(dt: datetime | None) -> datetime | None:
    """Converts to the naive UTC datetime stored in MySQL DATETIME columns."""
    if dt is None:
        return None
    return to_utc(dt).replace(tzinfo=None)


def parse_date_boundary(value: str | date | datetime | None, end_of_day: bool = False) -> datetime | None:
    """Turns an ISO date/datetime string (or date object) into a UTC datetime filter boundary."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, date):
        value = value.isoformat()
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, TypeError, AttributeError):
        return None
    if end_of_day and len(value) == 10:
        # ledger timestamps carry microseconds
        parsed = parsed.replace(hour=23, minute=59, second=59, microsecond=999999)
    return to_utc(parsed)
