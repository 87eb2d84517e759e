"""
Time helpers.

All database timestamps are timezone-aware (UTC). Use these helpers instead of
`datetime.utcnow()` to avoid mixing naive and aware datetimes.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone


def now_utc() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Coerce a datetime to timezone-aware UTC.

    Event rows read back from SQLite (and some older stores) are naive; treat those as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_day(value: date | str) -> date:
    """Accept a `date` or a YYYY-MM-DD string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    clean = str(value or "").strip()
    try:
        return date.fromisoformat(clean)
    except ValueError as exc:
        raise ValueError(f"Invalid date '{clean}'. Expected YYYY-MM-DD.") from exc


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Return the [start, end) UTC window of a calendar day."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)
