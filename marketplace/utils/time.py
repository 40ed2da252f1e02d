from datetime import datetime, time, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (e.g. values read back from SQLite)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def start_of_day(value: datetime) -> datetime:
    """Drop the time component: 00:00:00.000000 of the same day."""
    value = ensure_utc(value)
    return datetime.combine(value.date(), time.min, tzinfo=value.tzinfo)


def end_of_day(value: datetime) -> datetime:
    """Last representable instant of the same day: 23:59:59.999999."""
    value = ensure_utc(value)
    return datetime.combine(value.date(), time.max, tzinfo=value.tzinfo)
