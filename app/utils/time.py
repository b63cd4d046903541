from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator, Optional
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def local_date(now: datetime, tz_name: str = "UTC") -> date:
    """Calendar date of `now` in the given timezone (naive values are taken as UTC)."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(ZoneInfo(tz_name)).date()


def start_of_local_day(now: datetime, tz_name: str = "UTC") -> datetime:
    """Local midnight of the day containing `now`, expressed in UTC."""
    tz = ZoneInfo(tz_name)
    midnight = datetime.combine(local_date(now, tz_name), time.min, tzinfo=tz)
    return midnight.astimezone(timezone.utc)


def as_date(value) -> Optional[date]:
    """Normalize a date or datetime to a plain date (midnight normalization)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every calendar day in [start, end], inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
