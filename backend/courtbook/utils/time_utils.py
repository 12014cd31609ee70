from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytz


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Normalize a datetime to an aware UTC value.

    Naive values are treated as UTC, which is how the database stores every
    instant (SQLite drops tzinfo on the way back out).
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def local_hour(dt: datetime, tz_name: str) -> int:
    """Hour of day of ``dt`` in the IANA zone ``tz_name``."""
    return ensure_utc(dt).astimezone(pytz.timezone(tz_name)).hour


def is_off_peak(dt: datetime, tz_name: str, *, before_hour: int, from_hour: int) -> bool:
    """True when the local hour is before ``before_hour`` or at/after ``from_hour``."""
    hour = local_hour(dt, tz_name)
    return hour < before_hour or hour >= from_hour


def month_key(dt: datetime) -> str:
    """Calendar month bucket (UTC) used for once-per-month awards."""
    return ensure_utc(dt).strftime("%Y-%m")


def local_day_bounds(day: date, tz_name: str) -> tuple[datetime, datetime]:
    """UTC [start, end) of calendar ``day`` in the IANA zone ``tz_name``."""
    zone = pytz.timezone(tz_name)
    start = zone.localize(datetime(day.year, day.month, day.day))
    # Localize the next midnight separately so DST days keep their real length
    following = day + timedelta(days=1)
    end = zone.localize(datetime(following.year, following.month, following.day))
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)
