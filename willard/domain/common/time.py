from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo

from willard.domain.common.errors import InvalidArgumentError


def ensure_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        raise InvalidArgumentError("datetime must be timezone-aware")
    return dt


def to_iso(dt: datetime) -> str:
    ensure_aware(dt)
    # always UTC with microseconds so that text order == time order in sqlite
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_iso(s: str) -> datetime:
    return datetime.fromisoformat(s)


def day_to_iso(day: date) -> str:
    # datetime is a date subclass; its isoformat would not be a day key
    if isinstance(day, datetime) or not isinstance(day, date):
        raise InvalidArgumentError(f"expected a calendar date, got {day!r}")
    return day.isoformat()


def start_of_day(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def day_from_iso(s: str) -> date:
    return date.fromisoformat(s)


def local_day(dt: datetime, tz: tzinfo) -> date:
    """Calendar day of `dt` as seen in `tz`."""
    return ensure_aware(dt).astimezone(tz).date()


def end_of_day(day: date, tz: tzinfo) -> datetime:
    """Last representable instant of `day` in `tz`."""
    return start_of_day(day, tz) + timedelta(days=1) - timedelta(microseconds=1)
