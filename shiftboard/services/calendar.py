"""Plain calendar arithmetic for Sunday-based schedule weeks.

Dates are calendar dates with no timezone; "today" is taken from the UTC clock
so every consumer agrees on where a week starts.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

from ..errors import InvalidInput

DAYS_PER_WEEK = 7


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def week_start(value: date) -> date:
    """Return the Sunday on or before ``value``."""
    # date.weekday(): Monday=0 .. Sunday=6
    return value - timedelta(days=(value.weekday() + 1) % DAYS_PER_WEEK)


def current_week_start(today: date | None = None) -> date:
    return week_start(today or utc_today())


def next_week_start(today: date | None = None) -> date:
    """Return the next Sunday, or ``today`` itself when it already is one."""
    today = today or utc_today()
    return today + timedelta(days=(6 - today.weekday()) % DAYS_PER_WEEK)


def is_week_start(value: date) -> bool:
    return value.weekday() == 6


def require_week_start(value: date) -> date:
    if not is_week_start(value):
        raise InvalidInput(f"week_start must be a Sunday, got {value.isoformat()}")
    return value


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def week_end(start: date) -> date:
    return start + timedelta(days=DAYS_PER_WEEK - 1)


def week_range(start: date) -> tuple[date, date]:
    return start, week_end(start)


def day_delta(source: date, target: date) -> int:
    return (target - source).days


def start_of_day_utc(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive timestamps coming back from the database."""
    if value is None:
        return None
    if value.tzinfo:
        return value.astimezone(timezone.utc)
    return value.replace(tzinfo=timezone.utc)
