# src/hesab/core/clock.py

"""
Calendar keys used by the task tiers.

Day keys look like "2024-01-15", month keys like "2024-01". Both sort
lexicographically in calendar order, which the carry-over engine relies on.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone

Clock = Callable[[], datetime]

_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_MONTH_RE = re.compile(r"^\d{4}-(\d{2})$")


def parse_day(day: str) -> date:
    if not isinstance(day, str) or not _DAY_RE.match(day):
        raise ValueError(f"invalid day key: {day!r}")
    return date.fromisoformat(day)


def parse_month(month: str) -> tuple[int, int]:
    if not isinstance(month, str):
        raise ValueError(f"invalid month key: {month!r}")
    m = _MONTH_RE.match(month)
    if not m or not 1 <= int(m.group(1)) <= 12:
        raise ValueError(f"invalid month key: {month!r}")
    return int(month[:4]), int(month[5:7])


def format_day(d: date) -> str:
    return d.strftime("%Y-%m-%d")


def format_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def next_day(day: str) -> str:
    return format_day(parse_day(day) + timedelta(days=1))


def next_month(month: str) -> str:
    year, mon = parse_month(month)
    if mon == 12:
        return format_month(year + 1, 1)
    return format_month(year, mon + 1)


def month_of(day: str) -> str:
    d = parse_day(day)
    return format_month(d.year, d.month)


def today(now: datetime | None = None) -> str:
    """Local calendar day for `now` (defaults to the wall clock)."""
    now = now or datetime.now()
    return format_day(now.date())


def this_month(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return format_month(now.year, now.month)


def seconds_until_midnight(now: datetime | None = None) -> float:
    """
    Real seconds from `now` until the next local midnight (always > 0).

    Naive times are local wall-clock times. Both ends are compared in UTC, so a
    day with a DST shift is 23 or 25 hours long.
    """
    now = now or datetime.now()
    tomorrow = datetime.combine(now.date() + timedelta(days=1), datetime.min.time(), tzinfo=now.tzinfo)
    return (tomorrow.astimezone(timezone.utc) - now.astimezone(timezone.utc)).total_seconds()
