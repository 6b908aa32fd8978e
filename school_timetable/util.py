"""Utility helpers.

Timestamps handled by the timetable are naive and expressed in local school
time (``DEFAULT_TZ`` unless a clock says otherwise). ``configure_logging`` is
the logging setup hook for the host application.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Iterator
from zoneinfo import ZoneInfo

TIME_FORMATS = ("%H:%M:%S", "%H:%M")
DEFAULT_TZ = "Europe/Paris"


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s:%(name)s:%(message)s")


def parse_timezone(tz: str | ZoneInfo) -> ZoneInfo:
    return tz if isinstance(tz, ZoneInfo) else ZoneInfo(tz)


def parse_date(value: str | date) -> date:
    """Parse an ISO date (or date-time) string into a date."""
    if isinstance(value, datetime):
        return parse_datetime(value).date()
    if isinstance(value, date):
        return value
    return parse_datetime(value).date()


def parse_datetime(value: str | datetime, tz: str | ZoneInfo = DEFAULT_TZ) -> datetime:
    """Parse an ISO date-time into a naive local timestamp.

    Values carrying an offset (or a trailing ``Z`` for UTC) are converted to
    ``tz`` first; naive values are taken as already local.
    """
    if not isinstance(value, datetime):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is not None:
        value = value.astimezone(parse_timezone(tz)).replace(tzinfo=None)
    return value


def parse_time(value: str | time) -> time:
    """Parse ``HH:MM:SS`` (or ``HH:MM``) into a time of day."""
    if isinstance(value, time):
        return value
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(value, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time of day: {value!r}")


def as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def merge_date_and_time(day: date, at: time) -> datetime:
    return datetime.combine(as_date(day), at)


def each_day(start: date, end: date) -> Iterator[date]:
    """Yield every calendar date from ``start`` to ``end`` inclusive."""
    cur = start
    while cur <= end:
        yield cur
        cur += timedelta(days=1)


def week_bounds(ref: date | datetime) -> tuple[date, date]:
    """Monday and Sunday of the ISO week containing ``ref``."""
    day = as_date(ref)
    monday = day - timedelta(days=day.isoweekday() - 1)
    return monday, monday + timedelta(days=6)
