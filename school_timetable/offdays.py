"""Offday lookups: single dates and closed date intervals with no courses."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Iterable, Mapping

from .models import DateInterval
from .util import as_date, parse_date


def coerce_offday(entry: Any) -> Any:
    """Turn a raw settings entry into a ``date`` or ``DateInterval``.

    Entries that cannot be understood are returned unchanged; ``is_offday``
    skips them.
    """
    if isinstance(entry, (date, DateInterval)):
        return entry
    try:
        if isinstance(entry, str):
            return parse_date(entry)
        if isinstance(entry, Mapping):
            return DateInterval(parse_date(entry["start"]), parse_date(entry["end"]))
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        logging.debug("Unreadable offday entry %r: %s", entry, exc)
    return entry


def _matches(day: date, entry: Any) -> bool:
    if isinstance(entry, datetime):
        return entry.date() == day
    if isinstance(entry, date):
        return entry == day
    if isinstance(entry, DateInterval):
        if entry.start > entry.end:
            raise ValueError(f"interval ends before it starts: {entry}")
        return day in entry
    raise TypeError(f"not a date or interval: {entry!r}")


def is_offday(day: date | datetime, offdays: Iterable[Any]) -> bool:
    """Return True if ``day`` equals a single offday or lies inside an interval.

    Entries may be dates, ``DateInterval``s, ISO strings or ``{"start", "end"}``
    mappings; anything unreadable is skipped.
    """
    day = as_date(day)
    for entry in offdays:
        try:
            if _matches(day, coerce_offday(entry)):
                return True
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logging.debug("Skipping malformed offday %r: %s", entry, exc)
    return False
