"""Trimester intervals of the school year."""

from __future__ import annotations

from datetime import date
from typing import Optional

from .errors import ConfigurationError
from .models import DateInterval, TrimesterBounds
from .util import as_date


def interval_of(index: int, bounds: TrimesterBounds) -> DateInterval:
    """Return trimester ``index`` (1-3). The end date is excluded."""
    if index == 1:
        return DateInterval(bounds.year_start, bounds.trimester_2_start)
    if index == 2:
        return DateInterval(bounds.trimester_2_start, bounds.trimester_3_start)
    if index == 3:
        return DateInterval(bounds.trimester_3_start, bounds.year_end)
    raise ConfigurationError(f"Trimester #{index} does not exist.")


def containing_interval(day: date, bounds: TrimesterBounds) -> Optional[int]:
    day = as_date(day)
    for index in (1, 2, 3):
        interval = interval_of(index, bounds)
        if interval.start <= day < interval.end:
            return index
    return None
