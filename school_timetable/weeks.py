"""Biweekly A/B week type resolution."""

from __future__ import annotations

from datetime import date

from .errors import ConfigurationError
from .models import WEEK_A, WEEK_B, WEEK_BOTH, WEEK_LABELS
from .util import as_date


def other_label(label: str) -> str:
    if label not in WEEK_LABELS:
        raise ConfigurationError(f"Starting week type must be A or B, got {label!r}")
    return WEEK_B if label == WEEK_A else WEEK_A


def week_type(day: date, starting_label: str, reference_start: date) -> str:
    """Return the week label ("A" or "B") of the ISO week containing ``day``.

    Weeks whose ISO number has the same parity as the week of
    ``reference_start`` get ``starting_label``; the others get the other label.
    """
    other = other_label(starting_label)
    target = as_date(day).isocalendar()[1]
    reference = as_date(reference_start).isocalendar()[1]
    return starting_label if target % 2 == reference % 2 else other


def applies(event_week_type: str, label: str) -> bool:
    """Whether an event with ``event_week_type`` runs in a week labelled ``label``."""
    return event_week_type in (label, WEEK_BOTH)


def compatible(first: str, second: str) -> bool:
    """Whether two events' week types can fall in the same week."""
    return first == second or WEEK_BOTH in (first, second)
