"""Lookup of schedule exceptions by event and date."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional

from .errors import DataIntegrityError
from .models import Event, Mutation
from .util import as_date


def _event_id(event: Event | str) -> str:
    return event.uuid if isinstance(event, Event) else event


def lookup(
    mutations: Iterable[Mutation],
    event: Event | str | None = None,
    day: date | datetime | None = None,
) -> List[Mutation]:
    """Return the mutations of ``event`` (if given) that fall on ``day`` (if given).

    A mutation falls on a day when its cancelled date, or the start date of
    its rescheduled window, is that day.
    """
    found = list(mutations)
    if event is not None:
        event_id = _event_id(event)
        found = [m for m in found if m.event == event_id]
    if day is not None:
        day = as_date(day)
        found = [m for m in found if m.date == day]
    return found


def lookup_one(
    mutations: Iterable[Mutation],
    event: Event | str,
    day: date | datetime,
    *,
    strict: bool = False,
) -> Optional[Mutation]:
    """Return the mutation of ``event`` on ``day``, or None.

    More than one match breaks the one-mutation-per-occurrence invariant:
    with ``strict`` a DataIntegrityError is raised, otherwise it is logged
    and the first match is used.
    """
    found = lookup(mutations, event, day)
    if not found:
        return None
    if len(found) > 1:
        error = DataIntegrityError(_event_id(event), as_date(day), len(found))
        if strict:
            raise error
        logging.warning("%s (using %s)", error, found[0].uuid)
    return found[0]
