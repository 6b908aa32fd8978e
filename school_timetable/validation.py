"""Validation of new events and mutations before they are committed."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Set

from . import mutations as mutation_index
from . import weeks
from .models import ISO_WEEKDAYS, WEEK_TYPES, Event, Subject
from .util import parse_date, parse_datetime, parse_time

if TYPE_CHECKING:  # pragma: no cover
    from .resolver import ScheduleResolver

REQUIRED_EVENT_FIELDS = {
    "start": "Please set the start time of the course",
    "end": "Please set the end time of the course",
    "subject": "Please choose the subject of the course",
    "day": "Please choose the day of the course",
    "week_type": "Please choose the week: A, B or both",
}


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a validation: accepted when ``errors`` is empty.

    ``errors`` maps each violated rule to a message meant for the end user.
    """

    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def accepted(self) -> bool:
        return not self.errors

    @property
    def messages(self) -> List[str]:
        return list(self.errors.values())

    def __bool__(self) -> bool:
        return self.accepted


ACCEPTED = ValidationResult()


def _rejected(rule: str, message: str) -> ValidationResult:
    return ValidationResult({rule: message})


def _subject_ids(subjects: Iterable[Any]) -> Set[str]:
    return {s.uuid if isinstance(s, Subject) else str(s) for s in subjects}


def _ref(value: Any) -> Optional[str]:
    if isinstance(value, Subject):
        return value.uuid
    if isinstance(value, Mapping):
        value = value.get("uuid")
    return str(value) if value else None


def _subject_label(value: Any) -> str:
    name = value.get("name") if isinstance(value, Mapping) else getattr(value, "name", "")
    return f'"{name}"' if name else "selected"


def _try_time(value: Any) -> Optional[time]:
    try:
        return parse_time(value)
    except (TypeError, ValueError):
        return None


def _overlaps(start: Any, end: Any, other_start: Any, other_end: Any) -> bool:
    return start < other_end and other_start < end


def validate_new_event(
    candidate: Mapping[str, Any],
    existing_events: Iterable[Event],
    subjects: Iterable[Any],
) -> ValidationResult:
    """Check a raw event record, stopping at the first broken rule."""
    for key, message in REQUIRED_EVENT_FIELDS.items():
        if candidate.get(key) in (None, ""):
            return _rejected(f"{key}_required", message)

    start = _try_time(candidate["start"])
    if start is None:
        return _rejected("start_valid", "Please enter a valid start time, as HH:MM (24 hours)")
    end = _try_time(candidate["end"])
    if end is None:
        return _rejected("end_valid", "Please enter a valid end time, as HH:MM (24 hours)")
    if not start < end:
        return _rejected("start_before_end", "The course starts after it ends")

    day = candidate["day"]
    if isinstance(day, bool) or not isinstance(day, int) or day not in ISO_WEEKDAYS:
        return _rejected("day_valid", "Please choose a valid day of the week")

    week_type = candidate["week_type"]
    if week_type not in WEEK_TYPES:
        return _rejected("week_type_valid", "Please choose a valid week: A, B or both")

    subject = candidate["subject"]
    if _ref(subject) not in _subject_ids(subjects):
        return _rejected(
            "subject_exists", f"The {_subject_label(subject)} subject does not exist"
        )

    for event in existing_events:
        if (
            event.day == day
            and weeks.compatible(event.week_type, week_type)
            and _overlaps(start, end, event.start, event.end)
        ):
            return _rejected("no_overlap", "Another course already takes place at this time")

    return ACCEPTED


def validate_new_mutation(
    candidate: Mapping[str, Any],
    resolver: "ScheduleResolver",
    subjects: Iterable[Any],
) -> ValidationResult:
    """Check a raw mutation record and report every broken rule."""
    errors: Dict[str, str] = {}

    event_id = _ref(candidate.get("event"))
    event = resolver.store.event(event_id) if event_id else None
    if event is None:
        errors["event_exists"] = "Please choose an existing course"

    deleted = candidate.get("deleted")
    start_raw = candidate.get("rescheduled_start")
    end_raw = candidate.get("rescheduled_end")
    rescheduled = bool(start_raw or end_raw)
    day = None

    if deleted and rescheduled:
        errors["single_effect"] = "A course can be cancelled or moved, not both"
    elif not deleted and not rescheduled:
        errors["single_effect"] = "Please choose a date to cancel or a new time"
    elif deleted:
        try:
            day = parse_date(deleted)
        except (TypeError, ValueError, AttributeError):
            errors["date_valid"] = "Please enter a valid date"
    else:
        try:
            start: datetime = parse_datetime(start_raw, resolver.clock.tz)
            end: datetime = parse_datetime(end_raw, resolver.clock.tz)
        except (TypeError, ValueError, AttributeError):
            errors["date_valid"] = "Please enter a valid start and end date"
        else:
            day = start.date()
            if not start < end:
                errors["start_before_end"] = "The dates must be in the right order"
            elif _collisions(resolver, start, end, event_id):
                errors["does_not_overlap"] = "The chosen time is not free"

    if candidate.get("subject") is not None:
        subject = candidate["subject"]
        if not _ref(subject):
            errors["subject_not_empty"] = "Please choose a subject"
        elif _ref(subject) not in _subject_ids(subjects):
            errors["subject_exists"] = "The chosen subject does not exist"

    if event is not None and day is not None:
        occurrences = resolver.courses_in(day, include_deleted=True)
        if not any(c.event == event.uuid for c in occurrences):
            errors["event_occurs"] = "This course does not take place on that date"
        if mutation_index.lookup(resolver.store.mutations, event, day):
            errors["unique"] = "This course already has a change on that date"

    return ValidationResult(errors)


def _collisions(
    resolver: "ScheduleResolver", start: datetime, end: datetime, event_id: Optional[str]
) -> list:
    """Resolved courses whose window overlaps ``start``-``end``.

    The occurrence being moved does not collide with its own new slot.
    """
    return [
        course
        for course in resolver.courses_in(start, end, include_deleted=False)
        if _overlaps(start, end, course.start, course.end)
        and not (course.event == event_id and course.date == start.date())
    ]
