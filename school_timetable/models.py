"""Data models for timetable entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Mapping, Optional, Union

from .util import DEFAULT_TZ, parse_date, parse_datetime, parse_time

WEEK_A = "A"
WEEK_B = "B"
WEEK_BOTH = "BOTH"
WEEK_LABELS = (WEEK_A, WEEK_B)
WEEK_TYPES = (WEEK_A, WEEK_B, WEEK_BOTH)
ISO_WEEKDAYS = range(1, 8)


@dataclass(frozen=True)
class Subject:
    uuid: str
    name: str = ""


@dataclass
class Event:
    """Recurring weekly course template."""

    uuid: str
    day: int  # ISO weekday, 1=Monday
    start: time
    end: time
    subject: Subject
    week_type: str = WEEK_BOTH

    def __post_init__(self) -> None:
        if self.day not in ISO_WEEKDAYS:
            raise ValueError(f"Day must be an ISO weekday 1-7, got {self.day}")
        if self.week_type not in WEEK_TYPES:
            raise ValueError(f"Unknown week type {self.week_type!r}")
        if self.start >= self.end:
            raise ValueError("Start time must be before end time")


@dataclass(frozen=True)
class Cancelled:
    date: date


@dataclass(frozen=True)
class Rescheduled:
    start: datetime
    end: datetime

    @property
    def date(self) -> date:
        return self.start.date()


Effect = Union[Cancelled, Rescheduled]


@dataclass
class Mutation:
    """Exception to a single occurrence of an event."""

    uuid: str
    event: str  # Event.uuid
    effect: Effect
    subject: Optional[Subject] = None

    @property
    def date(self) -> date:
        return self.effect.date

    @property
    def is_cancellation(self) -> bool:
        return isinstance(self.effect, Cancelled)

    @property
    def is_reschedule(self) -> bool:
        return isinstance(self.effect, Rescheduled)


@dataclass(frozen=True)
class DateInterval:
    """Closed date interval, both ends included."""

    start: date
    end: date

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class TrimesterBounds:
    year_start: date
    trimester_2_start: date
    trimester_3_start: date
    year_end: date


@dataclass(frozen=True)
class Course:
    """A concrete occurrence of an event on a given date."""

    subject: Subject
    day: int
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    event: Optional[str] = None
    week_type: str = WEEK_BOTH
    mutation: Optional[Mutation] = field(default=None, compare=False)
    placeholder: bool = False

    @classmethod
    def placeholder_for(cls, subject: Subject, day: int = 0) -> "Course":
        return cls(subject=subject, day=day, placeholder=True)

    @property
    def is_cancelled(self) -> bool:
        return self.mutation is not None and self.mutation.is_cancellation

    @property
    def date(self) -> Optional[date]:
        return self.start.date() if self.start else None


def _ref(value: Any) -> str:
    if isinstance(value, Mapping):
        return str(value["uuid"])
    return str(value)


def subject_from_dict(data: Any) -> Subject:
    if isinstance(data, Subject):
        return data
    if isinstance(data, Mapping):
        return Subject(uuid=str(data["uuid"]), name=data.get("name") or "")
    return Subject(uuid=str(data))


def event_from_dict(data: Mapping[str, Any]) -> Event:
    return Event(
        uuid=str(data["uuid"]),
        day=int(data["day"]),
        start=parse_time(data["start"]),
        end=parse_time(data["end"]),
        subject=subject_from_dict(data["subject"]),
        week_type=data.get("week_type") or WEEK_BOTH,
    )


def effect_from_dict(data: Mapping[str, Any], tz: Any = DEFAULT_TZ) -> Effect:
    """Build the effect of a raw mutation record.

    Exactly one of ``deleted`` or the ``rescheduled_start``/``rescheduled_end``
    pair must be present. Rescheduled times carrying an offset are converted
    to naive ``tz`` local time.
    """
    deleted = data.get("deleted")
    start = data.get("rescheduled_start")
    end = data.get("rescheduled_end")
    rescheduled = bool(start or end)
    if deleted and rescheduled:
        raise ValueError("A mutation cannot both cancel and reschedule")
    if deleted:
        return Cancelled(parse_date(deleted))
    if start and end:
        return Rescheduled(parse_datetime(start, tz), parse_datetime(end, tz))
    if rescheduled:
        raise ValueError("A reschedule needs both a start and an end")
    raise ValueError("A mutation must either cancel or reschedule")


def mutation_from_dict(data: Mapping[str, Any], tz: Any = DEFAULT_TZ) -> Mutation:
    subject = data.get("subject")
    return Mutation(
        uuid=str(data["uuid"]),
        event=_ref(data["event"]),
        effect=effect_from_dict(data, tz),
        subject=subject_from_dict(subject) if subject else None,
    )
