"""Exceptions raised by the timetable core."""

from __future__ import annotations


class TimetableError(Exception):
    """Base class for timetable errors."""


class ConfigurationError(TimetableError, ValueError):
    """A setting is missing or unusable, or a trimester index is out of range."""


class DataIntegrityError(TimetableError):
    """More than one mutation targets the same event on the same date."""

    def __init__(self, event_id: str, day, count: int) -> None:
        super().__init__(
            f"{count} mutations found for event {event_id} on {day}; expected at most one"
        )
        self.event_id = event_id
        self.day = day
        self.count = count
