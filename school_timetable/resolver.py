"""Resolution of weekly events into concrete, dated courses.

Events describe a normal week of the year. Courses are events with
mutations and offdays applied: they carry real start/end date-times and
describe one particular date.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable, List, Optional

from . import mutations as mutation_index
from . import offdays, trimesters, weeks
from .models import Course, DateInterval, Event, Mutation, Subject
from .settings import Clock, Settings
from .store import TimetableStore
from .util import as_date, each_day, merge_date_and_time, week_bounds


def order_courses(courses: Iterable[Course]) -> List[Course]:
    """Sort courses by weekday, then by time of day. The sort is stable."""
    return sorted(courses, key=lambda c: (c.day, c.start.time()))


def build_course(event: Event, day: date, mutation: Optional[Mutation] = None) -> Course:
    if mutation is not None and mutation.is_reschedule:
        start, end = mutation.effect.start, mutation.effect.end
    else:
        start = merge_date_and_time(day, event.start)
        end = merge_date_and_time(day, event.end)
    subject = mutation.subject if mutation and mutation.subject else event.subject
    return Course(
        subject=subject,
        day=event.day,
        start=start,
        end=end,
        event=event.uuid,
        week_type=event.week_type,
        mutation=mutation,
    )


class ScheduleResolver:
    """Answers schedule queries over the store's current snapshot."""

    def __init__(self, store: TimetableStore, settings: Settings, clock: Clock) -> None:
        self.store = store
        self.settings = settings
        self.clock = clock

    def week_type(self, day: date | datetime | None = None) -> str:
        day = day or self.clock.now()
        return weeks.week_type(
            as_date(day), self.settings.starting_week_type, self.settings.year_start
        )

    def is_offday(self, day: date | datetime) -> bool:
        return offdays.is_offday(day, self.settings.offdays)

    def trimester(self, index: int) -> DateInterval:
        return trimesters.interval_of(index, self.settings.trimester_bounds)

    def current_trimester(self) -> Optional[int]:
        return trimesters.containing_interval(
            self.clock.now().date(), self.settings.trimester_bounds
        )

    def mutations_of(
        self,
        event: Event | str | None = None,
        day: date | datetime | None = None,
    ) -> List[Mutation]:
        return mutation_index.lookup(self.store.mutations, event, day)

    def courses_in(
        self,
        start: date | datetime,
        end: date | datetime | None = None,
        include_deleted: bool = False,
    ) -> List[Course]:
        """Resolve every course from ``start`` to ``end`` (both days included).

        Without ``end`` only the day of ``start`` is resolved. Cancelled
        occurrences are left out unless ``include_deleted`` is set.
        """
        snapshot = self.store.snapshot
        first = as_date(start)
        last = as_date(end) if end is not None else first
        courses = []
        for day in each_day(first, last):
            if self.is_offday(day):
                continue
            label = self.week_type(day)
            for event in snapshot.events:
                if event.day != day.isoweekday() or not weeks.applies(event.week_type, label):
                    continue
                mutation = mutation_index.lookup_one(snapshot.mutations, event, day)
                if mutation is not None and mutation.is_cancellation and not include_deleted:
                    continue
                courses.append(build_course(event, day, mutation))
        return order_courses(courses)

    def current_week_courses(self) -> List[Course]:
        return self.courses_in(*week_bounds(self.clock.now()))

    def current_week_mutations(self) -> List[Mutation]:
        found: List[Mutation] = []
        for day in each_day(*week_bounds(self.clock.now())):
            found.extend(self.mutations_of(day=day))
        return found

    def course(self, value: Any, prop: str = "event") -> Optional[Course]:
        for course in self.current_week_courses():
            if getattr(course, prop) == value:
                return course
        return None

    def today_courses(self) -> List[Course]:
        return self.courses_in(self.clock.now())

    def tomorrow_courses(self) -> List[Course]:
        return self.courses_in(self.clock.tomorrow())

    def current_course(self) -> Optional[Course]:
        now = self.clock.now()
        for course in self.courses_in(now):
            if course.start <= now < course.end:
                return course
        return None

    def next_courses(self, after: Optional[datetime] = None) -> List[Course]:
        """Courses later on the same day as ``after`` (default: now)."""
        after = after or self.clock.now()
        return [c for c in self.courses_in(after) if c.start > after]

    def next_courses_of(self, value: Any, what: str = "subject") -> List[Course]:
        if what == "subject":
            return [c for c in self.next_courses() if c.subject.uuid == value]
        return [c for c in self.next_courses() if getattr(c, what) == value]

    def upcoming_course(self) -> Optional[Course]:
        upcoming = self.next_courses()
        return upcoming[0] if upcoming else None

    def next_course_of(self, value: Any, what: str = "subject") -> Optional[Course]:
        found = self.next_courses_of(value, what)
        return found[0] if found else None

    @staticmethod
    def course_or_placeholder(course: Optional[Course], placeholder: Subject) -> Course:
        if course is not None:
            return course
        return Course.placeholder_for(placeholder)

    def day_start(
        self, start: date | datetime | None = None, end: date | datetime | None = None
    ) -> Optional[datetime]:
        """Start of the first course in the range, or None when it is empty."""
        courses = self.courses_in(start or self.clock.now(), end)
        return courses[0].start if courses else None

    def day_end(
        self, start: date | datetime | None = None, end: date | datetime | None = None
    ) -> Optional[datetime]:
        courses = self.courses_in(start or self.clock.now(), end)
        return courses[-1].end if courses else None
