from datetime import date, datetime, time

import pytest

from school_timetable.errors import ConfigurationError
from school_timetable.models import Cancelled, Event, Mutation, Rescheduled, Subject
from school_timetable.resolver import ScheduleResolver
from school_timetable.settings import FixedClock, Settings
from school_timetable.store import TimetableStore

MONDAY_A = date(2023, 10, 2)  # ISO week 40, an "A" week
MONDAY_B = date(2023, 10, 9)

MATH = Subject("s-math", "Maths")
PHYSICS = Subject("s-phys", "Physics")
CHEMISTRY = Subject("s-chem", "Chemistry")
FRENCH = Subject("s-fr", "French")
HISTORY = Subject("s-hist", "History")


def make_settings(**overrides):
    values = {
        "year_start": "2023-09-04",
        "trimester_2_start": "2023-12-04",
        "trimester_3_start": "2024-03-04",
        "year_end": "2024-07-05",
        "starting_week_type": "A",
        "offdays": [],
    }
    values.update(overrides)
    return Settings.from_mapping(values)


def make_events():
    return [
        Event("french", 1, time(13), time(14), FRENCH),
        Event("math", 1, time(8), time(9), MATH),
        Event("physics", 1, time(10), time(11), PHYSICS, week_type="A"),
        Event("chemistry", 1, time(10), time(11), CHEMISTRY, week_type="B"),
        Event("history", 2, time(9), time(10), HISTORY),
    ]


def make_resolver(events=None, mutations=(), now=datetime(2023, 10, 2, 10, 30), **settings):
    store = TimetableStore(make_events() if events is None else events, mutations)
    return ScheduleResolver(store, make_settings(**settings), FixedClock(now))


def test_single_day_is_sorted_and_filtered_by_week_type():
    resolver = make_resolver()
    courses = resolver.courses_in(MONDAY_A)
    assert [c.event for c in courses] == ["math", "physics", "french"]
    assert courses[0].start == datetime(2023, 10, 2, 8)
    assert courses[0].end == datetime(2023, 10, 2, 9)
    assert not any(c.placeholder for c in courses)

    courses = resolver.courses_in(MONDAY_B)
    assert [c.event for c in courses] == ["math", "chemistry", "french"]


def test_datetime_start_covers_whole_day():
    resolver = make_resolver()
    courses = resolver.courses_in(datetime(2023, 10, 2, 23, 0))
    assert len(courses) == 3


def test_range_is_sorted_without_duplicates():
    resolver = make_resolver()
    courses = resolver.courses_in(MONDAY_A, date(2023, 10, 15))
    assert len(courses) == 8
    keys = [(c.day, c.start.time()) for c in courses]
    assert keys == sorted(keys)
    pairs = [(c.event, c.date) for c in courses]
    assert len(set(pairs)) == len(pairs)


def test_first_monday_of_the_year():
    event = Event("math", 1, time(8), time(9), MATH, week_type="BOTH")
    resolver = make_resolver(
        events=[event],
        year_start="2024-01-01",
        trimester_2_start="2024-05-01",
        trimester_3_start="2024-09-01",
        year_end="2025-01-01",
    )
    monday = date(2024, 1, 1)
    courses = resolver.courses_in(monday, monday)
    assert len(courses) == 1
    assert courses[0].start == datetime(2024, 1, 1, 8)
    assert courses[0].end == datetime(2024, 1, 1, 9)


def test_cancelled_course_is_hidden_unless_requested():
    event = Event("math", 1, time(8), time(9), MATH)
    mutation = Mutation("m1", "math", Cancelled(MONDAY_A))
    resolver = make_resolver(events=[event], mutations=[mutation])

    assert resolver.courses_in(MONDAY_A, MONDAY_A) == []

    courses = resolver.courses_in(MONDAY_A, MONDAY_A, include_deleted=True)
    assert len(courses) == 1
    assert courses[0].start == datetime(2023, 10, 2, 8)
    assert courses[0].is_cancelled
    assert courses[0].mutation is mutation

    # other weeks are untouched
    assert len(resolver.courses_in(MONDAY_B)) == 1


def test_offday_wins_over_templates():
    event = Event("math", 1, time(8), time(9), MATH)
    resolver = make_resolver(events=[event], offdays=["2023-10-02"])
    assert resolver.courses_in(MONDAY_A, MONDAY_A) == []
    assert resolver.courses_in(MONDAY_A, MONDAY_A, include_deleted=True) == []
    assert resolver.is_offday(MONDAY_A)


def test_offday_interval_and_malformed_entries():
    resolver = make_resolver(
        offdays=[{"start": "2023-10-01", "end": "2023-10-03"}, {"start": "broken"}]
    )
    assert resolver.courses_in(MONDAY_A, date(2023, 10, 3)) == []
    assert len(resolver.courses_in(MONDAY_B)) == 3


def test_reschedule_window_takes_precedence():
    mutation = Mutation(
        "m1",
        "math",
        Rescheduled(datetime(2023, 10, 2, 15), datetime(2023, 10, 2, 16, 30)),
        subject=Subject("s-art", "Art"),
    )
    resolver = make_resolver(mutations=[mutation])
    courses = resolver.courses_in(MONDAY_A)
    assert [c.event for c in courses] == ["physics", "french", "math"]
    moved = courses[-1]
    assert moved.start == datetime(2023, 10, 2, 15)
    assert moved.end == datetime(2023, 10, 2, 16, 30)
    assert moved.subject.uuid == "s-art"
    assert not moved.is_cancelled


def test_duplicate_mutations_are_flagged_not_fatal(caplog):
    mutations = [
        Mutation("m1", "math", Cancelled(MONDAY_A)),
        Mutation("m2", "math", Cancelled(MONDAY_A)),
    ]
    resolver = make_resolver(mutations=mutations)
    courses = resolver.courses_in(MONDAY_A)
    assert [c.event for c in courses] == ["physics", "french"]
    assert "mutations found for event math" in caplog.text


def test_results_follow_store_replacements():
    resolver = make_resolver()
    assert len(resolver.courses_in(MONDAY_A)) == 3
    resolver.store.replace_mutations([Mutation("m1", "french", Cancelled(MONDAY_A))])
    assert len(resolver.courses_in(MONDAY_A)) == 2
    resolver.store.replace_events([])
    assert resolver.courses_in(MONDAY_A) == []


def test_now_based_views():
    resolver = make_resolver()
    assert resolver.week_type() == "A"
    assert resolver.current_course().event == "physics"
    assert [c.event for c in resolver.next_courses()] == ["french"]
    assert resolver.upcoming_course().event == "french"
    assert [c.event for c in resolver.today_courses()] == ["math", "physics", "french"]
    assert [c.event for c in resolver.tomorrow_courses()] == ["history"]
    assert resolver.next_course_of("s-fr").event == "french"
    assert resolver.next_courses_of("s-math") == []
    assert resolver.next_courses_of("french", what="event")[0].subject == FRENCH


def test_next_courses_from_given_instant():
    resolver = make_resolver()
    later = resolver.next_courses(datetime(2023, 10, 2, 7, 0))
    assert [c.event for c in later] == ["math", "physics", "french"]
    assert resolver.next_courses(datetime(2023, 10, 2, 13, 0)) == []


def test_no_current_course_between_courses():
    resolver = make_resolver(now=datetime(2023, 10, 2, 9, 30))
    assert resolver.current_course() is None
    placeholder = resolver.course_or_placeholder(resolver.current_course(), Subject("free"))
    assert placeholder.placeholder
    assert placeholder.subject.uuid == "free"


def test_current_course_window_boundaries():
    assert make_resolver(now=datetime(2023, 10, 2, 8)).current_course().event == "math"
    assert make_resolver(now=datetime(2023, 10, 2, 9)).current_course() is None


def test_current_week():
    mutations = [Mutation("m1", "history", Cancelled(date(2023, 10, 3)))]
    resolver = make_resolver(mutations=mutations, now=datetime(2023, 10, 4, 12))
    assert [c.event for c in resolver.current_week_courses()] == ["math", "physics", "french"]
    assert [m.uuid for m in resolver.current_week_mutations()] == ["m1"]
    assert resolver.course("physics").start == datetime(2023, 10, 2, 10)
    assert resolver.course("chemistry") is None


def test_day_start_and_end():
    resolver = make_resolver()
    assert resolver.day_start() == datetime(2023, 10, 2, 8)
    assert resolver.day_end() == datetime(2023, 10, 2, 14)
    assert resolver.day_start(date(2023, 10, 7)) is None
    assert resolver.day_end(date(2023, 10, 7)) is None


def test_trimesters():
    resolver = make_resolver()
    assert resolver.current_trimester() == 1
    assert resolver.trimester(2).start == date(2023, 12, 4)
    with pytest.raises(ConfigurationError):
        resolver.trimester(4)
    summer = make_resolver(now=datetime(2024, 8, 1, 9))
    assert summer.current_trimester() is None


def test_mutations_of():
    mutations = [
        Mutation("m1", "math", Cancelled(MONDAY_A)),
        Mutation("m2", "french", Cancelled(MONDAY_B)),
    ]
    resolver = make_resolver(mutations=mutations)
    assert [m.uuid for m in resolver.mutations_of(day=MONDAY_A)] == ["m1"]
    assert [m.uuid for m in resolver.mutations_of(event="french")] == ["m2"]
    assert resolver.mutations_of(event="math", day=MONDAY_B) == []
