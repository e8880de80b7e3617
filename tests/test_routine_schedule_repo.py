import sqlite3
from datetime import date, time

import pytest

from routine_planner.models import Routine, ScheduleDay
from routine_planner.repositories import (
    create_routine,
    get_routine,
    get_schedule_slots,
    insert_schedule_if_absent,
    list_routines,
    list_routines_for_date,
    list_schedule_dates,
)


def _routine(title, first, last, start=time(9, 0), end=time(10, 0)):
    return Routine(ref=None, title=title, start_date=first, end_date=last,
                   start_time=start, end_time=end, weekdays=("monday", "friday"))


def test_routine_create_and_read(db):
    r = create_routine(db, _routine("Gym", date(2030, 1, 1), date(2030, 3, 31), time(7, 15), time(8, 45)))
    assert r.ref is not None
    loaded = get_routine(db, r.ref)
    assert loaded is not None
    assert (loaded.start_time, loaded.end_time) == (time(7, 15), time(8, 45))
    assert loaded.weekdays == ("monday", "friday")
    assert len(list_routines(db)) == 1


def test_routines_for_date_inclusive_range(db):
    create_routine(db, _routine("Jan", date(2030, 1, 1), date(2030, 1, 31)))
    create_routine(db, _routine("Feb", date(2030, 2, 1), date(2030, 2, 28)))
    assert [r.title for r in list_routines_for_date(db, date(2030, 1, 31))] == ["Jan"]
    assert [r.title for r in list_routines_for_date(db, date(2030, 2, 1))] == ["Feb"]
    assert list_routines_for_date(db, date(2030, 3, 1)) == []


def test_schedule_insert_once(db):
    day = date(2030, 4, 2)
    assert get_schedule_slots(db, day) is None
    first = ScheduleDay.blank(day)
    first.slots[5].labels = ["Walk", "Read"]
    first.slots[5].remaining_minutes = 3
    first.slots[5].is_open = False
    assert insert_schedule_if_absent(db, day, first.slots)

    second = ScheduleDay.blank(day)
    second.slots[0].labels = ["intruder"]
    assert not insert_schedule_if_absent(db, day, second.slots)

    stored = get_schedule_slots(db, day)
    assert stored == first.slots
    assert list_schedule_dates(db) == [day]


def test_schedule_requires_full_day(db):
    day = date(2030, 4, 3)
    with pytest.raises(ValueError):
        insert_schedule_if_absent(db, day, ScheduleDay.blank(day).slots[:23])
    assert get_schedule_slots(db, day) is None


def test_schedule_write_is_all_or_nothing(db):
    day = date(2030, 4, 4)
    slots = ScheduleDay.blank(day).slots
    slots[10].remaining_minutes = 99  # violates the CHECK constraint
    with pytest.raises(sqlite3.IntegrityError):
        insert_schedule_if_absent(db, day, slots)
    assert get_schedule_slots(db, day) is None
    assert db.query_one("SELECT COUNT(*) AS c FROM schedule_slots")["c"] == 0
