import threading
from datetime import date, datetime, time, timedelta, timezone

import pytest

from fakes import FakeClock
from routine_planner.errors import StorageUnavailable
from routine_planner.models import RecordRef, Routine, Task
from routine_planner.repositories import create_routine, create_task, get_task, list_schedule_dates
from routine_planner.stores import SqliteRoutineStore, SqliteScheduleStore, SqliteTaskStore
from routine_planner.synthesizer import ScheduleSynthesizer

DAY = date(2030, 6, 3)


def _synth(db, now=datetime(2030, 6, 2, 20, 0)):
    return ScheduleSynthesizer(
        SqliteTaskStore(db), SqliteRoutineStore(db), SqliteScheduleStore(db), clock=FakeClock(now)
    )


def test_end_to_end_on_sqlite(db):
    task = create_task(db, Task(ref=None, name="Thesis", description="", due_at=datetime(2030, 6, 10),
                                importance=8, required_minutes=100))
    create_routine(db, Routine(ref=None, title="Breakfast", start_date=date(2030, 6, 1), end_date=date(2030, 6, 30),
                               start_time=time(0, 20), end_time=time(0, 50)))
    synth = _synth(db)

    slots = synth.get_or_build_schedule(DAY)

    assert slots[0].labels == ["Breakfast", "Thesis"]
    assert slots[0].remaining_minutes == 0
    assert slots[1].labels == ["Thesis"] and slots[1].remaining_minutes == 0
    assert slots[2].labels == []
    assert get_task(db, task.ref).allocated_minutes == 100  # type: ignore[arg-type, union-attr]

    # Fresh synthesizer, same database: served from the stored schedule.
    again = _synth(db).get_or_build_schedule(DAY.isoformat())
    assert again == slots
    assert list_schedule_dates(db) == [DAY]


def test_concurrent_first_requests_on_sqlite(db):
    task = create_task(db, Task(ref=None, name="Deep work", description="", due_at=datetime(2030, 6, 10),
                                importance=5, required_minutes=150))
    synth = _synth(db)
    barrier = threading.Barrier(3)
    errors = []

    def worker():
        barrier.wait()
        try:
            synth.get_or_build_schedule(DAY)
        except Exception as e:  # surfaced below
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert get_task(db, task.ref).allocated_minutes == 150  # type: ignore[arg-type, union-attr]


def test_sqlite_errors_become_storage_unavailable(db):
    db.execute("DROP TABLE schedule_slots")
    db.execute("DROP TABLE schedules")
    with pytest.raises(StorageUnavailable):
        SqliteScheduleStore(db).get_slots(DAY)
    with pytest.raises(StorageUnavailable):
        _synth(db).get_or_build_schedule(DAY)


def test_update_of_missing_task_fails(db):
    with pytest.raises(StorageUnavailable):
        SqliteTaskStore(db).update_allocated(RecordRef("tasks", 999), 30)


def test_offset_aware_due_time_stored_as_local_naive(db):
    aware = datetime(2030, 6, 10, 9, 0, tzinfo=timezone(timedelta(hours=5)))
    task = create_task(db, Task(ref=None, name="Call", description="", due_at=aware, required_minutes=60))
    loaded = get_task(db, task.ref)  # type: ignore[arg-type]
    assert loaded is not None and loaded.due_at.tzinfo is None
    assert loaded.due_at == aware.astimezone().replace(tzinfo=None)

    slots = _synth(db).get_or_build_schedule(DAY)
    assert slots[0].labels == ["Call"]


def test_offset_aware_row_skipped_and_day_still_builds(db):
    db.execute(
        "INSERT INTO tasks (name, due_at, required_minutes) VALUES ('Imported', '2030-06-10T09:00:00+00:00', 60)"
    )
    create_task(db, Task(ref=None, name="Local", description="", due_at=datetime(2030, 6, 10), required_minutes=30))

    slots = _synth(db).get_or_build_schedule(DAY)

    assert slots[0].labels == ["Local"]
    assert all("Imported" not in s.labels for s in slots)


def test_corrupt_stored_labels_become_storage_unavailable(db):
    _synth(db).get_or_build_schedule(DAY)
    db.execute("UPDATE schedule_slots SET labels='not json' WHERE hour_index=3")
    with pytest.raises(StorageUnavailable):
        SqliteScheduleStore(db).get_slots(DAY)
    with pytest.raises(StorageUnavailable):
        _synth(db).get_or_build_schedule(DAY)
