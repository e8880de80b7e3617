from datetime import date, datetime

import pytest

from routine_planner.models import RecordRef, Task
from routine_planner.repositories import (
    create_task,
    delete_task,
    get_task,
    list_active_tasks,
    list_tasks,
    list_tasks_due_on,
    set_task_done,
    update_task_allocation,
)


def _task(name, due_at, **kw):
    return Task(ref=None, name=name, description="d", due_at=due_at, **kw)


def test_init_idempotent(db):
    # Second call should not raise and should not duplicate migrations
    db.init_db()
    rows = db.query_all("SELECT COUNT(*) as c FROM schema_migrations")
    assert rows[0]["c"] == 2


def test_task_crud(db):
    t = create_task(db, _task("Report", datetime(2030, 1, 2, 17, 30), importance=7, required_minutes=90))
    assert t.ref is not None and t.created_at
    loaded = get_task(db, t.ref)
    assert loaded is not None
    assert loaded.due_at == datetime(2030, 1, 2, 17, 30)
    assert (loaded.importance, loaded.required_minutes, loaded.allocated_minutes, loaded.done) == (7, 90, 0, False)

    assert update_task_allocation(db, t.ref, 45)
    assert get_task(db, t.ref).allocated_minutes == 45  # type: ignore[union-attr]

    assert set_task_done(db, t.ref, True)
    assert get_task(db, t.ref).done  # type: ignore[union-attr]
    assert list_active_tasks(db) == []
    assert set_task_done(db, t.ref, False)
    assert [x.name for x in list_active_tasks(db)] == ["Report"]

    assert delete_task(db, t.ref)
    assert get_task(db, t.ref) is None
    assert not delete_task(db, t.ref)
    assert not update_task_allocation(db, t.ref, 10)


def test_tasks_due_on_day(db):
    create_task(db, _task("a", datetime(2030, 5, 1, 8, 0)))
    create_task(db, _task("b", datetime(2030, 5, 1, 23, 59)))
    create_task(db, _task("c", datetime(2030, 5, 2, 0, 0)))
    assert [t.name for t in list_tasks_due_on(db, date(2030, 5, 1))] == ["a", "b"]
    assert [t.name for t in list_tasks(db)] == ["a", "b", "c"]


def test_unreadable_row_skipped(db):
    create_task(db, _task("ok", datetime(2030, 5, 1, 8, 0)))
    db.execute("INSERT INTO tasks (name, due_at) VALUES ('broken', 'someday')")
    assert [t.name for t in list_tasks(db)] == ["ok"]


def test_ref_for_other_table_rejected(db):
    with pytest.raises(ValueError):
        get_task(db, RecordRef("routines", 1))


def test_seed_runs_once(db):
    from routine_planner.repositories import list_routines
    from routine_planner.seed import seed_basic_data

    seed_basic_data(db)
    seed_basic_data(db)
    assert len(list_tasks(db)) == 2
    assert [r.title for r in list_routines(db)] == ["Gym"]
