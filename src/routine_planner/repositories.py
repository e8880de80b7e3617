from __future__ import annotations

"""Repository helper functions for CRUD operations.

Record references are built and resolved here only; callers treat
:class:`RecordRef` as opaque.
"""

from datetime import date, datetime, time
import json
import logging
import sqlite3
from typing import Iterable, Sequence

from .database_manager import DatabaseManager
from .errors import DataInconsistency
from .models import HOURS_PER_DAY, RecordRef, Routine, ScheduleSlot, Task

TASKS_TABLE = "tasks"
ROUTINES_TABLE = "routines"

_log = logging.getLogger(__name__)


# --- Generic helpers -------------------------------------------------------

def _last_row_id(cur: sqlite3.Cursor) -> int:
    return int(cur.lastrowid)  # type: ignore[arg-type]


def _key(ref: RecordRef, table: str) -> int:
    if ref.table != table:
        raise ValueError(f"{ref} does not refer to {table}")
    return ref.key


def _time_str(t: time) -> str:
    return t.strftime("%H:%M")


def _collect(rows: Iterable[sqlite3.Row], build) -> list:
    out = []
    for r in rows:
        try:
            out.append(build(r))
        except DataInconsistency as e:
            _log.warning("skipping unreadable row: %s", e)
    return out


# --- Tasks -----------------------------------------------------------------

def _task_from_row(row: sqlite3.Row) -> Task:
    try:
        due_at = datetime.fromisoformat(row["due_at"])
    except (TypeError, ValueError) as e:
        raise DataInconsistency(f"task {row['id']} has bad due_at {row['due_at']!r}") from e
    if due_at.tzinfo is not None:
        # Deadlines are stored as naive local time; an offset here would break comparisons.
        raise DataInconsistency(f"task {row['id']} has offset-aware due_at {row['due_at']!r}")
    return Task(
        ref=RecordRef(TASKS_TABLE, row["id"]),
        name=row["name"],
        description=row["description"],
        due_at=due_at,
        importance=row["importance"],
        required_minutes=row["required_minutes"],
        allocated_minutes=row["allocated_minutes"],
        done=bool(row["done"]),
        created_at=row["created_at"],
    )


def _naive_local(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt.replace(microsecond=0)


def create_task(db: DatabaseManager, task: Task) -> Task:
    task.due_at = _naive_local(task.due_at)
    cur = db.execute(
        """
        INSERT INTO tasks (name, description, due_at, importance, required_minutes, allocated_minutes, done)
        VALUES (?,?,?,?,?,?,?)
        """,
        (
            task.name,
            task.description,
            task.due_at.isoformat(),
            task.importance,
            task.required_minutes,
            task.allocated_minutes,
            int(task.done),
        ),
    )
    task.ref = RecordRef(TASKS_TABLE, _last_row_id(cur))
    row = db.query_one("SELECT created_at FROM tasks WHERE id=?", (task.ref.key,))
    if row:
        task.created_at = row["created_at"]
    return task


def get_task(db: DatabaseManager, ref: RecordRef) -> Task | None:
    row = db.query_one("SELECT * FROM tasks WHERE id=?", (_key(ref, TASKS_TABLE),))
    if not row:
        return None
    return _task_from_row(row)


def list_tasks(db: DatabaseManager) -> list[Task]:
    return _collect(db.query_all("SELECT * FROM tasks ORDER BY due_at, id"), _task_from_row)


def list_active_tasks(db: DatabaseManager) -> list[Task]:
    return _collect(
        db.query_all("SELECT * FROM tasks WHERE done=0 ORDER BY due_at, id"), _task_from_row
    )


def list_tasks_due_on(db: DatabaseManager, day: date) -> list[Task]:
    rows = db.query_all(
        "SELECT * FROM tasks WHERE substr(due_at, 1, 10)=? ORDER BY due_at, id",
        (day.isoformat(),),
    )
    return _collect(rows, _task_from_row)


def update_task_allocation(db: DatabaseManager, ref: RecordRef, allocated_minutes: int) -> bool:
    cur = db.execute(
        "UPDATE tasks SET allocated_minutes=? WHERE id=?",
        (allocated_minutes, _key(ref, TASKS_TABLE)),
    )
    return cur.rowcount > 0


def set_task_done(db: DatabaseManager, ref: RecordRef, done: bool) -> bool:
    cur = db.execute("UPDATE tasks SET done=? WHERE id=?", (int(done), _key(ref, TASKS_TABLE)))
    return cur.rowcount > 0


def delete_task(db: DatabaseManager, ref: RecordRef) -> bool:
    cur = db.execute("DELETE FROM tasks WHERE id=?", (_key(ref, TASKS_TABLE),))
    return cur.rowcount > 0


# --- Routines --------------------------------------------------------------

def _routine_from_row(row: sqlite3.Row) -> Routine:
    try:
        return Routine(
            ref=RecordRef(ROUTINES_TABLE, row["id"]),
            title=row["title"],
            start_date=date.fromisoformat(row["start_date"]),
            end_date=date.fromisoformat(row["end_date"]),
            importance=row["importance"],
            start_time=time.fromisoformat(row["start_time"]),
            end_time=time.fromisoformat(row["end_time"]),
            weekdays=tuple(json.loads(row["weekdays"] or "[]")),
            created_at=row["created_at"],
        )
    except (TypeError, ValueError) as e:
        raise DataInconsistency(f"routine {row['id']} is unreadable: {e}") from e


def create_routine(db: DatabaseManager, routine: Routine) -> Routine:
    cur = db.execute(
        """
        INSERT INTO routines (title, start_date, end_date, importance, start_time, end_time, weekdays)
        VALUES (?,?,?,?,?,?,?)
        """,
        (
            routine.title,
            routine.start_date.isoformat(),
            routine.end_date.isoformat(),
            routine.importance,
            _time_str(routine.start_time),
            _time_str(routine.end_time),
            json.dumps(list(routine.weekdays)),
        ),
    )
    routine.ref = RecordRef(ROUTINES_TABLE, _last_row_id(cur))
    row = db.query_one("SELECT created_at FROM routines WHERE id=?", (routine.ref.key,))
    if row:
        routine.created_at = row["created_at"]
    return routine


def get_routine(db: DatabaseManager, ref: RecordRef) -> Routine | None:
    row = db.query_one("SELECT * FROM routines WHERE id=?", (_key(ref, ROUTINES_TABLE),))
    if not row:
        return None
    return _routine_from_row(row)


def list_routines(db: DatabaseManager) -> list[Routine]:
    return _collect(
        db.query_all("SELECT * FROM routines ORDER BY start_date, start_time, id"), _routine_from_row
    )


def list_routines_for_date(db: DatabaseManager, day: date) -> list[Routine]:
    iso = day.isoformat()
    rows = db.query_all(
        "SELECT * FROM routines WHERE start_date<=? AND end_date>=? ORDER BY start_time, id",
        (iso, iso),
    )
    return _collect(rows, _routine_from_row)


# --- Schedules -------------------------------------------------------------

def get_schedule_slots(db: DatabaseManager, day: date) -> list[ScheduleSlot] | None:
    iso = day.isoformat()
    if not db.query_one("SELECT date FROM schedules WHERE date=?", (iso,)):
        return None
    rows = db.query_all(
        "SELECT * FROM schedule_slots WHERE schedule_date=? ORDER BY hour_index", (iso,)
    )
    slots = []
    for r in rows:
        try:
            labels = json.loads(r["labels"])
        except (TypeError, ValueError) as e:
            raise DataInconsistency(f"schedule {iso} hour {r['hour_index']} has unreadable labels") from e
        slots.append(
            ScheduleSlot(
                date=day,
                hour_index=r["hour_index"],
                remaining_minutes=r["remaining_minutes"],
                is_open=bool(r["is_open"]),
                labels=list(labels),
            )
        )
    return slots


def insert_schedule_if_absent(db: DatabaseManager, day: date, slots: Sequence[ScheduleSlot]) -> bool:
    """Store a day's slots in one transaction unless that day already exists.

    Returns False (writing nothing) when another writer got there first.
    """
    if len(slots) != HOURS_PER_DAY:
        raise ValueError(f"expected {HOURS_PER_DAY} slots, got {len(slots)}")
    iso = day.isoformat()
    with db.transaction() as conn:
        cur = conn.execute("INSERT OR IGNORE INTO schedules (date) VALUES (?)", (iso,))
        if cur.rowcount == 0:
            return False
        conn.executemany(
            """
            INSERT INTO schedule_slots (schedule_date, hour_index, remaining_minutes, is_open, labels)
            VALUES (?,?,?,?,?)
            """,
            [
                (iso, s.hour_index, s.remaining_minutes, int(s.is_open), json.dumps(s.labels))
                for s in slots
            ],
        )
    return True


def list_schedule_dates(db: DatabaseManager) -> list[date]:
    rows = db.query_all("SELECT date FROM schedules ORDER BY date")
    return [date.fromisoformat(r["date"]) for r in rows]


# --- Settings ---------------------------------------------------------------

def get_setting(db: DatabaseManager, key: str) -> str | None:
    row = db.query_one("SELECT value FROM settings WHERE key=?", (key,))
    return row["value"] if row else None


def set_setting(db: DatabaseManager, key: str, value: str) -> None:
    db.execute(
        "INSERT INTO settings(key, value) VALUES(?, ?) ON CONFLICT(key) DO UPDATE SET value=excluded.value",
        (key, value),
    )


__all__ = [
    # Tasks
    "create_task",
    "get_task",
    "list_tasks",
    "list_active_tasks",
    "list_tasks_due_on",
    "update_task_allocation",
    "set_task_done",
    "delete_task",
    # Routines
    "create_routine",
    "get_routine",
    "list_routines",
    "list_routines_for_date",
    # Schedules
    "get_schedule_slots",
    "insert_schedule_if_absent",
    "list_schedule_dates",
    # Settings
    "get_setting",
    "set_setting",
]
