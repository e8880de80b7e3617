from __future__ import annotations

"""SQLite-backed implementations of the synthesizer's store ports.

Any ``sqlite3.Error`` or unreadable stored record escaping a repository
call is re-raised as :class:`StorageUnavailable`.
"""

from contextlib import contextmanager
from datetime import date
import logging
import sqlite3
from typing import Iterator, Sequence

from .database_manager import DatabaseManager
from .errors import DataInconsistency, StorageUnavailable
from .models import RecordRef, Routine, ScheduleSlot, Task
from .repositories import (
    get_schedule_slots,
    insert_schedule_if_absent,
    list_active_tasks,
    list_routines_for_date,
    update_task_allocation,
)

_log = logging.getLogger(__name__)


@contextmanager
def storage_guard(operation: str) -> Iterator[None]:
    try:
        yield
    except (sqlite3.Error, DataInconsistency) as e:
        _log.error("storage failure during %s: %s", operation, e)
        raise StorageUnavailable(f"{operation} failed: {e}") from e


class SqliteTaskStore:
    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    def list_active(self) -> list[Task]:
        with storage_guard("list active tasks"):
            return list_active_tasks(self._db)

    def update_allocated(self, ref: RecordRef, allocated_minutes: int) -> None:
        with storage_guard("update task allocation"):
            found = update_task_allocation(self._db, ref, allocated_minutes)
        if not found:
            raise StorageUnavailable(f"task {ref} vanished during allocation")


class SqliteRoutineStore:
    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    def list_active_for_date(self, day: date) -> list[Routine]:
        with storage_guard("list routines"):
            return list_routines_for_date(self._db, day)


class SqliteScheduleStore:
    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    def get_slots(self, day: date) -> list[ScheduleSlot] | None:
        with storage_guard("read schedule"):
            return get_schedule_slots(self._db, day)

    def put_slots(self, day: date, slots: Sequence[ScheduleSlot]) -> bool:
        with storage_guard("write schedule"):
            return insert_schedule_if_absent(self._db, day, slots)


__all__ = [
    "SqliteRoutineStore",
    "SqliteScheduleStore",
    "SqliteTaskStore",
    "storage_guard",
]
