from __future__ import annotations

"""PlannerStore keeps cached task and routine lists with change signals.

Input problems are reported through the ``error`` signal and a ``None`` /
``False`` return, the way the pages expect. The ``validate_*`` helpers raise
:class:`ValidationError` for callers without a Qt event loop.
"""

from datetime import date, datetime, time
from typing import Iterable, List, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from .database_manager import DatabaseManager
from .errors import ValidationError
from .models import WEEKDAY_NAMES, RecordRef, Routine, Task
from .repositories import (
    create_routine,
    create_task,
    delete_task,
    get_task,
    list_routines,
    list_tasks,
    list_tasks_due_on,
    set_task_done,
)


def validate_task(name: str, importance: int, required_minutes: int) -> str:
    name = name.strip()
    if not name:
        raise ValidationError("Name required")
    if not (1 <= importance <= 10):
        raise ValidationError("Importance must be 1-10")
    if required_minutes < 0:
        raise ValidationError("Required time cannot be negative")
    return name


def validate_routine(
    title: str,
    start_date: date,
    end_date: date,
    start_time: time,
    end_time: time,
    importance: int,
    weekdays: Iterable[str],
) -> tuple[str, tuple[str, ...]]:
    title = title.strip()
    if not title:
        raise ValidationError("Title required")
    if start_date > end_date:
        raise ValidationError("Start date must not be after end date")
    if start_time >= end_time:
        raise ValidationError("Start time must be before end time")
    if not (1 <= importance <= 10):
        raise ValidationError("Importance must be 1-10")
    days = tuple(d.strip().lower() for d in weekdays if d.strip())
    unknown = [d for d in days if d not in WEEKDAY_NAMES]
    if unknown:
        raise ValidationError(f"Unknown weekday(s): {', '.join(unknown)}")
    return title, days


class PlannerStore(QObject):
    changed = pyqtSignal()
    error = pyqtSignal(str)

    def __init__(self, db: DatabaseManager):
        super().__init__()
        self._db = db
        self._tasks: List[Task] = []
        self._routines: List[Routine] = []
        self._loaded = False

    # --- Loading --------------------------------------------------------
    def load(self) -> None:
        self._tasks = list_tasks(self._db)
        self._routines = list_routines(self._db)
        self._loaded = True
        self.changed.emit()

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    # --- Tasks ----------------------------------------------------------
    def create_task(
        self,
        name: str,
        description: str,
        due_at: datetime,
        importance: int,
        required_minutes: int,
    ) -> Optional[Task]:
        self._ensure_loaded()
        try:
            name = validate_task(name, importance, required_minutes)
        except ValidationError as e:
            self.error.emit(str(e))
            return None
        t = create_task(
            self._db,
            Task(
                ref=None,
                name=name,
                description=description,
                due_at=due_at,
                importance=importance,
                required_minutes=required_minutes,
            ),
        )
        self._tasks.append(t)
        self.changed.emit()
        return t

    def mark_done(self, ref: RecordRef) -> bool:
        return self._set_done(ref, True)

    def mark_undone(self, ref: RecordRef) -> bool:
        return self._set_done(ref, False)

    def _set_done(self, ref: RecordRef, done: bool) -> bool:
        self._ensure_loaded()
        if not set_task_done(self._db, ref, done):
            self.error.emit("Task not found")
            return False
        for t in self._tasks:
            if t.ref == ref:
                t.done = done
        self.changed.emit()
        return True

    def delete_task(self, ref: RecordRef) -> bool:
        self._ensure_loaded()
        if not delete_task(self._db, ref):
            return False
        self._tasks = [t for t in self._tasks if t.ref != ref]
        self.changed.emit()
        return True

    def task(self, ref: RecordRef) -> Optional[Task]:
        return get_task(self._db, ref)

    def tasks(self) -> List[Task]:
        self._ensure_loaded()
        return list(self._tasks)

    def tasks_due_on(self, day: date) -> List[Task]:
        return list_tasks_due_on(self._db, day)

    def reload_tasks(self) -> None:
        # Allocations change underneath us whenever a new day is synthesized.
        self._tasks = list_tasks(self._db)
        self.changed.emit()

    # --- Routines -------------------------------------------------------
    def create_routine(
        self,
        title: str,
        start_date: date,
        end_date: date,
        start_time: time,
        end_time: time,
        importance: int = 5,
        weekdays: Iterable[str] = (),
    ) -> Optional[Routine]:
        self._ensure_loaded()
        try:
            title, days = validate_routine(
                title, start_date, end_date, start_time, end_time, importance, weekdays
            )
        except ValidationError as e:
            self.error.emit(str(e))
            return None
        r = create_routine(
            self._db,
            Routine(
                ref=None,
                title=title,
                start_date=start_date,
                end_date=end_date,
                start_time=start_time,
                end_time=end_time,
                importance=importance,
                weekdays=days,
            ),
        )
        self._routines.append(r)
        self.changed.emit()
        return r

    def routines(self) -> List[Routine]:
        self._ensure_loaded()
        return list(self._routines)


__all__ = ["PlannerStore", "validate_routine", "validate_task"]
