from __future__ import annotations

"""
Ports used by the schedule synthesizer.

The core depends on these Protocols rather than on SQLite directly, so tests
can swap in in-memory fakes.
"""

from datetime import date, datetime
from typing import Callable, Protocol, Sequence

from .models import RecordRef, Routine, ScheduleSlot, Task

Clock = Callable[[], datetime]


class TaskStore(Protocol):
    def list_active(self) -> list[Task]: ...
    def update_allocated(self, ref: RecordRef, allocated_minutes: int) -> None: ...


class RoutineStore(Protocol):
    def list_active_for_date(self, day: date) -> list[Routine]: ...


class ScheduleStore(Protocol):
    def get_slots(self, day: date) -> list[ScheduleSlot] | None: ...

    def put_slots(self, day: date, slots: Sequence[ScheduleSlot]) -> bool:
        """Insert if absent. False means the date was already stored and nothing was written."""
        ...


__all__ = ["Clock", "RoutineStore", "ScheduleStore", "TaskStore"]
