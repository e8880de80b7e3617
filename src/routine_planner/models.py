from __future__ import annotations

"""Dataclass models for tasks, routines and synthesized schedules."""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Optional

SLOT_MINUTES = 60
HOURS_PER_DAY = 24

WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


@dataclass(frozen=True, slots=True)
class RecordRef:
    """Opaque handle to a stored record.

    Only the storage layer builds or looks inside these; everything else just
    hands them back.
    """

    table: str
    key: int

    def __str__(self) -> str:
        return f"<{self.table} #{self.key}>"


@dataclass(slots=True)
class Task:
    ref: Optional[RecordRef]
    name: str
    description: str
    due_at: datetime
    importance: int = 5
    required_minutes: int = 0
    allocated_minutes: int = 0
    done: bool = False
    created_at: Optional[str] = None

    @property
    def remaining_minutes(self) -> int:
        return max(0, self.required_minutes - self.allocated_minutes)

    @property
    def fully_allocated(self) -> bool:
        return self.allocated_minutes >= self.required_minutes


@dataclass(slots=True)
class Routine:
    ref: Optional[RecordRef]
    title: str
    start_date: date
    end_date: date
    start_time: time
    end_time: time
    importance: int = 5
    weekdays: tuple[str, ...] = ()
    created_at: Optional[str] = None

    def covers(self, day: date) -> bool:
        # Weekdays are stored but intentionally not consulted here.
        return self.start_date <= day <= self.end_date


@dataclass(slots=True)
class ScheduleSlot:
    date: date
    hour_index: int
    remaining_minutes: int = SLOT_MINUTES
    is_open: bool = True
    labels: list[str] = field(default_factory=list)

    def consume(self, minutes: int, close_threshold: int) -> None:
        self.remaining_minutes = min(SLOT_MINUTES, max(0, self.remaining_minutes - max(0, minutes)))
        if self.remaining_minutes <= close_threshold:
            self.is_open = False

    def close(self) -> None:
        self.remaining_minutes = 0
        self.is_open = False

    def as_payload(self) -> dict[str, Any]:
        return {
            "hourStart": self.hour_index,
            "hasCapacity": self.is_open,
            "remainingMinutes": self.remaining_minutes,
            "labels": list(self.labels),
        }


@dataclass(slots=True)
class ScheduleDay:
    date: date
    slots: list[ScheduleSlot]

    @classmethod
    def blank(cls, day: date) -> "ScheduleDay":
        return cls(date=day, slots=[ScheduleSlot(date=day, hour_index=h) for h in range(HOURS_PER_DAY)])

    def as_payload(self) -> list[dict[str, Any]]:
        return [s.as_payload() for s in self.slots]


__all__ = [
    "HOURS_PER_DAY",
    "RecordRef",
    "Routine",
    "SLOT_MINUTES",
    "ScheduleDay",
    "ScheduleSlot",
    "Task",
    "WEEKDAY_NAMES",
]
