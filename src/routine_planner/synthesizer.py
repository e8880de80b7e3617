from __future__ import annotations

"""Daily schedule synthesis.

A day is computed at most once: the first request for a date overlays the
routines active that day onto 24 hour-wide slots, greedily packs the
prioritized backlog into whatever capacity is left, credits each task with the
minutes it received and stores the slots. Every later request for that date
gets the stored slots back untouched.

Two guards keep a date from being synthesized twice:
 - a per-date lock held across check, synthesis and write (same process);
 - ``ScheduleStore.put_slots`` inserts only if the date is absent, and a loser
   discards its own result in favour of the stored one (other processes).

Task allocations are written as they happen, before the slots. If the process
dies in between, the date is still a cache miss and a retry allocates again.
"""

from datetime import date, datetime
import logging
import threading
from typing import Any, Optional

from .config import SchedulerConfig
from .errors import InvalidDate, StorageUnavailable
from .models import HOURS_PER_DAY, Routine, ScheduleDay, ScheduleSlot, Task
from .ports import Clock, RoutineStore, ScheduleStore, TaskStore
from .prioritizer import TaskPrioritizer

logger = logging.getLogger(__name__)


def parse_schedule_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as e:
            raise InvalidDate(f"not a YYYY-MM-DD date: {value!r}") from e
    raise InvalidDate(f"unsupported date value: {value!r}")


class ScheduleSynthesizer:
    def __init__(
        self,
        tasks: TaskStore,
        routines: RoutineStore,
        schedules: ScheduleStore,
        clock: Optional[Clock] = None,
        config: Optional[SchedulerConfig] = None,
    ) -> None:
        self._tasks = tasks
        self._routines = routines
        self._schedules = schedules
        self._clock: Clock = clock or datetime.now
        self.config = config or SchedulerConfig()
        self._prioritizer = TaskPrioritizer(self._clock, self.config.importance_weight)
        self._locks: dict[date, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # --- Public API -----------------------------------------------------
    def get_or_build_schedule(self, value: Any) -> list[ScheduleSlot]:
        day = parse_schedule_date(value)
        cached = self._schedules.get_slots(day)
        if cached is not None:
            logger.debug("schedule cache hit for %s", day)
            return cached
        lock = self._lock_for(day)
        with lock:
            cached = self._schedules.get_slots(day)
            if cached is not None:
                self._drop_lock(day, lock)
                return cached
            slots = self.synthesize(day)
            if self._schedules.put_slots(day, slots):
                self._drop_lock(day, lock)
                return slots
            logger.warning(
                "schedule for %s was stored concurrently; discarding local result",
                day,
                extra={"_json_date": day.isoformat()},
            )
            stored = self._schedules.get_slots(day)
            if stored is None:
                raise StorageUnavailable(f"schedule for {day} neither stored nor readable")
            self._drop_lock(day, lock)
            return stored

    def get_schedule_payload(self, value: Any) -> list[dict[str, Any]]:
        return [slot.as_payload() for slot in self.get_or_build_schedule(value)]

    # --- Synthesis ------------------------------------------------------
    def synthesize(self, day: date) -> list[ScheduleSlot]:
        """Build a day's slots and credit task allocations. Not idempotent."""
        now = self._clock()
        schedule = ScheduleDay.blank(day)
        routines = self._routines.list_active_for_date(day)
        self._overlay(schedule.slots, day, routines)
        backlog = self._prioritizer.prioritize(self._tasks.list_active(), now)
        allocated = self._allocate(schedule.slots[self._first_open_hour(day, now):], backlog)
        logger.info(
            "synthesized schedule for %s",
            day,
            extra={
                "_json_date": day.isoformat(),
                "_json_routines": len(routines),
                "_json_allocated_minutes": allocated,
            },
        )
        return schedule.slots

    def _overlay(self, slots: list[ScheduleSlot], day: date, routines: list[Routine]) -> None:
        threshold = self.config.close_threshold_minutes
        for routine in routines:
            if not routine.covers(day):
                continue
            if routine.start_time >= routine.end_time:
                logger.warning(
                    "skipping routine %s: starts at %s, not before its end %s",
                    routine.ref, routine.start_time, routine.end_time,
                )
                continue
            start_hour = routine.start_time.hour
            end_hour = routine.end_time.hour
            for slot in slots:
                if slot.hour_index == start_hour:
                    slot.labels.append(routine.title)
                    # Reduced by the start minute, not by the time the routine occupies.
                    slot.consume(routine.start_time.minute, threshold)
                elif start_hour < slot.hour_index < end_hour:
                    slot.close()

    def _first_open_hour(self, day: date, now: datetime) -> int:
        if not self.config.skip_elapsed_hours:
            return 0
        today = now.date()
        if day < today:
            return HOURS_PER_DAY
        if day == today:
            return now.hour
        return 0

    def _allocate(self, slots: list[ScheduleSlot], backlog: list[Task]) -> int:
        threshold = self.config.close_threshold_minutes
        candidates: list[Task] = []
        for task in backlog:
            if task.allocated_minutes > task.required_minutes:
                logger.warning(
                    "task %s already over-allocated (%s/%s min); leaving it out",
                    task.ref, task.allocated_minutes, task.required_minutes,
                )
            elif task.ref is None:
                logger.warning("task %r has no stored reference; leaving it out", task.name)
            else:
                candidates.append(task)
        total = 0
        for slot in slots:
            for task in candidates:
                if not slot.is_open:
                    break
                if task.done or task.fully_allocated:
                    continue
                allottable = max(0, min(slot.remaining_minutes, task.remaining_minutes))
                new_total = task.allocated_minutes + allottable
                self._tasks.update_allocated(task.ref, new_total)  # type: ignore[arg-type]
                task.allocated_minutes = new_total
                slot.labels.append(task.name)
                slot.consume(allottable, threshold)
                total += allottable
        return total

    def _lock_for(self, day: date) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(day)
            if lock is None:
                lock = self._locks[day] = threading.Lock()
            return lock

    def _drop_lock(self, day: date, lock: threading.Lock) -> None:
        # Only once the day is stored: latecomers then hit the cache, whichever lock they hold.
        with self._locks_guard:
            if self._locks.get(day) is lock:
                del self._locks[day]


__all__ = ["ScheduleSynthesizer", "parse_schedule_date"]
