from __future__ import annotations

"""Backlog ordering for the schedule synthesizer."""

from datetime import datetime
from typing import Iterable, Optional

from .models import Task
from .ports import Clock

DEFAULT_IMPORTANCE_WEIGHT = 10


def minutes_until_due(task: Task, now: datetime) -> int:
    return int((task.due_at - now).total_seconds() // 60)


def priority_score(task: Task, now: datetime, importance_weight: int = DEFAULT_IMPORTANCE_WEIGHT) -> int:
    """Single weighted sum; higher means more pressing.

    Minutes dominate: a task due in two days sits thousands of points down,
    while importance adds at most ``10 * importance_weight``.
    """
    return -minutes_until_due(task, now) + task.importance * importance_weight


def prioritize(
    tasks: Iterable[Task], now: datetime, importance_weight: int = DEFAULT_IMPORTANCE_WEIGHT
) -> list[Task]:
    """Drop finished and overdue tasks, most pressing first.

    ``sorted`` is stable, so equal scores keep the store's order.
    """
    pending = [t for t in tasks if t.due_at > now and not t.done]
    return sorted(pending, key=lambda t: -priority_score(t, now, importance_weight))


class TaskPrioritizer:
    def __init__(self, clock: Optional[Clock] = None, importance_weight: int = DEFAULT_IMPORTANCE_WEIGHT) -> None:
        self._clock: Clock = clock or datetime.now
        self.importance_weight = importance_weight

    def prioritize(self, tasks: Iterable[Task], now: Optional[datetime] = None) -> list[Task]:
        return prioritize(tasks, now or self._clock(), self.importance_weight)


__all__ = ["TaskPrioritizer", "minutes_until_due", "prioritize", "priority_score"]
