from datetime import datetime, timedelta

from fakes import FakeClock, make_task
from routine_planner.prioritizer import TaskPrioritizer, minutes_until_due, prioritize, priority_score

NOW = datetime(2025, 3, 10, 9, 0)


def test_filters_done_and_past_due():
    keep = make_task("keep", NOW + timedelta(hours=1))
    done = make_task("done", NOW + timedelta(hours=1), done=True)
    due_now = make_task("due-now", NOW)
    late = make_task("late", NOW - timedelta(minutes=1))
    assert [t.name for t in prioritize([keep, done, due_now, late], NOW)] == ["keep"]


def test_score_is_weighted_sum():
    t = make_task("t", NOW + timedelta(minutes=30), importance=9)
    assert minutes_until_due(t, NOW) == 30
    assert priority_score(t, NOW) == -30 + 90
    assert priority_score(t, NOW, importance_weight=0) == -30


def test_imminent_low_importance_beats_distant_high_importance():
    soon = make_task("soon", NOW + timedelta(minutes=30), importance=1)
    later = make_task("later", NOW + timedelta(days=2), importance=10)
    assert [t.name for t in prioritize([later, soon], NOW)] == ["soon", "later"]


def test_importance_breaks_close_deadlines():
    a = make_task("a", NOW + timedelta(minutes=60), importance=2)
    b = make_task("b", NOW + timedelta(minutes=70), importance=5)
    # a: -60 + 20 = -40, b: -70 + 50 = -20
    assert [t.name for t in prioritize([a, b], NOW)] == ["b", "a"]


def test_equal_scores_keep_input_order():
    due = NOW + timedelta(hours=3)
    tasks = [make_task(n, due) for n in ("x", "y", "z")]
    assert [t.name for t in prioritize(tasks, NOW)] == ["x", "y", "z"]


def test_prioritizer_uses_injected_clock():
    clock = FakeClock(NOW)
    p = TaskPrioritizer(clock)
    t = make_task("t", NOW + timedelta(minutes=10))
    assert p.prioritize([t]) == [t]
    clock.advance(20 * 60)
    assert p.prioritize([t]) == []
