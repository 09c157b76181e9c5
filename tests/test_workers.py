"""
Tests for the worker registry.
"""

import pytest

from call_replay.records import ActivityRecord
from call_replay.workers import Worker, WorkerRegistry
from conftest import at


def test_skills_learned_from_history(make_call):
    """Each worker can serve exactly the services it was assigned."""
    calls = [
        make_call(0, 0, service="A", worker=1),
        make_call(1, 1, service="B", worker=1),
        make_call(2, 2, service="B", worker=2),
        make_call(3, 3, service="C"),
    ]
    registry = WorkerRegistry.from_history(calls)

    assert len(registry) == 2
    assert registry.get(1).skills == frozenset({"A", "B"})
    assert registry.get(2).skills == frozenset({"B"})
    assert all(w.is_idle and w.last_state_change == 0.0 for w in registry)


def test_activity_only_workers_have_no_skills(make_call):
    """Workers known only from activity records never qualify for a service."""
    activities = [ActivityRecord(activity_id=1, worker_id=9, start=at(0))]
    registry = WorkerRegistry.from_history([make_call(0, 0, worker=1)], activities)

    assert 9 in registry
    assert registry.get(9).skills == frozenset()
    assert registry.find_best_idle_worker("A").worker_id == 1


def test_longest_idle_tie_break():
    """The idle qualified worker with the oldest state change wins."""
    registry = WorkerRegistry([
        Worker(1, frozenset({"A"}), last_state_change=5.0),
        Worker(2, frozenset({"A"}), last_state_change=2.0),
        Worker(3, frozenset({"B"}), last_state_change=0.0),
        Worker(4, frozenset({"A"}), busy=True, last_state_change=1.0),
    ])

    assert registry.find_best_idle_worker("A").worker_id == 2
    assert registry.find_best_idle_worker("B").worker_id == 3
    assert registry.find_best_idle_worker("C") is None


def test_equal_timestamps_prefer_lower_id():
    registry = WorkerRegistry([
        Worker(8, frozenset({"A"})),
        Worker(3, frozenset({"A"})),
    ])
    assert registry.find_best_idle_worker("A").worker_id == 3


def test_mark_busy_and_idle():
    """State changes update the flag, the timestamp and the held call."""
    registry = WorkerRegistry([Worker(1, frozenset({"A"}))])

    assert registry.mark_busy(1, 10.0, call_id=42)
    worker = registry.get(1)
    assert worker.busy and worker.current_call == 42
    assert worker.last_state_change == 10.0
    assert registry.count_idle("A") == 0
    assert registry.find_best_idle_worker("A") is None

    assert registry.mark_idle(1, 15.0)
    assert worker.is_idle and worker.current_call is None
    assert worker.last_state_change == 15.0
    assert registry.count_idle("A") == 1


def test_unknown_worker_is_noop():
    """Unknown or missing worker ids change nothing."""
    registry = WorkerRegistry([Worker(1, frozenset({"A"}))])

    assert registry.mark_busy(99, 1.0) is False
    assert registry.mark_idle(None, 1.0) is False
    assert registry.get(1).is_idle


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
