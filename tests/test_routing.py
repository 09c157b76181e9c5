"""
Tests for the queue store and the routing policy.
"""

import pytest

from call_replay.queues import QueueStore
from call_replay.routing import CallState, RoutingPolicy
from call_replay.scheduler import EventKind, EventScheduler
from call_replay.workers import Worker, WorkerRegistry


def _policy(workers, services=("A",)):
    registry = WorkerRegistry(workers)
    queues = QueueStore(services)
    scheduler = EventScheduler(lambda e: None, record_trace=True)
    return RoutingPolicy(registry, queues, scheduler, connection_delay=0.1), scheduler


def test_queue_fifo(make_call):
    """Dequeue returns calls in the order they were enqueued."""
    queues = QueueStore(["A"])
    for call_id in range(3):
        queues.enqueue(make_call(call_id, call_id))

    assert queues.length("A") == 3
    assert [queues.dequeue("A").call_id for _ in range(3)] == [0, 1, 2]
    assert queues.dequeue("A") is None


def test_queue_remove_by_identity(make_call):
    """Removal matches on call id, not on arrival time or worker."""
    queues = QueueStore(["A"])
    first = make_call(0, 5, worker=1)
    duplicate = make_call(1, 5, worker=1)
    queues.enqueue(first)
    queues.enqueue(duplicate)

    assert queues.remove(duplicate)
    assert [c.call_id for c in queues.calls("A")] == [0]
    assert not queues.remove(duplicate)


def test_other_lengths_padded(make_call):
    queues = QueueStore(["A", "B", "C"])
    queues.enqueue(make_call(0, 0, service="B"))
    queues.enqueue(make_call(1, 0, service="B"))
    queues.enqueue(make_call(2, 0, service="C"))

    assert queues.other_lengths("A", 4) == [2, 1, 0, 0]
    assert queues.other_lengths("B", 4) == [0, 1, 0, 0]
    assert queues.other_lengths("A", 1) == [2]


def test_arrival_routes_to_idle_worker(make_call):
    """An arrival with an idle qualified worker is routed, not queued."""
    policy, _ = _policy([Worker(1, frozenset({"A"}))])
    call = make_call(0, 0)

    assert policy.on_arrival(call, 1.0) is CallState.ROUTED
    assert policy.worker_holding(call) == 1
    assert policy.queues.length("A") == 0
    assert policy.registry.get(1).current_call == 0


def test_arrival_queued_without_qualified_worker(make_call):
    """Workers lacking the skill never take the call."""
    policy, _ = _policy([Worker(1, frozenset({"B"}))], services=("A", "B"))
    call = make_call(0, 0, service="A")

    assert policy.on_arrival(call, 1.0) is CallState.QUEUED
    assert policy.worker_holding(call) is None
    assert policy.queues.calls("A") == [call]


def test_hangup_advances_queue_fcfs(make_call):
    """A freed worker takes the earliest queued call after the connection delay."""
    policy, scheduler = _policy([Worker(1, frozenset({"A"}))])
    calls = [make_call(i, i) for i in range(3)]
    for index, call in enumerate(calls):
        policy.on_arrival(call, float(index))

    policy.on_hangup(calls[0], 5.0)

    assert policy.worker_holding(calls[1]) == 1
    assert policy.state_of(calls[1]) is CallState.ROUTED
    assert [c.call_id for c in policy.queues.calls("A")] == [2]
    assert scheduler.pending_count == 1

    effective, _, event = scheduler._pending[0]
    assert effective == pytest.approx(5.1)
    assert event.kind is EventKind.ANSWERED
    assert event.call is calls[1] and event.worker_id == 1


def test_answer_removes_queued_call(make_call):
    """A historical answer pulls the call out of its queue onto its worker."""
    policy, _ = _policy([Worker(1, frozenset({"A"})), Worker(2, frozenset({"A"}))])
    policy.registry.mark_busy(1, 0.0, call_id=100)
    policy.registry.mark_busy(2, 0.0, call_id=101)
    call = make_call(0, 0, worker=2)
    policy.on_arrival(call, 1.0)
    policy.registry.mark_idle(2, 2.0)

    policy.on_answered(call, 3.0)

    assert policy.queues.length("A") == 0
    assert policy.worker_holding(call) == 2
    assert policy.state_of(call) is CallState.ANSWERED


def test_answer_for_routed_call_is_expected(make_call):
    """Answering a directly routed call keeps it with its worker."""
    policy, _ = _policy([Worker(1, frozenset({"A"})), Worker(2, frozenset({"A"}))])
    call = make_call(0, 0, worker=2)
    policy.on_arrival(call, 1.0)
    held = policy.worker_holding(call)

    policy.on_answered(call, 1.5)

    assert policy.worker_holding(call) == held
    assert sum(1 for w in policy.registry if w.busy) == 1


def test_answer_never_double_books_worker(make_call):
    """A busy historical worker does not take a second call."""
    policy, _ = _policy([Worker(1, frozenset({"A"}))])
    first = make_call(0, 0, worker=1)
    second = make_call(1, 1, worker=1)
    policy.on_arrival(first, 0.0)
    policy.on_arrival(second, 1.0)

    policy.on_answered(second, 2.0)

    assert policy.worker_holding(first) == 1
    assert policy.worker_holding(second) is None
    assert policy.queues.length("A") == 0


def test_hangup_of_queued_call_is_abandonment(make_call):
    """A queued call that hangs up leaves the queue and frees no worker."""
    policy, _ = _policy([Worker(1, frozenset({"A"}))])
    busy = make_call(0, 0)
    waiting = make_call(1, 1)
    policy.on_arrival(busy, 0.0)
    policy.on_arrival(waiting, 1.0)

    policy.on_hangup(waiting, 20.0)

    assert policy.queues.length("A") == 0
    assert waiting.call_id in policy.abandoned
    assert policy.counters["A"].abandoned == 1
    assert policy.registry.get(1).current_call == busy.call_id


def test_answer_after_hangup_ignored(make_call):
    """An answer dispatched after the call ended does not seize a worker."""
    policy, _ = _policy([Worker(1, frozenset({"A"}))])
    call = make_call(0, 0, worker=1)
    policy.on_arrival(call, 0.0)
    policy.on_hangup(call, 5.0)

    policy.on_answered(call, 5.1, worker_id=1)

    assert policy.registry.get(1).is_idle
    assert policy.state_of(call) is CallState.ENDED


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
