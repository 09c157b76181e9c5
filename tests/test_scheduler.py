"""
Tests for the time-ordered event scheduler.
"""

import math

import pytest

from call_replay.scheduler import EventKind, EventScheduler, ReplayEvent


def _event(make_call, call_id, kind=EventKind.ARRIVAL):
    return ReplayEvent(kind, make_call(call_id, 0))


def test_dispatch_in_time_order(make_call):
    """Events dispatch by ascending time regardless of insertion order."""
    seen = []
    scheduler = EventScheduler(lambda e: seen.append(e.call.call_id))

    scheduler.schedule(30.0, _event(make_call, 3))
    scheduler.schedule(10.0, _event(make_call, 1))
    scheduler.schedule(20.0, _event(make_call, 2))
    dispatched = scheduler.run()

    assert dispatched == 3
    assert seen == [1, 2, 3]
    assert scheduler.pending_count == 0


def test_ties_keep_insertion_order(make_call):
    """Events at the same time dispatch in the order they were inserted."""
    seen = []
    scheduler = EventScheduler(lambda e: seen.append(e.call.call_id))

    for call_id in range(5):
        scheduler.schedule(7.0, _event(make_call, call_id))
    scheduler.run()

    assert seen == [0, 1, 2, 3, 4]


def test_minimum_separation_between_dispatches(make_call):
    """Colliding and out-of-order timestamps are pushed apart by min_interval."""
    scheduler = EventScheduler(lambda e: None, min_interval=0.001, record_trace=True)

    for call_id, timestamp in enumerate([0.0, 5.0, 5.0, 5.0, 4.9999, 0.0, 12.0]):
        scheduler.schedule(timestamp, _event(make_call, call_id))
    scheduler.run()

    times = [t for t, _ in scheduler.trace]
    assert len(times) == 7
    assert times[0] == pytest.approx(0.001), "Cursor starts at zero"
    for earlier, later in zip(times, times[1:]):
        assert later - earlier >= 0.001 - 1e-9, f"{earlier} and {later} too close"


def test_effective_time_respects_cursor(make_call):
    """An insertion in the past is moved just after the last dispatch."""
    scheduler = EventScheduler(lambda e: None, min_interval=0.5)

    assert scheduler.schedule(3.0, _event(make_call, 0)) == 3.0
    assert scheduler.schedule(0.0, _event(make_call, 1)) == 0.5
    scheduler.run()

    assert scheduler.now == pytest.approx(3.0)
    assert scheduler.schedule(1.0, _event(make_call, 2)) == pytest.approx(3.5)


def test_reentrant_scheduling(make_call):
    """Handlers can schedule new events that are drained in the same run."""
    seen = []
    scheduler = EventScheduler(lambda e: None)

    def handler(event):
        seen.append((event.kind, scheduler.now))
        if event.kind is EventKind.HANGUP:
            scheduler.schedule(scheduler.now + 0.1, ReplayEvent(EventKind.ANSWERED, event.call))

    scheduler.handler = handler
    scheduler.schedule(1.0, _event(make_call, 0, EventKind.HANGUP))
    scheduler.schedule(2.0, _event(make_call, 1, EventKind.ARRIVAL))
    scheduler.run()

    kinds = [kind for kind, _ in seen]
    assert kinds == [EventKind.HANGUP, EventKind.ANSWERED, EventKind.ARRIVAL]
    assert seen[1][1] == pytest.approx(1.1)


@pytest.mark.parametrize("timestamp", [math.nan, math.inf, -math.inf, None, "soon"])
def test_unschedulable_timestamp_dropped(make_call, timestamp):
    """Non-finite timestamps are dropped without stopping the run."""
    seen = []
    scheduler = EventScheduler(lambda e: seen.append(e.call.call_id))

    assert scheduler.schedule(timestamp, _event(make_call, 0)) is None
    scheduler.schedule(1.0, _event(make_call, 1))
    scheduler.run()

    assert scheduler.dropped_count == 1
    assert seen == [1]


def test_run_until_leaves_later_events_pending(make_call):
    """A horizon stops the drain; a later run resumes it."""
    seen = []
    scheduler = EventScheduler(lambda e: seen.append(e.call.call_id))
    for call_id, timestamp in enumerate([1.0, 2.0, 10.0]):
        scheduler.schedule(timestamp, _event(make_call, call_id))

    assert scheduler.run(until=5.0) == 2
    assert scheduler.pending_count == 1
    assert seen == [0, 1]

    scheduler.run()
    assert seen == [0, 1, 2]
    assert scheduler.env.now == pytest.approx(10.0)


def test_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        EventScheduler(lambda e: None, min_interval=0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
