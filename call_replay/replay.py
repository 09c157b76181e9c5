"""
Replay orchestrator: turns historical call records into events, drains
them through the scheduler and captures a snapshot at every arrival.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

import config
from call_replay.errors import EmptyReplayError, ReplayError
from call_replay.estimator import RollingStatistics
from call_replay.predictors import PredictorCalculator
from call_replay.queues import QueueStore
from call_replay.records import ActivityRecord, CallRecord
from call_replay.routing import RoutingPolicy
from call_replay.scheduler import EventKind, EventScheduler, ReplayEvent
from call_replay.snapshot import Snapshot, SnapshotLog
from call_replay.workers import WorkerRegistry

logger = logging.getLogger(__name__)


class ReplayOrchestrator:
    """Replay a call history and collect arrival snapshots."""

    def __init__(
        self,
        calls: Sequence[CallRecord],
        activities: Iterable[ActivityRecord] = (),
        services: Optional[Sequence[str]] = None,
        max_wait: float = config.MAX_WAIT_TIME,
        window_size: int = config.ROLLING_WINDOW_SIZE,
        min_interval: float = config.MIN_EVENT_INTERVAL,
        connection_delay: float = config.CONNECTION_DELAY,
        max_other_queues: int = config.MAX_OTHER_QUEUES,
        record_trace: bool = False,
    ):
        """Initialize the replay.

        Args:
            calls: Valid call records, ordered by arrival
            activities: Worker activity records (worker population only)
            services: In-scope services; order of first appearance in
                ``calls`` when omitted
            max_wait: Upper bound on plausible waits
            window_size: Capacity of the rolling statistics windows
            min_interval: Minimum separation between two dispatches
            connection_delay: Delay between queue advancement and answer
            max_other_queues: Other queue lengths recorded per snapshot
            record_trace: Keep the dispatch trace on the scheduler
        """
        self.calls: List[CallRecord] = list(calls)
        if services is None:
            services = list(dict.fromkeys(call.service for call in self.calls))
        self.services: List[str] = list(services)

        self.max_wait = max_wait
        self.max_other_queues = max_other_queues
        self.epoch: Optional[datetime] = (
            min(call.received for call in self.calls) if self.calls else None
        )

        self.registry = WorkerRegistry.from_history(self.calls, activities)
        self.queues = QueueStore(self.services)
        self.statistics = RollingStatistics(
            self.services, window_size=window_size, max_wait=max_wait
        )
        self.predictors = PredictorCalculator(self.statistics, self.services)
        self.scheduler = EventScheduler(
            self._dispatch, min_interval=min_interval, record_trace=record_trace
        )
        self.policy = RoutingPolicy(
            self.registry, self.queues, self.scheduler, connection_delay=connection_delay
        )

        self.snapshots = SnapshotLog()
        self.discarded_snapshots = 0
        self._events_scheduled = False

    def to_offset(self, moment: datetime) -> float:
        """Seconds between the replay epoch and ``moment``."""
        return (moment - self.epoch).total_seconds()

    def build_events(self) -> List[Tuple[float, ReplayEvent]]:
        """Initial event set, sorted by time.

        Each call contributes an arrival, an answer if answered no earlier
        than it arrived, and a hangup if it ended no earlier than it arrived.
        The sort is stable so a call's events keep that order on ties.
        """
        events = []
        for call in self.calls:
            arrival = self.to_offset(call.received)
            events.append((arrival, ReplayEvent(EventKind.ARRIVAL, call)))

            if call.answered is not None:
                answer = self.to_offset(call.answered)
                if answer >= arrival:
                    events.append((answer, ReplayEvent(EventKind.ANSWERED, call)))

            if call.hangup is not None:
                hangup = self.to_offset(call.hangup)
                if hangup >= arrival:
                    events.append((hangup, ReplayEvent(EventKind.HANGUP, call)))

        events.sort(key=lambda item: item[0])
        return events

    def schedule_events(self) -> int:
        """Hand the initial event set to the scheduler.

        Returns:
            Number of events accepted
        """
        accepted = 0
        for timestamp, event in self.build_events():
            if self.scheduler.schedule(timestamp, event) is not None:
                accepted += 1
        self._events_scheduled = True
        logger.info("Scheduled %d events for %d calls", accepted, len(self.calls))
        return accepted

    def run(self, until: Optional[float] = None, require_calls: bool = False) -> SnapshotLog:
        """Replay the call history.

        Args:
            until: Stop once the next event would dispatch after this time;
                a later call resumes from there
            require_calls: Raise instead of doing nothing on empty input

        Returns:
            The snapshot log
        """
        if not self.calls:
            if require_calls:
                raise EmptyReplayError("No call records to replay")
            logger.info("No call records to replay")
            return self.snapshots

        if not self._events_scheduled:
            self.schedule_events()

        dispatched = self.scheduler.run(until=until)
        logger.info(
            "Dispatched %d events, captured %d snapshots (%d discarded)",
            dispatched, len(self.snapshots), self.discarded_snapshots,
        )
        return self.snapshots

    def _dispatch(self, event: ReplayEvent):
        now = self.scheduler.now
        if event.kind is EventKind.ARRIVAL:
            self._on_arrival(event.call, now)
        elif event.kind is EventKind.ANSWERED:
            self.policy.on_answered(event.call, now, worker_id=event.worker_id)
        elif event.kind is EventKind.HANGUP:
            self.statistics.record_completion(event.call)
            self.policy.on_hangup(event.call, now)
        else:
            raise ReplayError(f"Unhandled event kind: {event.kind!r}")

    def _on_arrival(self, call: CallRecord, now: float):
        # Capture before the arrival changes queue or worker state
        snapshot = self.capture_snapshot(call)
        self.policy.on_arrival(call, now)

        if snapshot.is_valid(self.max_wait):
            self.snapshots.append(snapshot)
        else:
            self.discarded_snapshots += 1

    def capture_snapshot(self, call: CallRecord) -> Snapshot:
        """Current system state as seen by an arriving call."""
        service = call.service
        queue_length = self.queues.length(service)
        idle_workers = self.registry.count_idle(service)
        predictors = self.predictors.compute(service, queue_length, idle_workers)

        return Snapshot(
            call_id=call.call_id,
            service=service,
            arrival_time=call.received,
            queue_length=queue_length,
            other_queue_lengths=tuple(self.queues.other_lengths(service, self.max_other_queues)),
            available_workers=max(1, idle_workers),
            les_predictor=predictors.les,
            avg_les_predictor=predictors.avg_les,
            realized_wait=call.realized_wait,
        )
