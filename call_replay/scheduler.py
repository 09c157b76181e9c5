"""
Time-ordered event scheduler for the replay.

Pending events live in a binary heap keyed by effective time. The drain
loop runs as a SimPy process, so the SimPy clock follows the dispatch
cursor and handlers may schedule new events while they run.
"""

import heapq
import itertools
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

import simpy

import config
from call_replay.records import CallRecord

logger = logging.getLogger(__name__)


class EventKind(Enum):
    """The closed set of replay events."""
    ARRIVAL = "arrival"
    ANSWERED = "answered"
    HANGUP = "hangup"


@dataclass(frozen=True)
class ReplayEvent:
    """Payload of one pending event.

    ``worker_id`` is only set on answered events produced by queue
    advancement, naming the worker the call was routed to.
    """
    kind: EventKind
    call: CallRecord
    worker_id: Optional[int] = None


class EventScheduler:
    """Dispatch events one at a time in non-decreasing time order."""

    def __init__(
        self,
        handler: Callable[[ReplayEvent], None],
        min_interval: float = config.MIN_EVENT_INTERVAL,
        env: Optional[simpy.Environment] = None,
        record_trace: bool = False,
    ):
        """Initialize scheduler.

        Args:
            handler: Called with each event at its dispatch time
            min_interval: Minimum separation between two dispatches
            env: SimPy environment driving the clock (a fresh one by default)
            record_trace: Keep (dispatch_time, event) pairs in ``trace``
        """
        if min_interval <= 0:
            raise ValueError(f"min_interval must be positive, got {min_interval}")

        self.handler = handler
        self.min_interval = min_interval
        self.env = env if env is not None else simpy.Environment()

        self._pending: List[tuple] = []
        self._sequence = itertools.count()

        self.last_dispatched_time = 0.0
        self.dispatched_count = 0
        self.dropped_count = 0

        self.record_trace = record_trace
        self.trace: List[tuple] = []

    @property
    def now(self) -> float:
        """Time of the event currently (or last) dispatched."""
        return self.last_dispatched_time

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def schedule(self, timestamp: float, event: ReplayEvent) -> Optional[float]:
        """Insert an event.

        Args:
            timestamp: Requested dispatch time
            event: Payload handed to the handler

        Returns:
            Effective time the event was stored at, or None if dropped
        """
        try:
            timestamp = float(timestamp)
        except (TypeError, ValueError):
            timestamp = math.nan

        if not math.isfinite(timestamp):
            self.dropped_count += 1
            logger.warning(
                "Dropped %s event for call %s: unschedulable time %r",
                event.kind.value, event.call.call_id, timestamp,
            )
            return None

        effective = max(timestamp, self.last_dispatched_time + self.min_interval)
        heapq.heappush(self._pending, (effective, next(self._sequence), event))
        return effective

    def run(self, until: Optional[float] = None) -> int:
        """Drain pending events, including ones added during the drain.

        Args:
            until: Leave events that would dispatch after this time pending

        Returns:
            Number of events dispatched by this call
        """
        dispatched_before = self.dispatched_count
        process = self.env.process(self._drain(until))
        self.env.run(until=process)
        return self.dispatched_count - dispatched_before

    def _drain(self, until: Optional[float]):
        """SimPy process: pop and dispatch events until none remain."""
        while self._pending:
            effective, _, event = self._pending[0]
            dispatch_time = max(effective, self.last_dispatched_time + self.min_interval)

            if until is not None and dispatch_time > until:
                break
            heapq.heappop(self._pending)

            # Floating-point drift can leave the SimPy clock a hair ahead
            yield self.env.timeout(max(0.0, dispatch_time - self.env.now))

            self.last_dispatched_time = dispatch_time
            self.dispatched_count += 1
            if self.record_trace:
                self.trace.append((dispatch_time, event))

            self.handler(event)
