"""
Skill-based routing policy.

Greedy and myopic: an arriving call goes to the longest-idle qualified
worker if there is one, otherwise to the tail of its service queue. When a
worker frees up the head of the queue is routed to the longest-idle
qualified worker.
"""

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Dict, Optional, Set

import config
from call_replay.queues import QueueStore
from call_replay.records import CallRecord
from call_replay.scheduler import EventKind, EventScheduler, ReplayEvent
from call_replay.workers import WorkerRegistry

logger = logging.getLogger(__name__)


class CallState(Enum):
    ARRIVED = "arrived"
    ROUTED = "routed"
    QUEUED = "queued"
    ANSWERED = "answered"
    ENDED = "ended"


@dataclass
class ServiceCounters:
    """Event counts for one service."""
    arrivals: int = 0
    routed: int = 0
    queued: int = 0
    answers: int = 0
    hangups: int = 0
    abandoned: int = 0
    advanced: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class RoutingPolicy:
    """Apply call transitions to the worker registry and queue store."""

    def __init__(
        self,
        registry: WorkerRegistry,
        queues: QueueStore,
        scheduler: EventScheduler,
        connection_delay: float = config.CONNECTION_DELAY,
    ):
        """Initialize routing policy.

        Args:
            registry: Worker registry (shared, mutated)
            queues: Queue store (shared, mutated)
            scheduler: Scheduler receiving answered events from queue advancement
            connection_delay: Delay between popping a queued call and its answer
        """
        self.registry = registry
        self.queues = queues
        self.scheduler = scheduler
        self.connection_delay = connection_delay

        self.states: Dict[int, CallState] = {}
        self.held_by: Dict[int, int] = {}  # call_id -> worker_id
        self.abandoned: Set[int] = set()
        self.counters: Dict[str, ServiceCounters] = {}

    def _counters(self, service: str) -> ServiceCounters:
        if service not in self.counters:
            self.counters[service] = ServiceCounters()
        return self.counters[service]

    def state_of(self, call: CallRecord) -> Optional[CallState]:
        return self.states.get(call.call_id)

    def worker_holding(self, call: CallRecord) -> Optional[int]:
        return self.held_by.get(call.call_id)

    def _assign(self, call: CallRecord, worker_id: int, now: float):
        self.registry.mark_busy(worker_id, now, call_id=call.call_id)
        self.held_by[call.call_id] = worker_id

    def on_arrival(self, call: CallRecord, now: float) -> CallState:
        """Route an arriving call or queue it.

        Returns:
            ROUTED or QUEUED
        """
        counters = self._counters(call.service)
        counters.arrivals += 1

        worker = self.registry.find_best_idle_worker(call.service)
        if worker is not None:
            self._assign(call, worker.worker_id, now)
            self.states[call.call_id] = CallState.ROUTED
            counters.routed += 1
            logger.debug("Routed call %s to worker %s at %.3f", call.call_id, worker.worker_id, now)
            return CallState.ROUTED

        self.queues.enqueue(call)
        self.states[call.call_id] = CallState.QUEUED
        counters.queued += 1
        logger.debug("Queued call %s for service %s at %.3f", call.call_id, call.service, now)
        return CallState.QUEUED

    def on_answered(self, call: CallRecord, now: float, worker_id: Optional[int] = None):
        """Handle an answer, historical or produced by queue advancement.

        Args:
            call: The answered call
            now: Dispatch time
            worker_id: Worker chosen by queue advancement; the historical
                worker is used when omitted
        """
        if self.states.get(call.call_id) is CallState.ENDED:
            logger.debug("Ignored answer for ended call %s", call.call_id)
            return

        if not self.queues.remove(call):
            logger.debug("Call %s was not queued at answer time", call.call_id)

        if call.call_id not in self.held_by:
            resolving = worker_id if worker_id is not None else call.worker_id
            worker = self.registry.get(resolving)
            if worker is not None and worker.is_idle:
                self._assign(call, worker.worker_id, now)
            elif worker is not None:
                logger.debug(
                    "Worker %s busy with call %s, not taking call %s",
                    worker.worker_id, worker.current_call, call.call_id,
                )

        self.states[call.call_id] = CallState.ANSWERED
        self._counters(call.service).answers += 1

    def on_hangup(self, call: CallRecord, now: float):
        """Release the call's worker, or drop it from its queue, then advance the queue."""
        counters = self._counters(call.service)
        counters.hangups += 1

        worker_id = self.held_by.pop(call.call_id, None)
        if worker_id is not None:
            self.registry.mark_idle(worker_id, now)
        elif self.queues.remove(call):
            self.abandoned.add(call.call_id)
            counters.abandoned += 1
            logger.debug("Call %s abandoned after %.3f", call.call_id, now)

        self.states[call.call_id] = CallState.ENDED
        self.advance_queue(call.service, now)

    def advance_queue(self, service: str, now: float) -> Optional[CallRecord]:
        """Route the head of a service queue if a qualified worker is idle.

        Returns:
            The routed call, or None
        """
        if self.queues.length(service) == 0:
            return None

        worker = self.registry.find_best_idle_worker(service)
        if worker is None:
            return None

        call = self.queues.dequeue(service)
        self._assign(call, worker.worker_id, now)
        self.states[call.call_id] = CallState.ROUTED
        self._counters(service).advanced += 1

        self.scheduler.schedule(
            now + self.connection_delay,
            ReplayEvent(EventKind.ANSWERED, call, worker_id=worker.worker_id),
        )
        logger.debug("Advanced call %s to worker %s at %.3f", call.call_id, worker.worker_id, now)
        return call
