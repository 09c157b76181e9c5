"""
Worker registry: skills and busy/idle state of every worker in the replay.
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Set

from call_replay.records import ActivityRecord, CallRecord

logger = logging.getLogger(__name__)


@dataclass
class Worker:
    """A worker and its current state."""
    worker_id: int
    skills: FrozenSet[str]
    busy: bool = False
    last_state_change: float = 0.0
    current_call: Optional[int] = None

    def can_handle(self, service: str) -> bool:
        return service in self.skills

    @property
    def is_idle(self) -> bool:
        return not self.busy


class WorkerRegistry:
    """Owns all workers and answers routing queries about them."""

    def __init__(self, workers: Iterable[Worker] = ()):
        self._workers: Dict[int, Worker] = {}
        for worker in workers:
            self._workers[worker.worker_id] = worker

    @classmethod
    def from_history(
        cls,
        calls: Iterable[CallRecord],
        activities: Iterable[ActivityRecord] = (),
    ) -> "WorkerRegistry":
        """Learn workers and skill sets from historical assignments.

        A worker's skills are the services it was assigned in ``calls``.
        Workers seen only in ``activities`` are registered with no skills.

        Args:
            calls: Historical call records
            activities: Worker activity records

        Returns:
            New registry with every worker idle
        """
        skills: Dict[int, Set[str]] = {}
        for call in calls:
            if call.worker_id is not None:
                skills.setdefault(call.worker_id, set()).add(call.service)

        for activity in activities:
            skills.setdefault(activity.worker_id, set())

        return cls(
            Worker(worker_id=worker_id, skills=frozenset(services))
            for worker_id, services in sorted(skills.items())
        )

    def __len__(self) -> int:
        return len(self._workers)

    def __iter__(self) -> Iterator[Worker]:
        return iter(self._workers.values())

    def __contains__(self, worker_id) -> bool:
        return worker_id in self._workers

    def get(self, worker_id: Optional[int]) -> Optional[Worker]:
        if worker_id is None:
            return None
        return self._workers.get(worker_id)

    def qualified(self, service: str) -> List[Worker]:
        """All workers whose skills include ``service``."""
        return [w for w in self._workers.values() if w.can_handle(service)]

    def count_idle(self, service: str) -> int:
        """Number of idle workers qualified for ``service``."""
        return sum(1 for w in self._workers.values() if w.is_idle and w.can_handle(service))

    def find_best_idle_worker(self, service: str) -> Optional[Worker]:
        """Longest-idle qualified worker for ``service``.

        Linear scan. Equal ``last_state_change`` values fall back to the
        lower worker id.

        Returns:
            The selected worker, or None if no qualified worker is idle
        """
        best = None
        for worker in self._workers.values():
            if worker.busy or not worker.can_handle(service):
                continue
            if best is None or (worker.last_state_change, worker.worker_id) < (
                best.last_state_change, best.worker_id
            ):
                best = worker
        return best

    def mark_busy(self, worker_id: Optional[int], at_time: float, call_id: Optional[int] = None) -> bool:
        """Mark a worker busy.

        Returns:
            False if the worker is unknown (nothing changes)
        """
        worker = self.get(worker_id)
        if worker is None:
            logger.debug("mark_busy ignored for unknown worker %s", worker_id)
            return False
        worker.busy = True
        worker.last_state_change = at_time
        worker.current_call = call_id
        return True

    def mark_idle(self, worker_id: Optional[int], at_time: float) -> bool:
        """Mark a worker idle.

        Returns:
            False if the worker is unknown (nothing changes)
        """
        worker = self.get(worker_id)
        if worker is None:
            logger.debug("mark_idle ignored for unknown worker %s", worker_id)
            return False
        worker.busy = False
        worker.last_state_change = at_time
        worker.current_call = None
        return True
