"""
Per-service FIFO queues of waiting calls.
"""

from collections import deque
from typing import Deque, Dict, Iterable, List, Optional

from call_replay.records import CallRecord


class QueueStore:
    """One first-come-first-served queue per service."""

    def __init__(self, services: Iterable[str] = ()):
        self._queues: Dict[str, Deque[CallRecord]] = {}
        for service in services:
            self._queues[service] = deque()

    def _queue(self, service: str) -> Deque[CallRecord]:
        if service not in self._queues:
            self._queues[service] = deque()
        return self._queues[service]

    @property
    def services(self) -> List[str]:
        """Services in the order their queues were created."""
        return list(self._queues)

    def enqueue(self, call: CallRecord):
        """Append a call to the tail of its service queue."""
        self._queue(call.service).append(call)

    def dequeue(self, service: str) -> Optional[CallRecord]:
        """Pop the head of a service queue, or None if it is empty."""
        queue = self._queue(service)
        if not queue:
            return None
        return queue.popleft()

    def remove(self, call: CallRecord) -> bool:
        """Remove a call wherever it sits in its queue.

        Returns:
            True if the call was queued
        """
        queue = self._queue(call.service)
        for index, queued in enumerate(queue):
            if queued.call_id == call.call_id:
                del queue[index]
                return True
        return False

    def calls(self, service: str) -> List[CallRecord]:
        """Waiting calls of a service, head first."""
        return list(self._queues.get(service, ()))

    def length(self, service: str) -> int:
        return len(self._queues.get(service, ()))

    def other_lengths(self, service: str, limit: int) -> List[int]:
        """Lengths of the other services' queues, zero-padded to ``limit``."""
        lengths = [len(q) for s, q in self._queues.items() if s != service][:limit]
        return lengths + [0] * (limit - len(lengths))

