"""
Typed historical records consumed by the replay engine.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class CallRecord:
    """One historical call.

    ``call_id`` is assigned sequentially at ingestion; it is the only
    identity the engine uses to match a call across its events.
    """
    call_id: int
    received: datetime
    service: str
    worker_id: Optional[int] = None
    answered: Optional[datetime] = None
    hangup: Optional[datetime] = None

    @property
    def was_answered(self) -> bool:
        return self.answered is not None

    @property
    def wait_seconds(self) -> Optional[float]:
        """Seconds from arrival to answer, None if never answered."""
        if self.answered is None:
            return None
        return (self.answered - self.received).total_seconds()

    @property
    def service_seconds(self) -> Optional[float]:
        """Seconds from answer to hangup, None unless both are known."""
        if self.answered is None or self.hangup is None:
            return None
        return (self.hangup - self.answered).total_seconds()

    @property
    def realized_wait(self) -> float:
        """Wait the caller actually experienced.

        Answer time minus arrival, or hangup minus arrival for a call that
        was abandoned. Zero when neither is known.
        """
        if self.answered is not None:
            return (self.answered - self.received).total_seconds()
        if self.hangup is not None:
            return (self.hangup - self.received).total_seconds()
        return 0.0


@dataclass(frozen=True)
class ActivityRecord:
    """A worker activity period (login/logout span)."""
    activity_id: Optional[int]
    worker_id: int
    start: datetime
    end: Optional[datetime] = None
    campaign_id: Optional[int] = None
