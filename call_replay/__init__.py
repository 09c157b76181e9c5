"""Time-ordered replay of historical contact-center calls."""

from call_replay.records import ActivityRecord, CallRecord
from call_replay.errors import EmptyReplayError, IngestError, ReplayError
from call_replay.replay import ReplayOrchestrator
from call_replay.snapshot import Snapshot, SnapshotLog

__all__ = [
    "ActivityRecord",
    "CallRecord",
    "EmptyReplayError",
    "IngestError",
    "ReplayError",
    "ReplayOrchestrator",
    "Snapshot",
    "SnapshotLog",
]
