"""
Snapshots of system state captured at call arrivals.
Kept in memory in arrival dispatch order.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Iterator, List, Tuple
import pandas as pd
import config


@dataclass(frozen=True)
class Snapshot:
    """System state seen by one arriving call, labeled with its realized wait."""
    call_id: int
    service: str
    arrival_time: datetime
    queue_length: int
    other_queue_lengths: Tuple[int, ...]
    available_workers: int
    les_predictor: float
    avg_les_predictor: float
    realized_wait: float

    @property
    def hour(self) -> int:
        return self.arrival_time.hour

    @property
    def day_of_week(self) -> int:
        """ISO day of week, Monday is 1."""
        return self.arrival_time.isoweekday()

    def is_valid(self, max_wait: float = config.MAX_WAIT_TIME) -> bool:
        """Whether the snapshot is a meaningful training sample."""
        return (
            0 <= self.realized_wait < max_wait
            and self.queue_length >= 0
            and self.available_workers > 0
        )

    def to_row(self) -> dict:
        row = asdict(self)
        others = row.pop("other_queue_lengths")
        for index, length in enumerate(others, start=1):
            row[f"other_queue_{index}"] = length
        row["hour"] = self.hour
        row["day_of_week"] = self.day_of_week
        return row


class SnapshotLog:
    """Append-only sequence of captured snapshots."""

    def __init__(self):
        self.snapshots: List[Snapshot] = []

    def append(self, snapshot: Snapshot):
        self.snapshots.append(snapshot)

    def __len__(self) -> int:
        return len(self.snapshots)

    def __iter__(self) -> Iterator[Snapshot]:
        return iter(self.snapshots)

    def __getitem__(self, index):
        return self.snapshots[index]

    def for_service(self, service: str) -> List[Snapshot]:
        """Snapshots captured for one service."""
        return [s for s in self.snapshots if s.service == service]

    def get_dataframe(self) -> pd.DataFrame:
        """Return snapshots as a pandas DataFrame, one row per snapshot."""
        if not self.snapshots:
            columns = [
                "call_id", "service", "arrival_time", "queue_length",
                "available_workers", "les_predictor", "avg_les_predictor",
                "realized_wait", "hour", "day_of_week",
            ] + [f"other_queue_{i}" for i in range(1, config.MAX_OTHER_QUEUES + 1)]
            return pd.DataFrame(columns=columns)

        return pd.DataFrame([s.to_row() for s in self.snapshots])
