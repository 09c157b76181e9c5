"""
Loading of historical call and activity exports into typed records.

Bad rows are skipped and counted, never raised.
"""

import logging
from collections import Counter
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

import pandas as pd

import config
from call_replay.errors import IngestError
from call_replay.records import ActivityRecord, CallRecord

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _read_csv(path: PathLike, required: Sequence[str]) -> pd.DataFrame:
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    missing = [column for column in required if column not in df.columns]
    if missing:
        raise IngestError(f"{path}: missing columns {missing}")
    return df


def _parse_times(series: pd.Series) -> pd.Series:
    return pd.to_datetime(series.str.strip(), format=config.TIMESTAMP_FORMAT, errors="coerce")


def _parse_numbers(series: pd.Series) -> pd.Series:
    return pd.to_numeric(series.str.strip(), errors="coerce")


def _optional_time(value) -> Optional[datetime]:
    if pd.isna(value):
        return None
    return value.to_pydatetime()


def _optional_int(value) -> Optional[int]:
    if pd.isna(value):
        return None
    return int(value)


def read_calls(path: PathLike) -> List[CallRecord]:
    """Read a call export.

    Rows without a parseable ``date_received`` or with no ``queue_name``
    are skipped. Unparseable optional fields become None.

    Args:
        path: CSV file with at least ``config.CALL_COLUMNS``

    Returns:
        Call records in file order, numbered from 0
    """
    df = _read_csv(path, config.CALL_COLUMNS)

    received = _parse_times(df["date_received"])
    answered = _parse_times(df["answered"])
    hangup = _parse_times(df["hangup"])
    workers = _parse_numbers(df["agent_number"])
    services = df["queue_name"].str.strip()

    calls = []
    skipped = 0
    for row in range(len(df)):
        if pd.isna(received.iat[row]) or not services.iat[row]:
            skipped += 1
            logger.warning("Skipped call row %d: %s", row + 2, df.iloc[row].to_dict())
            continue

        calls.append(CallRecord(
            call_id=len(calls),
            received=received.iat[row].to_pydatetime(),
            service=services.iat[row],
            worker_id=_optional_int(workers.iat[row]),
            answered=_optional_time(answered.iat[row]),
            hangup=_optional_time(hangup.iat[row]),
        ))

    logger.info("Parsed %d calls from %s (%d rows skipped)", len(calls), path, skipped)
    return calls


def read_activities(path: PathLike) -> List[ActivityRecord]:
    """Read a worker activity export.

    Rows without ``agent_id`` or a parseable ``startdatetime`` are skipped.
    """
    df = _read_csv(path, config.ACTIVITY_COLUMNS)

    ids = _parse_numbers(df["id"])
    workers = _parse_numbers(df["agent_id"])
    campaigns = _parse_numbers(df["campaign_id"])
    starts = _parse_times(df["startdatetime"])
    ends = _parse_times(df["enddatetime"])

    activities = []
    skipped = 0
    for row in range(len(df)):
        if pd.isna(workers.iat[row]) or pd.isna(starts.iat[row]):
            skipped += 1
            logger.warning("Skipped activity row %d", row + 2)
            continue

        activities.append(ActivityRecord(
            activity_id=_optional_int(ids.iat[row]),
            worker_id=int(workers.iat[row]),
            start=starts.iat[row].to_pydatetime(),
            end=_optional_time(ends.iat[row]),
            campaign_id=_optional_int(campaigns.iat[row]),
        ))

    logger.info("Parsed %d activities from %s (%d rows skipped)", len(activities), path, skipped)
    return activities


def is_valid_call(call: CallRecord, max_wait: float = config.MAX_WAIT_TIME) -> bool:
    """Check the temporal consistency of a call record."""
    if call.received is None:
        return False

    if call.answered is not None:
        wait = call.wait_seconds
        if wait < 0 or wait >= max_wait:
            return False

    if call.hangup is not None:
        if call.answered is not None:
            return call.hangup >= call.answered
        return call.hangup >= call.received

    return True


def select_top_services(
    calls: Iterable[CallRecord],
    limit: int = config.TOP_SERVICES,
    min_volume: int = config.MIN_SERVICE_VOLUME,
) -> List[str]:
    """Busiest services with at least ``min_volume`` calls.

    Ordered by descending volume, then by name.
    """
    volumes = Counter(call.service for call in calls if call.service)
    ranked = sorted(
        (item for item in volumes.items() if item[1] >= min_volume),
        key=lambda item: (-item[1], item[0]),
    )
    return [service for service, _ in ranked[:limit]]


def prepare_calls(
    calls: Iterable[CallRecord],
    services: Sequence[str],
    max_wait: float = config.MAX_WAIT_TIME,
) -> List[CallRecord]:
    """Keep valid in-scope calls, sorted by arrival and renumbered.

    Args:
        calls: Parsed call records
        services: In-scope services
        max_wait: Upper bound on plausible waits

    Returns:
        Records ready for the replay, ``call_id`` matching their position
    """
    in_scope = set(services)
    kept = [c for c in calls if c.service in in_scope and is_valid_call(c, max_wait)]
    kept.sort(key=lambda c: c.received)
    return [replace(call, call_id=index) for index, call in enumerate(kept)]
