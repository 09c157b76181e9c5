"""
Shared fixtures for the replay tests.
"""

from datetime import datetime, timedelta
from pathlib import Path
import sys

# Ensure root directory is in path for config import
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from call_replay.records import CallRecord

# A Monday
BASE_TIME = datetime(2014, 1, 6, 8, 0, 0)


def at(seconds):
    """Datetime ``seconds`` after BASE_TIME, None passes through."""
    if seconds is None:
        return None
    return BASE_TIME + timedelta(seconds=seconds)


@pytest.fixture
def make_call():
    """Factory for call records with times given as second offsets."""
    def _make(call_id, received, service="A", worker=None, answered=None, hangup=None):
        return CallRecord(
            call_id=call_id,
            received=at(received),
            service=service,
            worker_id=worker,
            answered=at(answered),
            hangup=at(hangup),
        )
    return _make
