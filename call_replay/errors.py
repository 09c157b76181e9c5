"""Exceptions raised by the replay package."""


class ReplayError(Exception):
    """Base error for the replay engine."""


class EmptyReplayError(ReplayError):
    """No usable call records were available to replay."""


class IngestError(ReplayError):
    """An input file could not be turned into records."""
