"""Error taxonomy for the interview command center."""
from __future__ import annotations


class InterviewHubError(Exception):
    """Base class for command center failures."""


class ViewerNotFoundError(InterviewHubError):
    """Raised when no usable viewer identity was supplied.

    An empty task list would read as "nothing needs attention", so the
    aggregator refuses to answer instead.
    """


class InterviewDataUnavailableError(InterviewHubError):
    """Raised when interview records could not be read."""


class UnmappableRecordError(InterviewHubError):
    """Raised by a translator when a record's status fields cannot be interpreted."""

    def __init__(self, record_id: str, reason: str) -> None:
        super().__init__(f"{record_id}: {reason}")
        self.record_id = record_id
        self.reason = reason


__all__ = [
    "InterviewDataUnavailableError",
    "InterviewHubError",
    "UnmappableRecordError",
    "ViewerNotFoundError",
]
