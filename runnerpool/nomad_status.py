"""Status of a scheduler job."""

from __future__ import annotations

from enum import IntEnum


class JobStatus(IntEnum):
    """Lifecycle state of a scheduler job."""

    UNKNOWN = 0
    PENDING = 1
    RUNNING = 2
    DEAD = 3

    def __str__(self) -> str:
        return self.name.lower()


_BY_NAME = {str(status): status for status in JobStatus}


def parse_status(value: str) -> JobStatus:
    """Map a status string to a JobStatus; unrecognised values are UNKNOWN."""
    return _BY_NAME.get(value, JobStatus.UNKNOWN)