"""Job domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from goplaces.models.api import JobPhase


class JobState(str, Enum):
    """Client-side state of a job's orchestration."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    POLLING = "polling"
    FETCHING = "fetching"
    COMPLETE = "complete"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETE, JobState.FAILED, JobState.TIMED_OUT)


@dataclass
class Job:
    """One remote unit of work tracked by the task registry.

    ``submitted_at`` is a monotonic clock reading used for expiry;
    ``created_at`` is the wall-clock submission time for display.
    """

    job_id: str
    source_url: str
    submitted_at: float
    estimated_completion_seconds: int = 0
    phase: JobPhase = JobPhase.QUEUED
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if not self.job_id:
            raise ValueError("job_id must not be empty")

    def __setattr__(self, name: str, value: object) -> None:
        # The identifier is fixed once assigned
        if name == "job_id" and "job_id" in self.__dict__:
            raise AttributeError("job_id cannot be changed")
        super().__setattr__(name, value)

    def elapsed(self, now: float) -> float:
        return now - self.submitted_at
