"""Job orchestration for the GoPlaces client."""

from goplaces.jobs.models import Job, JobState
from goplaces.jobs.orchestrator import JobHandle, JobOrchestrator, PollingPolicy, ProgressCallback
from goplaces.jobs.registry import TaskRegistry

__all__ = [
    "Job",
    "JobHandle",
    "JobOrchestrator",
    "JobState",
    "PollingPolicy",
    "ProgressCallback",
    "TaskRegistry",
]
