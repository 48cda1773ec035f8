"""Background job runtime: progress tracking, job registry and single-flight supervision."""

from foosrank.tasks.progress import JobProgress
from foosrank.tasks.registry import JobDefinition, JobRegistry
from foosrank.tasks.runtime import AlreadyRunningError, JobHandle, JobStatus
from foosrank.tasks.supervisor import JobSupervisor

__all__ = [
    "AlreadyRunningError",
    "JobDefinition",
    "JobHandle",
    "JobProgress",
    "JobRegistry",
    "JobStatus",
    "JobSupervisor",
]
