"""Job registry primitives for background job supervision."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from foosrank.tasks.progress import JobProgress

JobRunner = Callable[[JobProgress, Any], Awaitable[None]]


@dataclass(frozen=True)
class JobDefinition:
    """Registered job kind and the coroutine function that runs it."""

    kind: str
    title: str
    runner: JobRunner
    description: str = ""


class JobRegistry:
    """In-memory registry of job kinds."""

    def __init__(self) -> None:
        self._jobs: dict[str, JobDefinition] = {}

    def register(self, job: JobDefinition) -> None:
        if job.kind in self._jobs:
            raise ValueError(f"Job kind already registered: {job.kind}")
        self._jobs[job.kind] = job

    def get(self, kind: str) -> JobDefinition:
        try:
            return self._jobs[kind]
        except KeyError as exc:
            raise KeyError(f"Unknown job kind: {kind}") from exc

    def kinds(self) -> list[str]:
        return list(self._jobs)

    def __contains__(self, kind: str) -> bool:
        return kind in self._jobs
