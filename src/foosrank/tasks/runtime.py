"""Shared runtime dataclasses for supervised jobs."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from foosrank.tasks.progress import JobProgress


class AlreadyRunningError(RuntimeError):
    """A job of the requested kind is still active."""

    def __init__(self, kind: str):
        super().__init__(f"Job '{kind}' is already running")
        self.kind = kind


@dataclass
class JobHandle:
    """An active (or just finished) job as seen by its starter."""

    job_id: str
    kind: str
    progress: JobProgress
    started_at: datetime
    task: Optional[asyncio.Task] = None

    async def wait(self) -> None:
        """Wait until the job task has ended (the job never raises through here)."""
        if self.task is not None:
            await self.task


@dataclass
class JobStatus:
    """Snapshot returned to status pollers."""

    kind: str
    running: bool
    title: Optional[str] = None
    current: int = 0
    max: int = 0
    log: list[str] = field(default_factory=list)

    @classmethod
    def idle(cls, kind: str) -> "JobStatus":
        return cls(kind=kind, running=False)

    @classmethod
    def from_progress(cls, kind: str, progress: JobProgress) -> "JobStatus":
        current, max_value = progress.get_progress()
        return cls(
            kind=kind,
            running=True,
            title=progress.title,
            current=current,
            max=max_value,
            log=progress.get_log(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "running": self.running,
            "title": self.title,
            "progress": [self.current, self.max],
            "log": self.log,
        }
