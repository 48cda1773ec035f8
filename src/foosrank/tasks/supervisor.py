"""
Single-flight supervision of background jobs.

The supervisor keeps one slot per job kind. ``start_job`` claims the slot
under a lock and schedules the job on the running event loop without
waiting for it. The job wrapper releases the slot in a ``finally`` block,
so the slot is freed on every exit path (success, error, cancellation)
and a crashed job can never leave its kind blocked.

There is no cancellation API: a started job always runs to its own end.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import uuid
from datetime import datetime
from typing import Any

from foosrank.tasks.progress import JobProgress
from foosrank.tasks.registry import JobDefinition, JobRegistry
from foosrank.tasks.runtime import AlreadyRunningError, JobHandle, JobStatus

logger = logging.getLogger(__name__)


class JobSupervisor:
    """
    Start-if-idle gate in front of the job registry.

    Usage:
        supervisor = JobSupervisor(registry)
        handle = supervisor.start_job("itsf_rankings", params)  # inside a running loop
        supervisor.status("itsf_rankings").running
    """

    def __init__(self, registry: JobRegistry):
        self.registry = registry
        self._lock = threading.Lock()
        self._active: dict[str, JobHandle] = {}

    def start_job(self, kind: str, params: Any = None) -> JobHandle:
        """
        Start a job of ``kind`` unless one is already active.

        Must be called from a coroutine or callback on the event loop that
        should run the job.

        Raises:
            AlreadyRunningError: a job of this kind is active
            KeyError: unknown job kind
        """
        definition = self.registry.get(kind)
        loop = asyncio.get_running_loop()

        with self._lock:
            if kind in self._active:
                raise AlreadyRunningError(kind)

            handle = JobHandle(
                job_id=uuid.uuid4().hex,
                kind=kind,
                progress=JobProgress(definition.title, 1),
                started_at=datetime.utcnow(),
            )
            self._active[kind] = handle
            try:
                handle.task = loop.create_task(
                    self._run(definition, handle, params),
                    name=f"job-{kind}-{handle.job_id[:8]}",
                )
            except BaseException:
                del self._active[kind]
                raise

        logger.info("Started job %s (%s)", kind, handle.job_id)
        return handle

    async def _run(self, definition: JobDefinition, handle: JobHandle, params: Any) -> None:
        try:
            await definition.runner(handle.progress, params)
        except Exception as exc:
            logger.exception("Job %s (%s) failed", handle.kind, handle.job_id)
            handle.progress.log(f"Job failed: {exc}")
        finally:
            handle.progress.finish()
            with self._lock:
                if self._active.get(handle.kind) is handle:
                    del self._active[handle.kind]
            logger.info("Finished job %s (%s)", handle.kind, handle.job_id)

    def is_running(self, kind: str) -> bool:
        with self._lock:
            return kind in self._active

    def active_job(self, kind: str) -> JobHandle | None:
        with self._lock:
            return self._active.get(kind)

    def status(self, kind: str) -> JobStatus:
        """Running flag and log of the active job; idle status with empty log otherwise."""
        self.registry.get(kind)
        handle = self.active_job(kind)
        if handle is None:
            return JobStatus.idle(kind)
        return JobStatus.from_progress(kind, handle.progress)
