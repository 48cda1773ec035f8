"""
Progress tracking for background jobs.

A JobProgress is written by the job's task and read concurrently by status
requests. ``max`` is not known up front: jobs start with an estimate and
raise it once they discover how much work there actually is, so
``set_progress`` always takes a full (current, max) snapshot.
"""

from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)


class JobProgress:
    """Thread-safe {current, max, log} triple for one job."""

    def __init__(self, title: str, max_value: int):
        self.title = title
        self._lock = threading.Lock()
        self._current = 0
        self._max = max_value
        self._log: list[str] = []

    def get_progress(self) -> tuple[int, int]:
        with self._lock:
            return self._current, self._max

    def set_progress(self, current: int, max_value: int) -> None:
        with self._lock:
            self._current = current
            self._max = max_value

    def advance(self, step: int = 1) -> None:
        with self._lock:
            self._current += step

    def extend(self, extra: int) -> None:
        """Raise max by ``extra`` newly discovered work items."""
        with self._lock:
            self._max += extra

    def finish(self) -> None:
        """Force the terminal state (max, max)."""
        with self._lock:
            self._current = self._max

    def has_finished(self) -> bool:
        current, max_value = self.get_progress()
        return current >= max_value

    def log(self, message: str) -> None:
        """Append to the job log (unbounded) and emit through logging."""
        logger.info("%s: %s", self.title, message)
        with self._lock:
            self._log.append(message)

    def get_log(self) -> list[str]:
        with self._lock:
            return list(self._log)

    def __repr__(self) -> str:
        current, max_value = self.get_progress()
        return f"<JobProgress('{self.title}', {current}/{max_value})>"
