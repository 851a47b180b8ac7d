"""In-memory tracking of render jobs with post-completion retention."""

from __future__ import annotations

import logging
import threading
import time

from typing import Callable, Dict, List, Optional, Tuple

from promptsmith.types import RenderJob, RenderJobStatus

_LOGGER = logging.getLogger(__name__)

JobKey = Tuple[str, str]


class RenderJobTracker:
    """Tracks one job per ``(prompt_id, connection_id)``.

    Terminal jobs stay visible for ``retention_seconds`` so late pollers can
    read the outcome, then they are dropped on the next access.
    """

    def __init__(
        self,
        *,
        retention_seconds: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._retention = retention_seconds
        self._clock = clock
        self._jobs: Dict[JobKey, RenderJob] = {}
        self._lock = threading.Lock()

    def start(self, prompt_id: str, connection_id: str) -> RenderJob:
        job = RenderJob(
            prompt_id=prompt_id,
            connection_id=connection_id,
            status="started",
            started_at=self._clock(),
        )
        with self._lock:
            self._purge_locked()
            self._jobs[job.key] = job
        return job

    def update(self, key: JobKey, status: RenderJobStatus) -> Optional[RenderJob]:
        with self._lock:
            job = self._jobs.get(key)
            if job is None:
                return None
            job.status = status
            if job.is_terminal:
                job.finished_at = self._clock()
            return job

    def get(self, key: JobKey) -> Optional[RenderJob]:
        with self._lock:
            self._purge_locked()
            return self._jobs.get(key)

    def active(self) -> List[RenderJob]:
        with self._lock:
            self._purge_locked()
            return [job for job in self._jobs.values() if not job.is_terminal]

    def __len__(self) -> int:
        with self._lock:
            self._purge_locked()
            return len(self._jobs)

    def _purge_locked(self) -> None:
        now = self._clock()
        expired = [
            key
            for key, job in self._jobs.items()
            if job.finished_at is not None
            and now - job.finished_at >= self._retention
        ]
        for key in expired:
            _LOGGER.debug("Evicting render job %s", key)
            del self._jobs[key]
