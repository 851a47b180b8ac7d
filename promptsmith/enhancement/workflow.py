"""Asynchronous enhancement jobs with progress notifications."""

from __future__ import annotations

import asyncio
import itertools
import logging
import time

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Tuple

from promptsmith.configuration import EnhancementSettings
from promptsmith.enhancement.service import EnhancementService
from promptsmith.exceptions import EnhancementJobError, MissingRequiredVariable
from promptsmith.notifications.channel import NotificationChannel, utc_timestamp
from promptsmith.prompting.types import PromptRecord, Variable
from promptsmith.types import EnhancementRequest, EnhancementResult

JobStatus = Literal["pending", "in-progress", "completed", "failed", "cancelled"]
JOB_TERMINAL_STATUSES = frozenset({"completed", "failed", "cancelled"})

# (progress, message) pairs reported while a job runs.
ENHANCEMENT_STEPS: Tuple[Tuple[int, str], ...] = (
    (10, "Starting enhancement process"),
    (30, "Analyzing prompt structure"),
    (60, "Generating enhancements"),
    (90, "Finalizing results"),
)

_LOGGER = logging.getLogger(__name__)


@dataclass
class EnhancementJob:
    job_id: str
    prompt_id: str
    user_id: Optional[str]
    record: PromptRecord
    request: EnhancementRequest
    status: JobStatus = "pending"
    progress: int = 0
    message: str = "Enhancement job created"
    created_at: float = 0.0
    updated_at: float = 0.0
    result: Optional[EnhancementResult] = None
    error: Optional[str] = None
    cancel_requested: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.status in JOB_TERMINAL_STATUSES


@dataclass(frozen=True)
class EnhancementProgress:
    """Progress event for one enhancement job."""

    job_id: str
    prompt_id: str
    status: JobStatus
    progress: int
    message: str
    timestamp: str = field(default_factory=utc_timestamp)
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str]:
        return ("enhancement", self.job_id)

    @property
    def is_terminal(self) -> bool:
        return self.status in JOB_TERMINAL_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        event = (
            f"enhancement:{self.status}"
            if self.is_terminal
            else "enhancement:progress"
        )
        data: Dict[str, Any] = {
            "event": event,
            "jobId": self.job_id,
            "promptId": self.prompt_id,
            "status": self.status,
            "progress": self.progress,
            "message": self.message,
            "timestamp": self.timestamp,
        }
        if self.result is not None:
            data["result"] = self.result
        if self.error is not None:
            data["error"] = self.error
        return data


class EnhancementWorkflow:
    """Runs :class:`EnhancementService` calls as cancellable background jobs.

    Cancellation is cooperative: ``cancel`` only sets a flag, which the job
    checks between steps.
    """

    def __init__(
        self,
        service: EnhancementService,
        *,
        channel: Optional[NotificationChannel] = None,
        settings: Optional[EnhancementSettings] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._service = service
        self._channel = channel
        self._settings = settings or service.settings
        self._clock = clock
        self._jobs: Dict[str, EnhancementJob] = {}
        self._tasks: Dict[str, asyncio.Task[None]] = {}
        self._counter = itertools.count(1)

    async def start(
        self,
        record: PromptRecord,
        request: Optional[EnhancementRequest] = None,
        *,
        user_id: Optional[str] = None,
    ) -> str:
        """Create a job for ``record`` and schedule it; returns the job id."""

        now = self._clock()
        job_id = f"enhancement_{int(now * 1000)}_{next(self._counter)}"
        job = EnhancementJob(
            job_id=job_id,
            prompt_id=record.prompt_id,
            user_id=user_id,
            record=record,
            request=request or EnhancementRequest(prompt_id=record.prompt_id),
            created_at=now,
            updated_at=now,
        )
        self._jobs[job_id] = job
        self._publish(job)
        self._tasks[job_id] = asyncio.create_task(self._process(job))
        _LOGGER.info("Started enhancement job %s for %s", job_id, record.prompt_id)
        return job_id

    async def wait(self, job_id: str) -> EnhancementJob:
        job = self.status(job_id)
        task = self._tasks.get(job_id)
        if task is not None:
            await task
        return job

    def status(self, job_id: str) -> EnhancementJob:
        try:
            return self._jobs[job_id]
        except KeyError:
            raise EnhancementJobError(f"Job {job_id} not found") from None

    def user_jobs(self, user_id: str) -> List[EnhancementJob]:
        return [job for job in self._jobs.values() if job.user_id == user_id]

    def cancel(self, job_id: str) -> None:
        job = self.status(job_id)
        if job.is_terminal:
            raise EnhancementJobError(
                f"Job {job_id} is already {job.status}; cannot cancel"
            )
        job.cancel_requested = True
        _LOGGER.info("Cancellation requested for enhancement job %s", job_id)

    def submit_answers(
        self, job_id: str, answers: Mapping[str, Any]
    ) -> PromptRecord:
        """Fold questionnaire answers into the record as variable defaults.

        Returns the updated record; the job's result drops the answered
        questions.
        """

        job = self.status(job_id)
        if job.status != "completed" or job.result is None:
            raise EnhancementJobError(
                f"Job {job_id} is {job.status}; answers need a completed job"
            )
        result = job.result
        unanswered_required = [
            q.variable_key
            for q in result.questions
            if q.required and answers.get(q.variable_key) in (None, "")
        ]
        if unanswered_required:
            raise MissingRequiredVariable(unanswered_required)

        self._update(job, "in-progress", 50, "Processing questionnaire response")
        variables: Dict[str, Variable] = {
            variable.key: variable for variable in job.record.variables
        }
        for question in result.questions:
            if question.variable_key not in answers:
                continue
            existing = variables.get(question.variable_key)
            variables[question.variable_key] = Variable(
                key=question.variable_key,
                label=existing.label if existing else question.text,
                type=existing.type if existing else question.type,
                required=question.required,
                default_value=answers[question.variable_key],
                options=existing.options if existing else question.options,
            )
        names = list(result.structured_prompt.variables)
        names.extend(key for key in variables if key not in names)
        structured = replace(result.structured_prompt, variables=tuple(names))
        remaining = tuple(
            q for q in result.questions if q.variable_key not in answers
        )
        job.result = replace(
            result,
            structured_prompt=structured,
            questions=remaining,
            confidence=(
                self._settings.confidence_with_questions
                if remaining
                else self._settings.confidence_no_questions
            ),
        )
        job.record = replace(
            job.record,
            variables=tuple(variables.values()),
            structured=structured,
        )
        self._update(job, "completed", 100, "Enhancement completed")
        return job.record

    def cleanup_old_jobs(self) -> int:
        """Drop terminal jobs not updated within the retention period."""

        cutoff = self._clock() - self._settings.job_retention_hours * 3600
        stale = [
            job_id
            for job_id, job in self._jobs.items()
            if job.is_terminal and job.updated_at < cutoff
        ]
        for job_id in stale:
            del self._jobs[job_id]
            self._tasks.pop(job_id, None)
            _LOGGER.debug("Cleaned up old enhancement job %s", job_id)
        return len(stale)

    async def _process(self, job: EnhancementJob) -> None:
        try:
            for progress, message in ENHANCEMENT_STEPS:
                if await self._cancelled(job):
                    return
                self._update(job, "in-progress", progress, message)
                if progress == 60:
                    job.result = self._service.enhance(job.record, job.request)
            if await self._cancelled(job):
                return
            self._update(
                job, "completed", 100, "Enhancement completed successfully"
            )
        except Exception as exc:
            _LOGGER.error("Enhancement job %s failed: %s", job.job_id, exc)
            job.error = str(exc)
            self._update(job, "failed", 0, "Enhancement failed")

    async def _cancelled(self, job: EnhancementJob) -> bool:
        await asyncio.sleep(self._settings.step_delay_seconds)
        if not job.cancel_requested:
            return False
        job.result = None
        self._update(job, "cancelled", job.progress, "Enhancement cancelled")
        return True

    def _update(
        self, job: EnhancementJob, status: JobStatus, progress: int, message: str
    ) -> None:
        job.status = status
        job.progress = progress
        job.message = message
        job.updated_at = self._clock()
        _LOGGER.debug(
            "Enhancement job %s: %s %d%% %s",
            job.job_id,
            status,
            progress,
            message[:100],
        )
        self._publish(job)

    def _publish(self, job: EnhancementJob) -> None:
        if self._channel is None:
            return
        self._channel.publish(
            EnhancementProgress(
                job_id=job.job_id,
                prompt_id=job.prompt_id,
                status=job.status,
                progress=job.progress,
                message=job.message,
                result=(
                    job.result.to_dict()
                    if job.result is not None and job.status == "completed"
                    else None
                ),
                error=job.error,
            )
        )
