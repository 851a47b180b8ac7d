"""Render orchestrator: adaptation, execution, notifications, and fallback.

A render walks ``started -> preparing -> executing -> processing`` and ends in
``completed``. When the executor fails, ``failed`` is published, the payload
falls back to a mock response, and ``completed`` follows, so callers always
get a payload once adaptation succeeded.
"""

from __future__ import annotations

import asyncio
import logging
import time

from typing import Any, Callable, Dict, Optional, Tuple

from promptsmith.configuration import RenderSettings
from promptsmith.constants import (
    DEFAULT_CONNECTION_KEY,
    STATUS_COMPLETED,
    STATUS_EXECUTING,
    STATUS_FAILED,
    STATUS_PREPARING,
    STATUS_PROCESSING,
    STATUS_STARTED,
)
from promptsmith.exceptions import ExecutorFailure
from promptsmith.execution.executor import (
    ExecutionOptions,
    ExecutionRequest,
    Executor,
)
from promptsmith.notifications.channel import (
    NotificationChannel,
    RenderNotification,
)
from promptsmith.prompting.adapter import FormatAdapter
from promptsmith.prompting.types import (
    AdaptedPrompt,
    PromptRecord,
    RenderContext,
)
from promptsmith.rendering.history import HistoryEvent, HistoryRecorder
from promptsmith.rendering.jobs import RenderJobTracker
from promptsmith.rendering.mock import build_mock_payload
from promptsmith.types import PayloadSource, RenderedPayload, RenderRequest
from promptsmith.validation import validate_variable_values

_LOGGER = logging.getLogger(__name__)

InFlightKey = Tuple[str, str, Optional[str], str]


class RenderOrchestrator:
    """Drives one render through its state machine.

    Telemetry (notifications, history) is best effort and never changes the
    returned payload.
    """

    def __init__(
        self,
        adapter: Optional[FormatAdapter] = None,
        *,
        executor: Optional[Executor] = None,
        channel: Optional[NotificationChannel] = None,
        history: Optional[HistoryRecorder] = None,
        jobs: Optional[RenderJobTracker] = None,
        settings: Optional[RenderSettings] = None,
        timer: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.settings = settings or RenderSettings()
        self._adapter = adapter or FormatAdapter()
        self._executor = executor
        self._channel = channel
        self._history = history
        self._jobs = jobs or RenderJobTracker(
            retention_seconds=self.settings.retention_seconds
        )
        self._timer = timer
        self._in_flight: Dict[InFlightKey, asyncio.Future[RenderedPayload]] = {}

    @property
    def jobs(self) -> RenderJobTracker:
        return self._jobs

    async def render(
        self,
        record: PromptRecord,
        request: RenderRequest,
        *,
        user_id: Optional[str] = None,
    ) -> RenderedPayload:
        key: InFlightKey = (
            record.prompt_id,
            request.provider,
            user_id,
            request.connection_id or DEFAULT_CONNECTION_KEY,
        )
        existing = self._in_flight.get(key)
        if existing is not None:
            _LOGGER.info(
                "Duplicate render for %s on %s; waiting for the in-flight one",
                record.prompt_id,
                request.provider,
            )
            return await asyncio.shield(existing)

        task = asyncio.ensure_future(self._render(record, request, user_id))
        self._in_flight[key] = task
        task.add_done_callback(lambda done: self._forget(key, done))
        return await asyncio.shield(task)

    def _forget(self, key: InFlightKey, task: "asyncio.Future[Any]") -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    async def _render(
        self,
        record: PromptRecord,
        request: RenderRequest,
        user_id: Optional[str],
    ) -> RenderedPayload:
        started = self._timer()
        connection_key = request.connection_id or DEFAULT_CONNECTION_KEY
        job = self._jobs.start(record.prompt_id, connection_key)

        def notify(status: str, message: str, **extra: Any) -> None:
            self._notify(
                RenderNotification(
                    prompt_id=record.prompt_id,
                    provider=request.provider,
                    user_id=user_id,
                    connection_id=connection_key,
                    status=status,
                    message=message,
                    **extra,
                )
            )

        notify(STATUS_STARTED, "Render started")
        notify(STATUS_PREPARING, f"Preparing prompt for {request.provider}")
        try:
            validate_variable_values(
                record.declared_variables(), request.variables
            )
            adapted = self._adapter.adapt(
                record,
                request.mode,
                request.provider,
                RenderContext(
                    variables=dict(request.variables),
                    provider=request.provider,
                    task_type=request.task_type,
                    domain_knowledge=request.domain_knowledge,
                ),
            )
        except Exception as exc:
            self._jobs.update(job.key, "failed")
            notify(STATUS_FAILED, "Render failed", error=str(exc))
            raise

        temperature = (
            request.temperature
            if request.temperature is not None
            else self.settings.default_temperature
        )
        parameters: Dict[str, Any] = {
            "temperature": temperature,
            "max_tokens": self.settings.max_tokens,
        }
        model = request.model or self.settings.default_model

        if request.connection_id and user_id and self._executor is not None:
            self._jobs.update(job.key, "progressing")
            notify(STATUS_EXECUTING, f"Executing prompt on {request.provider}")
            notify(STATUS_PROCESSING, "Waiting for model response")
            try:
                payload = await self._execute(
                    request, adapted, user_id, parameters
                )
            except ExecutorFailure as exc:
                _LOGGER.error(
                    "Live execution failed for %s, falling back to mock: %s",
                    record.prompt_id,
                    exc,
                )
                notify(
                    STATUS_FAILED,
                    "Execution failed; using mock response",
                    error=str(exc),
                )
                payload = self._mock(
                    request, adapted, model, parameters, "fallback"
                )
        else:
            if request.connection_id and user_id:
                _LOGGER.warning(
                    "No executor configured; using mock response for %s",
                    record.prompt_id,
                )
            else:
                _LOGGER.info(
                    "Using mock response for %s (no %s)",
                    record.prompt_id,
                    "connection" if not request.connection_id else "user",
                )
            payload = self._mock(request, adapted, model, parameters, "mock")

        render_time_ms = (self._timer() - started) * 1000
        self._record_history(record, request, user_id, payload, render_time_ms)
        self._jobs.update(job.key, "completed")
        notify(
            STATUS_COMPLETED,
            "Render completed",
            result=payload.to_dict(),
            render_time_ms=render_time_ms,
        )
        _LOGGER.info(
            "Rendered %s for %s (%s) in %.1f ms",
            record.prompt_id,
            request.provider,
            payload.source,
            render_time_ms,
        )
        return payload

    async def _execute(
        self,
        request: RenderRequest,
        adapted: AdaptedPrompt,
        user_id: str,
        parameters: Dict[str, Any],
    ) -> RenderedPayload:
        assert self._executor is not None and request.connection_id
        try:
            result = await self._executor.execute(
                ExecutionRequest(
                    connection_id=request.connection_id,
                    user_id=user_id,
                    messages=adapted.messages,
                    options=ExecutionOptions(
                        temperature=parameters["temperature"],
                        max_tokens=parameters["max_tokens"],
                        model=request.model,
                    ),
                )
            )
        except ExecutorFailure:
            raise
        except Exception as exc:
            raise ExecutorFailure(str(exc)) from exc
        return RenderedPayload(
            provider=result.provider,
            model=result.model,
            messages=adapted.messages,
            formatted_prompt=adapted.formatted_prompt,
            parameters=parameters,
            target_model=request.target_model,
            response=result.response,
            usage=result.usage,
            source="live",
        )

    def _mock(
        self,
        request: RenderRequest,
        adapted: AdaptedPrompt,
        model: str,
        parameters: Dict[str, Any],
        source: PayloadSource,
    ) -> RenderedPayload:
        return build_mock_payload(
            request.provider,
            adapted,
            model=model,
            parameters=parameters,
            target_model=request.target_model,
            source=source,
        )

    def _notify(self, notification: RenderNotification) -> None:
        if self._channel is None:
            return
        try:
            self._channel.publish(notification)
        except Exception as exc:
            _LOGGER.warning(
                "Dropping %s notification for %s: %s",
                notification.status,
                notification.key,
                exc,
            )

    def _record_history(
        self,
        record: PromptRecord,
        request: RenderRequest,
        user_id: Optional[str],
        payload: RenderedPayload,
        render_time_ms: float,
    ) -> None:
        if self._history is None:
            return
        try:
            self._history.record(
                HistoryEvent(
                    prompt_id=record.prompt_id,
                    action="render",
                    provider=request.provider,
                    source=payload.source,
                    user_id=user_id,
                    connection_id=request.connection_id,
                    details={
                        "mode": request.mode,
                        "model": payload.model,
                        "render_time_ms": render_time_ms,
                    },
                )
            )
        except Exception as exc:
            _LOGGER.warning(
                "Failed to record render history for %s: %s",
                record.prompt_id,
                exc,
            )

