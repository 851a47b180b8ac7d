"""Explicit service wiring; build once and pass the registry by reference."""

from __future__ import annotations

import logging

from dataclasses import dataclass
from typing import Optional

from promptsmith.configuration import Settings
from promptsmith.enhancement.questions import QuestionGenerator
from promptsmith.enhancement.service import EnhancementService
from promptsmith.enhancement.workflow import EnhancementWorkflow
from promptsmith.execution import load_executor
from promptsmith.execution.executor import Executor
from promptsmith.notifications.channel import NotificationChannel
from promptsmith.prompting.adapter import FormatAdapter
from promptsmith.prompting.manager import PromptManager
from promptsmith.prompting.substitution import VariableSubstitutionEngine
from promptsmith.rendering.history import (
    HistoryRecorder,
    InMemoryHistoryRecorder,
)
from promptsmith.rendering.jobs import RenderJobTracker
from promptsmith.rendering.orchestrator import RenderOrchestrator

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceRegistry:
    settings: Settings
    prompt_manager: PromptManager
    adapter: FormatAdapter
    channel: NotificationChannel
    history: HistoryRecorder
    executor: Optional[Executor]
    orchestrator: RenderOrchestrator
    enhancement: EnhancementService
    workflow: EnhancementWorkflow


def build_registry(
    settings: Optional[Settings] = None,
    *,
    executor: Optional[Executor] = None,
    channel: Optional[NotificationChannel] = None,
    history: Optional[HistoryRecorder] = None,
) -> ServiceRegistry:
    """Wire every service from ``settings``; collaborators may be injected."""

    settings = settings or Settings()
    prompt_manager = PromptManager(extra_dirs=settings.templates.overrides)
    adapter = FormatAdapter(prompt_manager, VariableSubstitutionEngine())
    if channel is None:
        channel = NotificationChannel(
            retention_seconds=settings.rendering.retention_seconds
        )
    if history is None:
        history = InMemoryHistoryRecorder(settings.rendering.history_limit)
    if executor is None:
        executor = load_executor(settings.executor)
    orchestrator = RenderOrchestrator(
        adapter,
        executor=executor,
        channel=channel,
        history=history,
        jobs=RenderJobTracker(
            retention_seconds=settings.rendering.retention_seconds
        ),
        settings=settings.rendering,
    )
    enhancement = EnhancementService(
        settings.enhancement,
        prompt_manager=prompt_manager,
        question_generator=QuestionGenerator(settings.enhancement),
    )
    workflow = EnhancementWorkflow(
        enhancement, channel=channel, settings=settings.enhancement
    )
    _LOGGER.debug(
        "Built service registry (executor=%s)", type(executor).__name__
    )
    return ServiceRegistry(
        settings=settings,
        prompt_manager=prompt_manager,
        adapter=adapter,
        channel=channel,
        history=history,
        executor=executor,
        orchestrator=orchestrator,
        enhancement=enhancement,
        workflow=workflow,
    )
