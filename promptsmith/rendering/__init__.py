"""Render orchestration, mock payloads, job tracking, and history sinks."""

from promptsmith.rendering.history import (
    HistoryEvent,
    HistoryRecorder,
    InMemoryHistoryRecorder,
)
from promptsmith.rendering.jobs import RenderJobTracker
from promptsmith.rendering.mock import (
    MOCK_USAGE,
    build_mock_payload,
    is_mock_payload,
)
from promptsmith.rendering.orchestrator import RenderOrchestrator

__all__ = [
    "HistoryEvent",
    "HistoryRecorder",
    "InMemoryHistoryRecorder",
    "MOCK_USAGE",
    "RenderJobTracker",
    "RenderOrchestrator",
    "build_mock_payload",
    "is_mock_payload",
]
