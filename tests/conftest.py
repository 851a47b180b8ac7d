"""Shared fixtures for promptsmith tests."""

from __future__ import annotations

import sys

from pathlib import Path
from typing import Any, Callable, List

import pytest

from promptsmith.notifications.channel import Notification, NotificationChannel
from promptsmith.prompting.types import PromptDefinition, PromptRecord

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


class FakeClock:
    """Manually advanced clock for retention tests."""

    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def make_record() -> Callable[..., PromptRecord]:
    """Factory for prompt records with sensible defaults."""

    def _make(
        goal: str = "Create a weekly status report",
        *,
        prompt_id: str = "prompt-1",
        **kwargs: Any,
    ) -> PromptRecord:
        record_fields = {
            key: kwargs.pop(key)
            for key in ("variables", "structured", "tuned_for_provider")
            if key in kwargs
        }
        if "steps" in kwargs:
            kwargs["steps"] = tuple(kwargs["steps"])
        for key in ("tags", "output_fields"):
            if key in kwargs:
                kwargs[key] = frozenset(kwargs[key])
        return PromptRecord(
            prompt_id=prompt_id,
            definition=PromptDefinition(goal=goal, **kwargs),
            **record_fields,
        )

    return _make


@pytest.fixture()
def channel(clock: FakeClock) -> NotificationChannel:
    return NotificationChannel(retention_seconds=10.0, clock=clock)


@pytest.fixture()
def received(channel: NotificationChannel) -> List[Notification]:
    """Every notification published on ``channel``, in order."""

    events: List[Notification] = []
    channel.subscribe(events.append)
    return events
