from __future__ import annotations

import asyncio

import pytest

from promptsmith.exceptions import (
    ExecutorFailure,
    MissingRequiredVariable,
    ValidationError,
)
from promptsmith.execution.executor import ExecutionResult
from promptsmith.prompting.types import Variable
from promptsmith.rendering.history import InMemoryHistoryRecorder
from promptsmith.rendering.jobs import RenderJobTracker
from promptsmith.rendering.mock import MOCK_USAGE, is_mock_payload
from promptsmith.rendering.orchestrator import RenderOrchestrator
from promptsmith.types import RenderRequest, TokenUsage


class StubExecutor:
    def __init__(self, response: str = "live answer") -> None:
        self.response = response
        self.requests = []

    async def execute(self, request):
        self.requests.append(request)
        return ExecutionResult(
            provider="openai",
            model=request.options.model or "gpt-4o-mini",
            response=self.response,
            usage=TokenUsage(12, 3, 15),
        )


class RaisingExecutor:
    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    async def execute(self, request):
        raise self.exc


class GatedExecutor(StubExecutor):
    def __init__(self) -> None:
        super().__init__()
        self.gate = asyncio.Event()

    async def execute(self, request):
        self.requests.append(request)
        await self.gate.wait()
        return ExecutionResult(provider="openai", model="gpt-4o", response="once")


class BrokenHistory:
    def record(self, event):
        raise OSError("disk full")


class BrokenChannel:
    def publish(self, notification):
        raise RuntimeError("socket gone")


def _request(**kwargs) -> RenderRequest:
    kwargs.setdefault("prompt_id", "prompt-1")
    kwargs.setdefault("provider", "openai")
    return RenderRequest(**kwargs)


def _statuses(received):
    return [event.status for event in received]


def test_mock_render_without_connection(make_record, channel, received) -> None:
    history = InMemoryHistoryRecorder()
    orchestrator = RenderOrchestrator(channel=channel, history=history)

    payload = asyncio.run(orchestrator.render(make_record(), _request()))

    assert payload.source == "mock"
    assert is_mock_payload(payload)
    assert payload.usage == MOCK_USAGE
    assert payload.model == "default"
    assert payload.parameters == {"temperature": 0.7, "max_tokens": 2000}
    assert _statuses(received) == ["started", "preparing", "completed"]
    completed = received[-1]
    assert completed.result == payload.to_dict()
    assert completed.render_time_ms is not None
    assert received[0].connection_id == "default"

    events = history.events("prompt-1")
    assert [event.source for event in events] == ["mock"]
    assert events[0].details["mode"] == "original"


def test_live_render(make_record, channel, received) -> None:
    executor = StubExecutor()
    orchestrator = RenderOrchestrator(executor=executor, channel=channel)
    request = _request(connection_id="c1", temperature=0.2, target_model="gpt-4o")

    payload = asyncio.run(
        orchestrator.render(make_record(), request, user_id="u1")
    )

    assert payload.source == "live"
    assert payload.response == "live answer"
    assert payload.usage == TokenUsage(12, 3, 15)
    assert payload.target_model == "gpt-4o"
    assert payload.parameters["temperature"] == 0.2
    assert _statuses(received) == [
        "started",
        "preparing",
        "executing",
        "processing",
        "completed",
    ]
    assert {event.key for event in received} == {("prompt-1", "c1")}
    sent = executor.requests[0]
    assert sent.connection_id == "c1"
    assert sent.user_id == "u1"
    assert sent.messages == payload.messages
    assert sent.options.temperature == 0.2


@pytest.mark.parametrize(
    "exc",
    [ExecutorFailure("quota exceeded"), RuntimeError("quota exceeded")],
)
def test_executor_failure_falls_back_to_mock(
    make_record, channel, received, exc
) -> None:
    orchestrator = RenderOrchestrator(
        executor=RaisingExecutor(exc), channel=channel
    )

    payload = asyncio.run(
        orchestrator.render(
            make_record(), _request(connection_id="c1"), user_id="u1"
        )
    )

    assert payload.source == "fallback"
    assert is_mock_payload(payload)
    assert _statuses(received) == [
        "started",
        "preparing",
        "executing",
        "processing",
        "failed",
        "completed",
    ]
    assert "quota exceeded" in received[4].error


def test_connection_without_user_uses_mock(make_record, received, channel) -> None:
    executor = StubExecutor()
    orchestrator = RenderOrchestrator(executor=executor, channel=channel)

    payload = asyncio.run(
        orchestrator.render(make_record(), _request(connection_id="c1"))
    )

    assert payload.source == "mock"
    assert executor.requests == []
    assert "executing" not in _statuses(received)


def test_connection_without_executor_uses_mock(make_record) -> None:
    payload = asyncio.run(
        RenderOrchestrator().render(
            make_record(), _request(connection_id="c1"), user_id="u1"
        )
    )
    assert payload.source == "mock"


def test_preparation_error_propagates(make_record, channel, received) -> None:
    orchestrator = RenderOrchestrator(channel=channel)
    record = make_record(
        "Create a report on {{topic}}",
        variables=(Variable("topic", required=True),),
    )

    with pytest.raises(MissingRequiredVariable):
        asyncio.run(orchestrator.render(record, _request()))

    assert _statuses(received) == ["started", "preparing", "failed"]
    assert "topic" in received[-1].error
    assert orchestrator.jobs.get(("prompt-1", "default")).status == "failed"


def test_invalid_select_value_is_rejected(make_record) -> None:
    record = make_record(
        "Create a {{tone}} report",
        variables=(
            Variable("tone", type="select", options=("formal", "casual")),
        ),
    )
    with pytest.raises(ValidationError):
        asyncio.run(
            RenderOrchestrator().render(
                record, _request(variables={"tone": "angry"})
            )
        )


def test_variables_reach_the_rendered_messages(make_record) -> None:
    record = make_record(
        "Create a {{tone}} report",
        variables=(
            Variable("tone", type="select", options=("formal", "casual")),
        ),
    )
    payload = asyncio.run(
        RenderOrchestrator().render(
            record, _request(variables={"tone": "casual"}, model="gpt-4o")
        )
    )
    assert "Create a casual report" in payload.messages[0].content
    assert payload.model == "gpt-4o"


def test_telemetry_failures_do_not_change_the_payload(make_record) -> None:
    orchestrator = RenderOrchestrator(
        channel=BrokenChannel(), history=BrokenHistory()
    )
    payload = asyncio.run(orchestrator.render(make_record(), _request()))
    assert payload.source == "mock"


def test_duplicate_renders_share_one_execution(make_record) -> None:
    executor = GatedExecutor()
    orchestrator = RenderOrchestrator(executor=executor)
    record = make_record()
    request = _request(connection_id="c1")

    async def scenario():
        first = asyncio.ensure_future(
            orchestrator.render(record, request, user_id="u1")
        )
        second = asyncio.ensure_future(
            orchestrator.render(record, request, user_id="u1")
        )
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        executor.gate.set()
        return await asyncio.gather(first, second)

    first, second = asyncio.run(scenario())

    assert first is second
    assert first.response == "once"
    assert len(executor.requests) == 1


def test_jobs_are_retained_then_evicted(make_record, clock) -> None:
    jobs = RenderJobTracker(retention_seconds=10.0, clock=clock)
    orchestrator = RenderOrchestrator(jobs=jobs)

    asyncio.run(orchestrator.render(make_record(), _request()))

    job = jobs.get(("prompt-1", "default"))
    assert job.status == "completed"
    assert job.finished_at == clock.now
    assert jobs.active() == []
    clock.advance(10)
    assert jobs.get(("prompt-1", "default")) is None
    assert len(jobs) == 0
