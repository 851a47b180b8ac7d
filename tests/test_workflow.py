from __future__ import annotations

import asyncio

import pytest

from promptsmith.configuration import EnhancementSettings
from promptsmith.enhancement.service import EnhancementService
from promptsmith.enhancement.workflow import EnhancementProgress, EnhancementWorkflow
from promptsmith.exceptions import EnhancementJobError, MissingRequiredVariable


class FailingService(EnhancementService):
    def enhance(self, record, request=None):
        raise RuntimeError("model unavailable")


def _progress(received):
    return [
        (event.status, event.progress)
        for event in received
        if isinstance(event, EnhancementProgress)
    ]


def test_job_reports_progress_until_completed(
    make_record, channel, received, clock
) -> None:
    workflow = EnhancementWorkflow(EnhancementService(), channel=channel, clock=clock)

    async def scenario():
        job_id = await workflow.start(make_record(), user_id="u1")
        return await workflow.wait(job_id)

    job = asyncio.run(scenario())

    assert job.job_id == "enhancement_1000000_1"
    assert job.status == "completed"
    assert job.result is not None
    assert _progress(received) == [
        ("pending", 0),
        ("in-progress", 10),
        ("in-progress", 30),
        ("in-progress", 60),
        ("in-progress", 90),
        ("completed", 100),
    ]
    final = received[-1].to_dict()
    assert final["event"] == "enhancement:completed"
    assert final["jobId"] == job.job_id
    assert final["result"]["task_type"] == job.result.task_type
    assert received[1].to_dict()["event"] == "enhancement:progress"
    assert workflow.user_jobs("u1") == [job]
    assert workflow.user_jobs("someone-else") == []


def test_cancel_before_first_step(make_record, channel, received) -> None:
    workflow = EnhancementWorkflow(EnhancementService(), channel=channel)

    async def scenario():
        job_id = await workflow.start(make_record())
        workflow.cancel(job_id)
        return await workflow.wait(job_id)

    job = asyncio.run(scenario())

    assert job.status == "cancelled"
    assert job.result is None
    assert _progress(received) == [("pending", 0), ("cancelled", 0)]
    assert received[-1].to_dict()["event"] == "enhancement:cancelled"
    with pytest.raises(EnhancementJobError):
        workflow.cancel(job.job_id)


def test_cancel_between_steps_stops_the_job(make_record, channel, received) -> None:
    workflow = EnhancementWorkflow(
        EnhancementService(),
        channel=channel,
        settings=EnhancementSettings(step_delay_seconds=0.01),
    )

    def cancel_at_30(event) -> None:
        if isinstance(event, EnhancementProgress) and event.progress == 30:
            workflow.cancel(event.job_id)

    channel.subscribe(cancel_at_30)

    async def scenario():
        job_id = await workflow.start(make_record())
        return await workflow.wait(job_id)

    job = asyncio.run(scenario())

    assert job.status == "cancelled"
    assert job.result is None
    assert _progress(received) == [
        ("pending", 0),
        ("in-progress", 10),
        ("in-progress", 30),
        ("cancelled", 30),
    ]


def test_failed_enhancement_marks_job_failed(
    make_record, channel, received
) -> None:
    workflow = EnhancementWorkflow(FailingService(), channel=channel)

    async def scenario():
        job_id = await workflow.start(make_record())
        return await workflow.wait(job_id)

    job = asyncio.run(scenario())

    assert job.status == "failed"
    assert job.error == "model unavailable"
    assert _progress(received)[-2:] == [("in-progress", 60), ("failed", 0)]
    assert received[-1].to_dict()["error"] == "model unavailable"


def test_unknown_job_raises() -> None:
    workflow = EnhancementWorkflow(EnhancementService())
    with pytest.raises(EnhancementJobError):
        workflow.status("enhancement_0_0")


def test_submit_answers_updates_record(make_record, channel, received) -> None:
    workflow = EnhancementWorkflow(EnhancementService(), channel=channel)
    record = make_record("Implement a sorting algorithm for integers")

    async def scenario():
        job_id = await workflow.start(record)
        return await workflow.wait(job_id)

    job = asyncio.run(scenario())
    keys = [q.variable_key for q in job.result.questions]
    assert keys == ["programming_language", "code_requirements"]

    with pytest.raises(MissingRequiredVariable) as excinfo:
        workflow.submit_answers(job.job_id, {"code_requirements": "stable"})
    assert excinfo.value.missing == ["programming_language"]

    updated = workflow.submit_answers(
        job.job_id, {"programming_language": "Python"}
    )
    language = {v.key: v for v in updated.variables}["programming_language"]
    assert language.default_value == "Python"
    assert language.type == "select"
    assert language.required
    assert "programming_language" in updated.structured.variables
    assert [q.variable_key for q in job.result.questions] == [
        "code_requirements"
    ]
    assert job.result.confidence == 0.75
    assert _progress(received)[-2:] == [("in-progress", 50), ("completed", 100)]

    workflow.submit_answers(job.job_id, {"code_requirements": "stable sort"})
    assert job.result.questions == ()
    assert job.result.confidence == 0.95


def test_submit_answers_requires_completed_job(make_record) -> None:
    workflow = EnhancementWorkflow(FailingService())

    async def scenario():
        job_id = await workflow.start(make_record())
        return await workflow.wait(job_id)

    job = asyncio.run(scenario())
    with pytest.raises(EnhancementJobError):
        workflow.submit_answers(job.job_id, {})


def test_cleanup_drops_only_stale_terminal_jobs(make_record, clock) -> None:
    workflow = EnhancementWorkflow(EnhancementService(), clock=clock)

    async def scenario():
        job_id = await workflow.start(make_record())
        await workflow.wait(job_id)
        return job_id

    job_id = asyncio.run(scenario())

    clock.advance(23 * 3600)
    assert workflow.cleanup_old_jobs() == 0
    clock.advance(2 * 3600)
    assert workflow.cleanup_old_jobs() == 1
    with pytest.raises(EnhancementJobError):
        workflow.status(job_id)
