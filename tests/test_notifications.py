from __future__ import annotations

import logging

from promptsmith.notifications.channel import NotificationChannel, RenderNotification


def _note(status: str, prompt_id: str = "p1", connection_id: str = "default", **kw):
    return RenderNotification(
        prompt_id=prompt_id,
        provider="openai",
        user_id="u1",
        connection_id=connection_id,
        status=status,
        message=f"Render {status}",
        **kw,
    )


def test_listeners_see_events_in_publish_order(channel, received) -> None:
    for status in ("started", "preparing", "completed"):
        channel.publish(_note(status))
    assert [event.status for event in received] == [
        "started",
        "preparing",
        "completed",
    ]


def test_buffer_keeps_latest_per_key(channel) -> None:
    channel.publish(_note("started"))
    channel.publish(_note("preparing"))
    channel.publish(_note("started", connection_id="conn-2"))

    assert channel.latest(("p1", "default")).status == "preparing"
    assert channel.latest(("p1", "conn-2")).status == "started"
    assert channel.latest(("p2", "default")) is None
    assert len(channel) == 2


def test_keyed_subscription_and_unsubscribe(channel) -> None:
    seen = []
    unsubscribe = channel.subscribe(seen.append, key=("p1", "default"))

    channel.publish(_note("started"))
    channel.publish(_note("started", prompt_id="p2"))
    assert [event.prompt_id for event in seen] == ["p1"]

    unsubscribe()
    unsubscribe()
    channel.publish(_note("completed"))
    assert len(seen) == 1


def test_failing_listener_does_not_block_others(channel, received, caplog) -> None:
    def broken(_event):
        raise RuntimeError("socket closed")

    channel.subscribe(broken)
    with caplog.at_level(logging.WARNING):
        channel.publish(_note("started"))

    assert len(received) == 1
    assert "socket closed" in caplog.text


def test_terminal_entries_expire_after_retention(channel, clock) -> None:
    channel.publish(_note("completed"))
    channel.publish(_note("preparing", prompt_id="p2"))

    clock.advance(9.9)
    assert channel.latest(("p1", "default")) is not None
    clock.now = 1_010.0
    assert channel.latest(("p1", "default")) is None
    assert channel.latest(("p2", "default")) is not None
    assert channel.purge_expired() == 0


def test_non_terminal_update_resets_expiry(clock) -> None:
    channel = NotificationChannel(retention_seconds=5.0, clock=clock)
    channel.publish(_note("failed"))
    clock.advance(4)
    channel.publish(_note("started"))
    clock.advance(10)
    assert channel.latest(("p1", "default")).status == "started"


def test_render_notification_to_dict() -> None:
    data = _note("processing").to_dict()
    assert data["event"] == "render:progress"
    assert data["promptId"] == "p1"
    assert data["connectionId"] == "default"
    assert "result" not in data

    done = _note("completed", result={"source": "mock"}, render_time_ms=12.5)
    data = done.to_dict()
    assert data["event"] == "render:completed"
    assert data["result"] == {"source": "mock"}
    assert data["renderTime"] == 12.5

    failed = _note("failed", error="boom").to_dict()
    assert failed["event"] == "render:failed"
    assert failed["error"] == "boom"
