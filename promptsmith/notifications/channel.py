"""Per-key ordered notification channel with superseding buffer semantics."""

from __future__ import annotations

import logging
import threading
import time

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Hashable, List, Optional, Protocol, Tuple

from promptsmith.constants import (
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_STARTED,
    TERMINAL_STATUSES,
)
from promptsmith.exceptions import NotificationDeliveryFailure

_LOGGER = logging.getLogger(__name__)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class Notification(Protocol):
    """Anything the channel can buffer and fan out."""

    @property
    def key(self) -> Hashable: ...

    @property
    def is_terminal(self) -> bool: ...

    def to_dict(self) -> Dict[str, Any]: ...


Listener = Callable[[Notification], None]


@dataclass(frozen=True)
class RenderNotification:
    """Lifecycle event for one render, keyed by (prompt_id, connection_id)."""

    prompt_id: str
    provider: str
    user_id: Optional[str]
    connection_id: str
    status: str
    message: str
    timestamp: str = field(default_factory=utc_timestamp)
    result: Optional[Dict[str, Any]] = None
    render_time_ms: Optional[float] = None
    error: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str]:
        return (self.prompt_id, self.connection_id)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def event(self) -> str:
        if self.status in (STATUS_STARTED, STATUS_COMPLETED, STATUS_FAILED):
            return f"render:{self.status}"
        return "render:progress"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "event": self.event,
            "promptId": self.prompt_id,
            "provider": self.provider,
            "userId": self.user_id,
            "connectionId": self.connection_id,
            "status": self.status,
            "message": self.message,
            "timestamp": self.timestamp,
        }
        if self.result is not None:
            data["result"] = self.result
        if self.render_time_ms is not None:
            data["renderTime"] = self.render_time_ms
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class _BufferEntry:
    notification: Notification
    terminal_at: Optional[float] = None


class NotificationChannel:
    """Fans notifications out to listeners and keeps the latest one per key.

    Delivery is best effort: a failing listener is logged and skipped, and the
    publisher never sees the error. Terminal entries are dropped from the
    buffer ``retention_seconds`` after they were published.
    """

    def __init__(
        self,
        *,
        retention_seconds: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._retention = retention_seconds
        self._clock = clock
        self._buffer: Dict[Hashable, _BufferEntry] = {}
        self._listeners: List[Tuple[Optional[Hashable], Listener]] = []
        self._lock = threading.Lock()

    def publish(self, notification: Notification) -> None:
        now = self._clock()
        with self._lock:
            self._purge_locked(now)
            self._buffer[notification.key] = _BufferEntry(
                notification,
                terminal_at=now if notification.is_terminal else None,
            )
            listeners = list(self._listeners)
        for key, listener in listeners:
            if key is not None and key != notification.key:
                continue
            try:
                listener(notification)
            except Exception as exc:
                failure = NotificationDeliveryFailure(
                    f"Listener {listener!r} failed for {notification.key}: {exc}"
                )
                _LOGGER.warning("%s", failure)

    def subscribe(
        self, listener: Listener, *, key: Optional[Hashable] = None
    ) -> Callable[[], None]:
        """Register ``listener`` (optionally for one key); returns unsubscribe."""

        entry = (key, listener)
        with self._lock:
            self._listeners.append(entry)

        def _unsubscribe() -> None:
            with self._lock:
                if entry in self._listeners:
                    self._listeners.remove(entry)

        return _unsubscribe

    def latest(self, key: Hashable) -> Optional[Notification]:
        with self._lock:
            self._purge_locked(self._clock())
            entry = self._buffer.get(key)
        return entry.notification if entry else None

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_locked(self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)

    def _purge_locked(self, now: float) -> int:
        expired = [
            key
            for key, entry in self._buffer.items()
            if entry.terminal_at is not None
            and now - entry.terminal_at >= self._retention
        ]
        for key in expired:
            del self._buffer[key]
        return len(expired)
