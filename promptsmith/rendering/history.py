"""History sinks for render events."""

from __future__ import annotations

import threading

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional, Protocol

from promptsmith.notifications.channel import utc_timestamp


@dataclass(frozen=True)
class HistoryEvent:
    prompt_id: str
    action: str
    provider: str
    source: str
    user_id: Optional[str] = None
    connection_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=utc_timestamp)


class HistoryRecorder(Protocol):
    def record(self, event: HistoryEvent) -> None: ...


class InMemoryHistoryRecorder:
    """Keeps the most recent ``max_events`` events; older ones are dropped."""

    def __init__(self, max_events: int = 1000) -> None:
        self._events: Deque[HistoryEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def record(self, event: HistoryEvent) -> None:
        with self._lock:
            self._events.append(event)

    def events(self, prompt_id: Optional[str] = None) -> List[HistoryEvent]:
        with self._lock:
            return [
                event
                for event in self._events
                if prompt_id is None or event.prompt_id == prompt_id
            ]
