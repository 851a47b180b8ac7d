# Copyright (c) Meta Platforms, Inc. and affiliates.
# Modifications copyright (c) 2025 Logan Martel.
# Adapted from https://github.com/meta-pytorch/KernelAgent (Apache-2.0).

"""JSONL sink for channel notifications."""

from __future__ import annotations

import json
import threading
import time

from pathlib import Path
from typing import Callable, Optional

from promptsmith.logging.utils import redact
from promptsmith.notifications.channel import Notification, NotificationChannel

FLUSH_BYTES = 8 * 1024
FLUSH_INTERVAL_S = 0.05


class NotificationLog:
    """Appends every notification it receives to a JSONL file.

    Lines are buffered and written once the buffer is large or old enough;
    call :meth:`close` (or use it as a context manager) to flush the rest.
    """

    def __init__(
        self,
        jsonl_path: Path,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.jsonl_path = jsonl_path
        self._clock = clock
        self._buffer: list[str] = []
        self._buffer_bytes = 0
        self._last_flush = clock()
        self._lock = threading.Lock()
        self._unsubscribe: Optional[Callable[[], None]] = None

    def attach(self, channel: NotificationChannel) -> "NotificationLog":
        self._unsubscribe = channel.subscribe(self)
        return self

    def __call__(self, notification: Notification) -> None:
        line = redact(
            json.dumps(
                {"ts": self._clock(), **notification.to_dict()},
                ensure_ascii=False,
                default=str,
            )
        )
        with self._lock:
            self._buffer.append(line)
            self._buffer_bytes += len(line) + 1
            if self._should_flush():
                self._flush()

    def flush(self) -> None:
        with self._lock:
            self._flush()

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.flush()

    def __enter__(self) -> "NotificationLog":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _should_flush(self) -> bool:
        if self._buffer_bytes >= FLUSH_BYTES:
            return True
        return bool(self._buffer) and (
            self._clock() - self._last_flush >= FLUSH_INTERVAL_S
        )

    def _flush(self) -> None:
        if not self._buffer:
            return
        self.jsonl_path.parent.mkdir(parents=True, exist_ok=True)
        with self.jsonl_path.open("a", encoding="utf-8") as handle:
            for line in self._buffer:
                handle.write(line + "\n")
        self._buffer.clear()
        self._buffer_bytes = 0
        self._last_flush = self._clock()
