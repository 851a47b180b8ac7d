"""Notification channel consumed by the render and enhancement workflows."""

from promptsmith.notifications.channel import (
    Listener,
    Notification,
    NotificationChannel,
    RenderNotification,
    utc_timestamp,
)

__all__ = [
    "Listener",
    "Notification",
    "NotificationChannel",
    "RenderNotification",
    "utc_timestamp",
]
