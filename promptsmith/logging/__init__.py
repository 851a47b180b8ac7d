"""Logging utilities."""

from .notification_log import NotificationLog
from .utils import configure_logging, redact, setup_file_logger

__all__ = [
    "NotificationLog",
    "configure_logging",
    "redact",
    "setup_file_logger",
]
