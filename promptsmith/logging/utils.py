# Copyright (c) Meta Platforms, Inc. and affiliates.
# Modifications copyright (c) 2025 Logan Martel.
# Adapted from https://github.com/meta-pytorch/KernelAgent (Apache-2.0).

"""Logging helpers: key redaction, the rotating file log and level setup."""

from __future__ import annotations

import logging
import os
import re

from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "promptsmith"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Env var names for provider credentials, as used by the execution providers.
_KEY_NAMES = re.compile(r"\b(?:OPENAI|ANTHROPIC|LLAMA)_API_KEY\b")


def redact(text: str) -> str:
    """Scrub API-key variable names from text headed for logs."""

    return _KEY_NAMES.sub("<REDACTED_KEY>", text) if text else ""


def _has_file_handler(logger: logging.Logger, log_file: Path) -> bool:
    target = os.path.abspath(log_file)
    return any(
        isinstance(handler, RotatingFileHandler)
        and handler.baseFilename == target
        for handler in logger.handlers
    )


def setup_file_logger(
    log_file: Path, name: str = PACKAGE_LOGGER, level: str = "INFO"
) -> logging.Logger:
    """Attach a rotating file handler to ``name``; repeat calls are no-ops."""

    logger = logging.getLogger(name)
    logger.setLevel(level)
    if _has_file_handler(logger, log_file):
        return logger

    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_file, maxBytes=2_000_000, backupCount=3)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger


def configure_logging(
    level: str = "INFO", log_file: Optional[Path] = None
) -> logging.Logger:
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    if log_file is not None:
        setup_file_logger(log_file, level=level)
    return logger
