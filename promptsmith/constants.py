"""Shared identifiers used across the pipeline."""

from __future__ import annotations

PROVIDER_OPENAI = "openai"
PROVIDER_ANTHROPIC = "anthropic"
PROVIDER_META = "meta"
SUPPORTED_PROVIDERS = (PROVIDER_OPENAI, PROVIDER_ANTHROPIC, PROVIDER_META)

MODE_ENHANCED = "enhanced"
MODE_ORIGINAL = "original"
MODE_NO_ADAPT = "original-no-adapt"
RENDER_MODES = (MODE_ENHANCED, MODE_ORIGINAL, MODE_NO_ADAPT)

PROMPT_KIND_AGENT = "agent"
PROMPT_KIND_TASK = "task"
TAG_PROMPT_TYPE_AGENT = "prompt-type:agent"
TAG_PROMPT_TYPE_TASK = "prompt-type:task"

STATUS_STARTED = "started"
STATUS_PREPARING = "preparing"
STATUS_EXECUTING = "executing"
STATUS_PROCESSING = "processing"
STATUS_FAILED = "failed"
STATUS_COMPLETED = "completed"
RENDER_STATUS_ORDER = (
    STATUS_STARTED,
    STATUS_PREPARING,
    STATUS_EXECUTING,
    STATUS_PROCESSING,
    STATUS_FAILED,
    STATUS_COMPLETED,
)
TERMINAL_STATUSES = frozenset({STATUS_FAILED, STATUS_COMPLETED})

SOURCE_LIVE = "live"
SOURCE_MOCK = "mock"
SOURCE_FALLBACK = "fallback"
MOCK_RESPONSE_PREFIX = "[MOCK RESPONSE]"
DEFAULT_CONNECTION_KEY = "default"
