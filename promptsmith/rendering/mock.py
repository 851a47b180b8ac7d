"""Mock payloads returned when no live execution happens."""

from __future__ import annotations

from typing import Any, Dict, Optional

from promptsmith.constants import MOCK_RESPONSE_PREFIX
from promptsmith.prompting.types import AdaptedPrompt
from promptsmith.types import PayloadSource, RenderedPayload, TokenUsage

MOCK_USAGE = TokenUsage(prompt_tokens=100, completion_tokens=50, total_tokens=150)


def mock_response_text(provider: str, model: str) -> str:
    return (
        f"{MOCK_RESPONSE_PREFIX} This would be the actual response from "
        f"{provider} {model}. The prompt has been formatted correctly and "
        "would be sent to the real API."
    )


def build_mock_payload(
    provider: str,
    adapted: AdaptedPrompt,
    *,
    model: str,
    parameters: Dict[str, Any],
    target_model: Optional[str] = None,
    source: PayloadSource = "mock",
) -> RenderedPayload:
    """Payload with the same shape as a live one, flagged by ``source``."""

    return RenderedPayload(
        provider=provider,
        model=model,
        messages=adapted.messages,
        formatted_prompt=adapted.formatted_prompt,
        parameters=dict(parameters),
        target_model=target_model,
        response=mock_response_text(provider, model),
        usage=MOCK_USAGE,
        source=source,
    )


def is_mock_payload(payload: RenderedPayload) -> bool:
    return (payload.response or "").startswith(MOCK_RESPONSE_PREFIX)
