# Copyright (c) Meta Platforms, Inc. and affiliates.
# Modifications copyright (c) 2025 Logan Martel.
# Adapted from https://github.com/meta-pytorch/KernelAgent (Apache-2.0).

"""Executor capability and the LLM provider registry behind it."""

from __future__ import annotations

import logging

from typing import Any, Dict, Mapping, Optional, Sequence, Type

from promptsmith.configuration import ExecutorSettings
from promptsmith.execution.anthropic_provider import AnthropicProvider
from promptsmith.execution.base import BaseProvider, LLMResponse
from promptsmith.execution.executor import (
    ExecutionOptions,
    ExecutionRequest,
    ExecutionResult,
    Executor,
    ProviderExecutor,
)
from promptsmith.execution.meta_provider import MetaProvider
from promptsmith.execution.openai_provider import (
    OpenAICompatibleProvider,
    OpenAIProvider,
)
from promptsmith.prompting.types import ProviderMessage
from promptsmith.types import TokenUsage


class EchoProvider(BaseProvider):
    """Deterministic provider for testing; replies with the last message."""

    default_model = "echo"

    def __init__(self, **_: Any) -> None:
        super().__init__()

    @property
    def name(self) -> str:
        return "echo"

    def _connect(self, api_key: Optional[str]) -> Any:
        return None

    def is_available(self) -> bool:
        return True

    def _send(
        self,
        model: str,
        messages: Sequence[ProviderMessage],
        temperature: float,
        max_tokens: int,
    ) -> LLMResponse:
        content = messages[-1].content if messages else ""
        prompt_tokens = sum(len(m.content.split()) for m in messages)
        completion_tokens = len(content.split())
        return LLMResponse(
            content=content,
            model=model,
            provider=self.name,
            usage=TokenUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
        )


PROVIDER_ALIASES: Dict[str, Type[BaseProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "meta": MetaProvider,
}

_LOGGER = logging.getLogger(__name__)


def load_executor(
    settings: ExecutorSettings,
    *,
    provider_classes: Optional[Mapping[str, Type[BaseProvider]]] = None,
) -> Optional[Executor]:
    """Build a :class:`ProviderExecutor` for the configured connections.

    Returns ``None`` when no connections are configured; every render then
    takes the mock path.
    """

    if not settings.connections:
        _LOGGER.warning(
            "No executor connections configured; renders will use mock "
            "responses. Add `promptsmith.executor.connections` to go live."
        )
        return None
    _LOGGER.info(
        "Configured executor connections: %s",
        ", ".join(sorted(settings.connections)),
    )
    return ProviderExecutor(
        settings.connections, provider_classes or PROVIDER_ALIASES
    )


__all__ = [
    "AnthropicProvider",
    "BaseProvider",
    "EchoProvider",
    "ExecutionOptions",
    "ExecutionRequest",
    "ExecutionResult",
    "Executor",
    "LLMResponse",
    "MetaProvider",
    "OpenAICompatibleProvider",
    "OpenAIProvider",
    "PROVIDER_ALIASES",
    "ProviderExecutor",
    "load_executor",
]
