# Copyright (c) Meta Platforms, Inc. and affiliates.
# Modifications copyright (c) 2025 Logan Martel.
# Adapted from https://github.com/meta-pytorch/KernelAgent (Apache-2.0).
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Chat-completions providers for OpenAI and OpenAI-compatible endpoints."""

from __future__ import annotations

import logging

from typing import Any, Dict, Optional, Sequence

from promptsmith.execution.base import BaseProvider, LLMResponse
from promptsmith.prompting.types import ProviderMessage
from promptsmith.types import TokenUsage

try:  # pragma: no cover - optional dependency
    from openai import OpenAI  # type: ignore

    OPENAI_AVAILABLE = True
except ImportError:  # pragma: no cover
    OPENAI_AVAILABLE = False
    OpenAI = None  # type: ignore

_LOGGER = logging.getLogger(__name__)

# These models take max_completion_tokens and a fixed temperature.
REASONING_MODEL_PREFIXES = ("gpt-5", "o1", "o3", "o4")


class OpenAICompatibleProvider(BaseProvider):
    """Provider for any endpoint speaking the chat-completions API."""

    default_base_url: Optional[str] = None

    def __init__(
        self,
        *,
        api_key_env: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        self.base_url = base_url or self.default_base_url
        super().__init__(api_key_env=api_key_env)

    def _connect(self, api_key: Optional[str]) -> Any:
        if not OPENAI_AVAILABLE or OpenAI is None or not api_key:
            return None
        if self.base_url:
            return OpenAI(api_key=api_key, base_url=self.base_url)
        return OpenAI(api_key=api_key)

    def request_params(
        self,
        model: str,
        messages: Sequence[ProviderMessage],
        temperature: float,
        max_tokens: int,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "model": model,
            "messages": [message.to_dict() for message in messages],
        }
        if model.startswith(REASONING_MODEL_PREFIXES):
            params["max_completion_tokens"] = max_tokens
        else:
            params["temperature"] = temperature
            params["max_tokens"] = max_tokens
        return params

    def _send(
        self,
        model: str,
        messages: Sequence[ProviderMessage],
        temperature: float,
        max_tokens: int,
    ) -> LLMResponse:
        response = self.client.chat.completions.create(  # type: ignore[union-attr]
            **self.request_params(model, messages, temperature, max_tokens)
        )
        _LOGGER.debug("%s response: %s", self.name, response)
        usage = getattr(response, "usage", None)
        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=getattr(response, "model", None) or model,
            provider=self.name,
            usage=TokenUsage(
                prompt_tokens=usage.prompt_tokens or 0,
                completion_tokens=usage.completion_tokens or 0,
                total_tokens=usage.total_tokens or 0,
            )
            if usage is not None
            else None,
        )


class OpenAIProvider(OpenAICompatibleProvider):
    api_key_env = "OPENAI_API_KEY"
    default_model = "gpt-4o-mini"
    token_limits = (
        ("gpt-5", 32000),
        ("gpt-4", 32000),
        ("o3", 32000),
        ("o1", 32000),
        ("gpt-3.5", 16000),
    )

    @property
    def name(self) -> str:
        return "openai"
