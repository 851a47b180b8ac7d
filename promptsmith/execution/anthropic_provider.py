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

"""Anthropic Messages API provider."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from promptsmith.execution.base import BaseProvider, LLMResponse
from promptsmith.prompting.types import ProviderMessage
from promptsmith.types import TokenUsage

try:  # pragma: no cover - optional dependency
    import anthropic  # type: ignore

    ANTHROPIC_AVAILABLE = True
except ImportError:  # pragma: no cover
    ANTHROPIC_AVAILABLE = False
    anthropic = None  # type: ignore


def split_system(
    messages: Sequence[ProviderMessage],
) -> Tuple[str, List[Dict[str, str]]]:
    """Separate system turns; the Messages API takes them as a parameter."""

    system = "\n\n".join(m.content for m in messages if m.role == "system")
    turns = [m.to_dict() for m in messages if m.role != "system"]
    return system, turns


class AnthropicProvider(BaseProvider):
    api_key_env = "ANTHROPIC_API_KEY"
    default_model = "claude-3-5-sonnet-latest"

    @property
    def name(self) -> str:
        return "anthropic"

    def _connect(self, api_key: Optional[str]) -> Any:
        if not ANTHROPIC_AVAILABLE or anthropic is None or not api_key:
            return None
        return anthropic.Anthropic(api_key=api_key)

    def _send(
        self,
        model: str,
        messages: Sequence[ProviderMessage],
        temperature: float,
        max_tokens: int,
    ) -> LLMResponse:
        system, turns = split_system(messages)
        params: Dict[str, Any] = {
            "model": model,
            "messages": turns,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if system:
            params["system"] = system
        response: Any = self.client.messages.create(**params)  # type: ignore[union-attr]

        text = "".join(
            getattr(block, "text", "") or ""
            for block in getattr(response, "content", None) or ()
        )
        usage = None
        raw_usage = getattr(response, "usage", None)
        if raw_usage is not None:
            prompt_tokens = int(getattr(raw_usage, "input_tokens", 0) or 0)
            completion_tokens = int(getattr(raw_usage, "output_tokens", 0) or 0)
            usage = TokenUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            )
        return LLMResponse(
            content=text,
            model=getattr(response, "model", None) or model,
            provider=self.name,
            usage=usage,
        )
