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

"""Provider interface the executor uses to reach an LLM SDK."""

from __future__ import annotations

import os

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple

from promptsmith.prompting.types import ProviderMessage
from promptsmith.types import TokenUsage

PLACEHOLDER_API_KEY = "your-api-key-here"


@dataclass(frozen=True)
class LLMResponse:
    """Reply from one provider call, normalised for the executor."""

    content: str
    model: str
    provider: str
    usage: Optional[TokenUsage] = None


class BaseProvider(ABC):
    """SDK client wrapper for one provider family.

    Subclasses build their client in :meth:`_connect` and return ``None`` when
    the SDK or the API key is missing. :meth:`is_available` then reports
    ``False`` and :meth:`complete` refuses to run.
    """

    api_key_env: str = ""
    default_model: str = "default"
    # (model prefix, output token ceiling); first matching prefix wins.
    token_limits: Tuple[Tuple[str, int], ...] = ()
    fallback_token_limit: int = 8192

    def __init__(self, *, api_key_env: Optional[str] = None) -> None:
        if api_key_env:
            self.api_key_env = api_key_env
        self.client: Any | None = self._connect(self._api_key())

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name reported in results."""

    @abstractmethod
    def _connect(self, api_key: Optional[str]) -> Any:
        """Return an SDK client, or ``None`` when one cannot be built."""

    @abstractmethod
    def _send(
        self,
        model: str,
        messages: Sequence[ProviderMessage],
        temperature: float,
        max_tokens: int,
    ) -> LLMResponse:
        """Perform the blocking SDK call."""

    def complete(
        self,
        messages: Sequence[ProviderMessage],
        *,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> LLMResponse:
        if not self.is_available():
            raise RuntimeError(f"{self.name} client not available")
        model = model or self.default_model
        return self._send(
            model, messages, temperature, self.token_limit(model, max_tokens)
        )

    def is_available(self) -> bool:
        return self.client is not None

    def token_limit(self, model: str, requested: int) -> int:
        for prefix, limit in self.token_limits:
            if model.startswith(prefix):
                return min(requested, limit)
        return min(requested, self.fallback_token_limit)

    def _api_key(self) -> Optional[str]:
        if not self.api_key_env:
            return None
        api_key = os.getenv(self.api_key_env)
        if api_key and api_key != PLACEHOLDER_API_KEY:
            return api_key
        return None
