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

"""Meta Llama provider (OpenAI-compatible endpoint)."""

from __future__ import annotations

from promptsmith.execution.openai_provider import OpenAICompatibleProvider


class MetaProvider(OpenAICompatibleProvider):
    api_key_env = "LLAMA_API_KEY"
    default_base_url = "https://api.llama.com/compat/v1/"
    default_model = "Llama-3.3-70B-Instruct"

    @property
    def name(self) -> str:
        return "meta"
