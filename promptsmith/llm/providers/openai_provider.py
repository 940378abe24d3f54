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

"""OpenAI provider implementation."""

from __future__ import annotations

import os

from typing import Optional

from promptsmith.llm.providers.openai_base import OpenAICompatibleProvider

BASE_URL_ENV = "OPENAI_BASE_URL"

# Anything unlisted uses the base ceiling.
_OUTPUT_LIMITS = (
    ("gpt-4o", 16384),
    ("gpt-4.1", 32768),
    ("gpt-5", 128000),
    ("o1", 100000),
    ("o3", 100000),
    ("o4", 100000),
)


class OpenAIProvider(OpenAICompatibleProvider):
    """OpenAI chat completions, optionally through a compatible relay.

    ``base_url`` falls back to ``OPENAI_BASE_URL`` so a self-hosted
    gateway can be used without touching the YAML config.
    """

    def __init__(
        self,
        *,
        api_key_env: str = "OPENAI_API_KEY",
        base_url: Optional[str] = None,
    ) -> None:
        super().__init__(
            api_key_env=api_key_env,
            base_url=base_url or os.getenv(BASE_URL_ENV) or None,
        )

    @property
    def name(self) -> str:
        return "openai"

    def get_max_tokens_limit(self, model_name: str) -> int:
        for prefix, limit in _OUTPUT_LIMITS:
            if model_name.startswith(prefix):
                return limit
        return super().get_max_tokens_limit(model_name)
