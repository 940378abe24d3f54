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

"""Chat-completions client shared by OpenAI and OpenAI-compatible hosts."""

from __future__ import annotations

import logging

from typing import Any, Dict, List, Optional

from promptsmith.llm.providers.base import (
    DEFAULT_OUTPUT_TOKEN_LIMIT,
    BaseProvider,
    LLMResponse,
)
from promptsmith.llm.utils import configure_proxy_environment

try:  # pragma: no cover - optional dependency
    from openai import OpenAI  # type: ignore

    OPENAI_AVAILABLE = True
except ImportError:  # pragma: no cover
    OPENAI_AVAILABLE = False
    OpenAI = None  # type: ignore

LOGGER = logging.getLogger(__name__)

REASONING_PREFIXES = ("gpt-5", "o1", "o3", "o4")


class OpenAICompatibleProvider(BaseProvider):
    """Base provider for OpenAI-compatible chat APIs."""

    def __init__(
        self, api_key_env: str, base_url: Optional[str] = None
    ) -> None:
        self.api_key_env = api_key_env
        self.base_url = base_url
        super().__init__()

    def _initialize_client(
        self,
    ) -> None:  # pragma: no cover - exercised when SDK available
        if not OPENAI_AVAILABLE or OpenAI is None:
            return
        api_key = self._get_api_key(self.api_key_env)
        if not api_key:
            return
        configure_proxy_environment()
        if self.base_url:
            self.client = OpenAI(api_key=api_key, base_url=self.base_url)
        else:
            self.client = OpenAI(api_key=api_key)

    def get_response(
        self,
        model_name: str,
        messages: List[Dict[str, str]],
        **kwargs: Any,
    ) -> LLMResponse:
        if not self.is_available():
            raise RuntimeError(f"{self.name} client not available")
        params = self._build_api_params(model_name, messages, **kwargs)
        client = self.client
        if client is None:
            raise RuntimeError(f"{self.name} client missing")
        response = client.chat.completions.create(**params)  # type: ignore[attr-defined]
        LOGGER.debug("%s response: %s", self.name, response)
        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        finish_reason = choices[0].finish_reason if choices else None
        usage = getattr(response, "usage", None)
        return LLMResponse(
            content=content or "",
            model=model_name,
            provider=self.name,
            usage=usage.model_dump() if usage is not None else None,
            finish_reason=finish_reason,
        )

    def _build_api_params(
        self,
        model_name: str,
        messages: List[Dict[str, str]],
        **kwargs: Any,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "model": model_name,
            "messages": messages,
            "stream": False,
        }
        reasoning = model_name.startswith(REASONING_PREFIXES)
        if not reasoning:
            params["temperature"] = kwargs.get("temperature", 0.7)
            if kwargs.get("top_p") is not None:
                params["top_p"] = kwargs["top_p"]
        max_tokens_value = min(
            kwargs.get("max_tokens", DEFAULT_OUTPUT_TOKEN_LIMIT),
            self.get_max_tokens_limit(model_name),
        )
        if reasoning:
            params["max_completion_tokens"] = max_tokens_value
        else:
            params["max_tokens"] = max_tokens_value
        if kwargs.get("stop"):
            params["stop"] = list(kwargs["stop"])
        if kwargs.get("response_format"):
            params["response_format"] = kwargs["response_format"]
        if kwargs.get("top_k") is not None:
            if self.supports_top_k():
                params["extra_body"] = {"top_k": kwargs["top_k"]}
            else:
                LOGGER.debug(
                    "%s does not accept top_k; dropping %s",
                    self.name,
                    kwargs["top_k"],
                )
        return params

    def is_available(self) -> bool:
        return OPENAI_AVAILABLE and self.client is not None
