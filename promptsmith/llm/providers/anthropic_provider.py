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

import logging

from typing import Any, Dict, List, Optional

from promptsmith.llm.providers.base import BaseProvider, LLMResponse

try:  # pragma: no cover - optional dependency
    import anthropic  # type: ignore

    ANTHROPIC_AVAILABLE = True
except ImportError:  # pragma: no cover
    ANTHROPIC_AVAILABLE = False
    anthropic = None  # type: ignore

LOGGER = logging.getLogger(__name__)


class AnthropicProvider(BaseProvider):
    """Claude models via ``anthropic.Anthropic``.

    The Messages API takes the system prompt as a separate field and has no
    JSON response mode, so structured requests rely on the prompt alone.
    """

    def __init__(
        self,
        *,
        api_key_env: str = "ANTHROPIC_API_KEY",
        base_url: Optional[str] = None,
    ) -> None:
        self.api_key_env = api_key_env
        self.base_url = base_url
        super().__init__()

    def _initialize_client(self) -> None:
        if not ANTHROPIC_AVAILABLE or anthropic is None:
            return
        api_key = self._get_api_key(self.api_key_env)
        if not api_key:
            return
        if self.base_url:
            self.client = anthropic.Anthropic(
                api_key=api_key, base_url=self.base_url
            )
        else:
            self.client = anthropic.Anthropic(api_key=api_key)

    @property
    def name(self) -> str:
        return "anthropic"

    def is_available(self) -> bool:
        return ANTHROPIC_AVAILABLE and self.client is not None

    def supports_top_k(self) -> bool:
        return True

    def supports_json_mode(self) -> bool:
        return False

    def get_response(
        self,
        model_name: str,
        messages: List[Dict[str, str]],
        **kwargs: Any,
    ) -> LLMResponse:
        if not self.is_available():
            raise RuntimeError(f"{self.name} client not available")
        response: Any = self.client.messages.create(  # type: ignore[union-attr]
            **self._build_api_params(model_name, messages, **kwargs)
        )
        LOGGER.debug("%s response: %s", self.name, response)
        text_parts = [
            block.text
            for block in getattr(response, "content", None) or []
            if isinstance(getattr(block, "text", None), str)
        ]
        return LLMResponse(
            content="".join(text_parts),
            model=model_name,
            provider=self.name,
            usage=_usage_dict(getattr(response, "usage", None)),
            finish_reason=getattr(response, "stop_reason", None),
        )

    def _build_api_params(
        self,
        model_name: str,
        messages: List[Dict[str, str]],
        **kwargs: Any,
    ) -> Dict[str, Any]:
        system_parts = [
            message.get("content", "")
            for message in messages
            if message.get("role") == "system"
        ]
        conversation = [
            {"role": message["role"], "content": message.get("content", "")}
            for message in messages
            if message.get("role") != "system"
        ]
        params: Dict[str, Any] = {
            "model": model_name,
            "system": "\n\n".join(system_parts),
            "messages": conversation,
            "max_tokens": min(
                kwargs.get("max_tokens", self.get_max_tokens_limit(model_name)),
                self.get_max_tokens_limit(model_name),
            ),
        }
        if kwargs.get("temperature") is not None:
            # Claude accepts 0..1; the shared sampling range goes up to 2.
            params["temperature"] = min(kwargs["temperature"], 1.0)
        if kwargs.get("top_p") is not None:
            params["top_p"] = kwargs["top_p"]
        if kwargs.get("top_k") is not None:
            params["top_k"] = kwargs["top_k"]
        if kwargs.get("stop"):
            params["stop_sequences"] = list(kwargs["stop"])
        return params


def _usage_dict(raw_usage: Any) -> Optional[Dict[str, int]]:
    if raw_usage is None:
        return None
    input_tokens = getattr(raw_usage, "input_tokens", 0) or 0
    output_tokens = getattr(raw_usage, "output_tokens", 0) or 0
    return {
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "total_tokens": input_tokens + output_tokens,
    }
