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

"""Provider interface shared by every chat-completion backend."""

from __future__ import annotations

import os

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

# Output ceiling applied when a provider knows nothing better about a model.
DEFAULT_OUTPUT_TOKEN_LIMIT = 4096

TRUNCATION_REASONS = frozenset({"length", "max_tokens"})

_PLACEHOLDER_KEYS = frozenset({"", "your-api-key-here", "changeme"})


@dataclass
class LLMResponse:
    """A single completion, normalised across providers."""

    content: str
    model: str
    provider: str
    usage: Optional[Dict[str, Any]] = None
    finish_reason: Optional[str] = None

    @property
    def truncated(self) -> bool:
        """True when the provider stopped because it hit ``max_tokens``."""
        return self.finish_reason in TRUNCATION_REASONS


class BaseProvider(ABC):
    """A chat-completion backend.

    Subclasses build their SDK client in ``_initialize_client`` and leave
    ``self.client`` as ``None`` when the SDK or the API key is missing;
    ``is_available`` reports that state to the provider loader.
    """

    def __init__(self) -> None:
        self.client: Any | None = None
        self._initialize_client()

    @abstractmethod
    def _initialize_client(self) -> None:
        """Create the SDK client, or leave ``self.client`` unset."""

    @abstractmethod
    def get_response(
        self,
        model_name: str,
        messages: List[Dict[str, str]],
        **kwargs: Any,
    ) -> LLMResponse:
        """Return a single chat completion.

        Recognised keyword arguments: ``temperature``, ``top_p``,
        ``top_k``, ``max_tokens``, ``stop`` and ``response_format``.
        Providers drop the ones their API does not support.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the SDK is installed and an API key was found."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short provider name used in logs and error messages."""

    def supports_top_k(self) -> bool:
        return False

    def supports_json_mode(self) -> bool:
        """Whether the API accepts an OpenAI-style ``response_format``."""
        return True

    def get_max_tokens_limit(self, model_name: str) -> int:
        return DEFAULT_OUTPUT_TOKEN_LIMIT

    def _get_api_key(self, env_var: str) -> Optional[str]:
        api_key = (os.getenv(env_var) or "").strip()
        if api_key.lower() in _PLACEHOLDER_KEYS:
            return None
        return api_key
