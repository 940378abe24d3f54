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

"""Model-name to provider resolution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Type

from promptsmith.llm.providers.anthropic_provider import AnthropicProvider
from promptsmith.llm.providers.base import BaseProvider
from promptsmith.llm.providers.groq_provider import GroqProvider
from promptsmith.llm.providers.openai_provider import OpenAIProvider


@dataclass
class ModelConfig:
    name: str
    provider_class: Type[BaseProvider]
    description: str = ""


AVAILABLE_MODELS = [
    ModelConfig("llama3-8b-8192", GroqProvider, "Llama 3 8B on Groq"),
    ModelConfig("llama-3.1-8b-instant", GroqProvider, "Llama 3.1 8B on Groq"),
    ModelConfig(
        "llama-3.3-70b-versatile", GroqProvider, "Llama 3.3 70B on Groq"
    ),
    ModelConfig("gpt-4o-mini", OpenAIProvider, "OpenAI GPT-4o mini"),
    ModelConfig("gpt-4o", OpenAIProvider, "OpenAI GPT-4o"),
    ModelConfig(
        "claude-sonnet-4-20250514", AnthropicProvider, "Claude Sonnet 4"
    ),
]

# Unregistered names fall back to the provider that serves their family.
FAMILY_PREFIXES: Tuple[Tuple[str, Type[BaseProvider]], ...] = (
    ("llama", GroqProvider),
    ("mixtral", GroqProvider),
    ("gemma", GroqProvider),
    ("gpt-", OpenAIProvider),
    ("o1", OpenAIProvider),
    ("o3", OpenAIProvider),
    ("o4", OpenAIProvider),
    ("claude-", AnthropicProvider),
)

MODEL_NAME_TO_CONFIG: Dict[str, ModelConfig] = {
    cfg.name: cfg for cfg in AVAILABLE_MODELS
}
_PROVIDER_CACHE: Dict[Tuple[Any, ...], BaseProvider] = {}


def resolve_provider_class(model_name: str) -> Optional[Type[BaseProvider]]:
    config = MODEL_NAME_TO_CONFIG.get(model_name)
    if config is not None:
        return config.provider_class
    for prefix, provider_cls in FAMILY_PREFIXES:
        if model_name.startswith(prefix):
            return provider_cls
    return None


def get_model_provider(
    model_name: str, **provider_kwargs: Any
) -> BaseProvider:
    """Return a (cached) provider able to serve ``model_name``."""

    provider_cls = resolve_provider_class(model_name)
    if provider_cls is None:
        raise ValueError(
            f"Unknown model '{model_name}'. "
            f"Registered: {sorted(MODEL_NAME_TO_CONFIG)}"
        )
    key = (provider_cls, *sorted(provider_kwargs.items()))
    provider = _PROVIDER_CACHE.get(key)
    if provider is None:
        provider = _PROVIDER_CACHE[key] = provider_cls(**provider_kwargs)
    if not provider.is_available():
        raise ValueError(
            f"Provider '{provider.name}' for model '{model_name}' is not "
            "available (SDK missing or API key not set)"
        )
    return provider


def register_model(config: ModelConfig) -> None:
    MODEL_NAME_TO_CONFIG[config.name] = config
