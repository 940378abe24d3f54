# Copyright (c) Meta Platforms, Inc. and affiliates.
# Modifications copyright (c) 2025 Logan Martel.
# Adapted from https://github.com/meta-pytorch/KernelAgent (Apache-2.0).

"""LLM provider registry."""

from __future__ import annotations

import logging

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol

from promptsmith.llm.providers.anthropic_provider import AnthropicProvider
from promptsmith.llm.providers.base import BaseProvider, LLMResponse
from promptsmith.llm.providers.groq_provider import GroqProvider
from promptsmith.llm.providers.models import get_model_provider
from promptsmith.llm.providers.openai_provider import OpenAIProvider

if TYPE_CHECKING:  # pragma: no cover
    from promptsmith.configuration import SamplingConfig

JSON_RESPONSE_FORMAT = {"type": "json_object"}


class LLMProvider(Protocol):
    name: str

    def complete(
        self,
        messages: List[Dict[str, str]],
        *,
        sampling: "SamplingConfig",
        json_mode: bool = False,
    ) -> LLMResponse: ...


class ProviderAdapter(LLMProvider):
    """Maps a ``SamplingConfig`` onto a concrete provider call."""

    def __init__(self, provider: BaseProvider) -> None:
        self._provider = provider

    @property
    def name(self) -> str:
        return self._provider.name

    def complete(
        self,
        messages: List[Dict[str, str]],
        *,
        sampling: "SamplingConfig",
        json_mode: bool = False,
    ) -> LLMResponse:
        kwargs: Dict[str, Any] = {
            "temperature": sampling.temperature,
            "top_p": sampling.top_p,
            "max_tokens": sampling.max_tokens,
        }
        if sampling.top_k is not None:
            kwargs["top_k"] = sampling.top_k
        if sampling.stop:
            kwargs["stop"] = list(sampling.stop)
        if json_mode and self._provider.supports_json_mode():
            kwargs["response_format"] = dict(JSON_RESPONSE_FORMAT)
        return self._provider.get_response(sampling.model, messages, **kwargs)


class EchoProvider:
    """Deterministic provider for testing and dry runs."""

    name = "echo"

    def complete(
        self,
        messages: List[Dict[str, str]],
        *,
        sampling: "SamplingConfig",
        json_mode: bool = False,
    ) -> LLMResponse:
        reply = ""
        for message in reversed(messages):
            if message.get("role") == "user":
                reply = message.get("content", "")
                break
        return LLMResponse(content=reply, model=sampling.model, provider=self.name)


PROVIDER_ALIASES = {
    "openai": OpenAIProvider,
    "groq": GroqProvider,
    "anthropic": AnthropicProvider,
}


_LOGGER = logging.getLogger(__name__)


def load_provider(config: Dict[str, Any]) -> LLMProvider:
    """Load a provider from config.

    Expected keys:
      - provider: optional explicit provider name (e.g., "groq", "echo")
      - model: optional model name mapped via models registry
    """

    provider_name = config.get("provider")
    model_name: Optional[str] = config.get("model")

    if provider_name == "echo" or (
        provider_name is None and model_name is None
    ):
        _LOGGER.warning(
            "LLM provider is set to 'echo'; replies will simply mirror prompts. "
            "Update `llm.provider` / `sampling.model` to use a real LLM."
        )
        return EchoProvider()

    provider_kwargs: Dict[str, Any] = {}
    if config.get("base_url"):
        provider_kwargs["base_url"] = config["base_url"]
    if config.get("api_key_env"):
        provider_kwargs["api_key_env"] = config["api_key_env"]

    if provider_name:
        provider_cls = PROVIDER_ALIASES.get(provider_name)
        if provider_cls is None:
            raise ValueError(
                f"Unknown provider '{provider_name}'. "
                f"Available: {sorted(PROVIDER_ALIASES) + ['echo']}"
            )
        provider = provider_cls(**provider_kwargs)
        if not provider.is_available():
            raise ValueError(
                f"Provider '{provider_name}' is not available "
                "(SDK missing or API key not set)"
            )
        _LOGGER.info("Using LLM provider '%s'", provider_name)
        return ProviderAdapter(provider)

    provider = get_model_provider(model_name, **provider_kwargs)
    _LOGGER.info("Using model '%s' via registry provider", model_name)
    return ProviderAdapter(provider)


__all__ = [
    "BaseProvider",
    "EchoProvider",
    "JSON_RESPONSE_FORMAT",
    "LLMProvider",
    "LLMResponse",
    "PROVIDER_ALIASES",
    "ProviderAdapter",
    "load_provider",
]
