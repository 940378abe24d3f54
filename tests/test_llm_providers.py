from __future__ import annotations

import os

from typing import Any, Dict, List

import pytest

from promptsmith.configuration import SamplingConfig
from promptsmith.llm.providers import (
    PROVIDER_ALIASES,
    BaseProvider,
    EchoProvider,
    LLMResponse,
    ProviderAdapter,
    load_provider,
    models as model_mod,
)
from promptsmith.llm.providers.anthropic_provider import AnthropicProvider
from promptsmith.llm.providers.groq_provider import GROQ_BASE_URL, GroqProvider
from promptsmith.llm.providers.models import ModelConfig
from promptsmith.llm.providers.openai_provider import OpenAIProvider
from promptsmith.llm.utils import (
    PROXY_ENV_VARS,
    configure_proxy_environment,
    total_tokens,
)

MESSAGES = [
    {"role": "system", "content": "be brief"},
    {"role": "user", "content": "hi"},
    {"role": "assistant", "content": "hello"},
    {"role": "user", "content": "how are you?"},
]


class _StubProvider(BaseProvider):
    def __init__(self, **kwargs: Any) -> None:
        self.init_kwargs = kwargs
        self.responses: List[Dict[str, Any]] = []
        super().__init__()

    def _initialize_client(self) -> None:
        self.client = object()

    def get_response(
        self, model_name: str, messages: List[Dict[str, str]], **kwargs: Any
    ) -> LLMResponse:
        self.responses.append(
            {"model": model_name, "messages": messages, "kwargs": kwargs}
        )
        return LLMResponse(
            content="stubbed",
            model=model_name,
            provider="stub",
            usage={"total_tokens": 12},
        )

    def is_available(self) -> bool:
        return True

    @property
    def name(self) -> str:
        return "stub"


class _UnavailableProvider(_StubProvider):
    def is_available(self) -> bool:
        return False


def test_load_provider_echo_by_default():
    provider = load_provider({})
    assert isinstance(provider, EchoProvider)
    response = provider.complete(MESSAGES, sampling=SamplingConfig())
    assert response.content == "how are you?"
    assert response.usage is None


def test_load_provider_passes_options(monkeypatch):
    monkeypatch.setitem(PROVIDER_ALIASES, "stub", _StubProvider)
    provider = load_provider(
        {
            "provider": "stub",
            "model": "stub-model",
            "base_url": "http://example.com",
            "api_key_env": "CUSTOM_KEY",
        }
    )
    assert provider.name == "stub"
    stub = provider._provider  # type: ignore[attr-defined]
    assert stub.init_kwargs == {
        "base_url": "http://example.com",
        "api_key_env": "CUSTOM_KEY",
    }


def test_load_provider_rejects_unavailable_or_unknown(monkeypatch):
    monkeypatch.setitem(PROVIDER_ALIASES, "down", _UnavailableProvider)
    with pytest.raises(ValueError, match="not available"):
        load_provider({"provider": "down"})
    with pytest.raises(ValueError, match="Unknown provider"):
        load_provider({"provider": "carrier-pigeon"})


def test_load_provider_model_uses_registry(monkeypatch):
    monkeypatch.setattr(model_mod, "MODEL_NAME_TO_CONFIG", {})
    monkeypatch.setattr(model_mod, "_PROVIDER_CACHE", {})
    model_mod.register_model(
        ModelConfig(
            name="stub-model",
            provider_class=_StubProvider,
            description="stub",
        )
    )
    provider = load_provider(
        {
            "model": "stub-model",
            "base_url": "http://relay.local",
            "api_key_env": "CUSTOM_KEY",
        }
    )
    stub = provider._provider  # type: ignore[attr-defined]
    assert stub.init_kwargs["base_url"] == "http://relay.local"
    with pytest.raises(ValueError, match="Unknown model"):
        load_provider({"model": "nope"})


def test_adapter_maps_sampling_config():
    stub = _StubProvider()
    adapter = ProviderAdapter(stub)
    sampling = SamplingConfig(
        temperature=0.3,
        top_p=0.8,
        top_k=40,
        max_tokens=512,
        model="stub-model",
        stop=("###",),
    )
    response = adapter.complete(MESSAGES, sampling=sampling, json_mode=True)
    assert response.content == "stubbed"
    call = stub.responses[0]
    assert call["model"] == "stub-model"
    assert call["messages"] == MESSAGES
    assert call["kwargs"] == {
        "temperature": 0.3,
        "top_p": 0.8,
        "top_k": 40,
        "max_tokens": 512,
        "stop": ["###"],
        "response_format": {"type": "json_object"},
    }


def test_adapter_omits_unset_optional_fields():
    stub = _StubProvider()
    ProviderAdapter(stub).complete(MESSAGES, sampling=SamplingConfig())
    kwargs = stub.responses[0]["kwargs"]
    assert set(kwargs) == {"temperature", "top_p", "max_tokens"}


def test_openai_params(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    provider = OpenAIProvider()
    assert provider.is_available() is False
    params = provider._build_api_params(
        "gpt-4o-mini",
        MESSAGES,
        temperature=0.2,
        top_p=0.7,
        top_k=40,
        max_tokens=900,
        stop=["END"],
        response_format={"type": "json_object"},
    )
    assert params == {
        "model": "gpt-4o-mini",
        "messages": MESSAGES,
        "stream": False,
        "temperature": 0.2,
        "top_p": 0.7,
        "max_tokens": 900,
        "stop": ["END"],
        "response_format": {"type": "json_object"},
    }


def test_openai_reasoning_models_skip_sampling_knobs(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    params = OpenAIProvider()._build_api_params(
        "o3-mini", MESSAGES, temperature=0.2, top_p=0.7, max_tokens=900
    )
    assert "temperature" not in params
    assert "top_p" not in params
    assert params["max_completion_tokens"] == 900


def test_groq_defaults(monkeypatch):
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    provider = GroqProvider()
    assert provider.name == "groq"
    assert provider.base_url == GROQ_BASE_URL
    assert provider.api_key_env == "GROQ_API_KEY"
    with pytest.raises(RuntimeError, match="not available"):
        provider.get_response("llama3-8b-8192", MESSAGES)


def test_anthropic_params(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    provider = AnthropicProvider()
    params = provider._build_api_params(
        "claude-sonnet-4-20250514",
        MESSAGES,
        temperature=0.9,
        top_p=0.85,
        top_k=100,
        max_tokens=1200,
        stop=["###"],
        response_format={"type": "json_object"},
    )
    assert params["system"] == "be brief"
    assert [m["role"] for m in params["messages"]] == [
        "user",
        "assistant",
        "user",
    ]
    assert params["top_k"] == 100
    assert params["top_p"] == 0.85
    assert params["stop_sequences"] == ["###"]
    assert "response_format" not in params


def test_total_tokens():
    assert total_tokens({"total_tokens": 9}) == 9
    assert total_tokens({"input_tokens": 3, "output_tokens": 4}) == 7
    assert total_tokens({}) is None
    assert total_tokens(None) is None


class _NoJsonModeProvider(_StubProvider):
    def supports_json_mode(self) -> bool:
        return False


def test_adapter_skips_json_mode_when_unsupported():
    stub = _NoJsonModeProvider()
    ProviderAdapter(stub).complete(
        MESSAGES, sampling=SamplingConfig(), json_mode=True
    )
    assert "response_format" not in stub.responses[0]["kwargs"]


def test_anthropic_clamps_temperature_and_joins_system(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    provider = AnthropicProvider()
    assert provider.supports_json_mode() is False
    params = provider._build_api_params(
        "claude-sonnet-4-20250514",
        [{"role": "system", "content": "a"}, {"role": "system", "content": "b"}]
        + MESSAGES[1:],
        temperature=1.6,
        max_tokens=9000,
    )
    assert params["temperature"] == 1.0
    assert params["system"] == "a\n\nb"
    assert params["max_tokens"] == 4096


def test_openai_output_limits(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setenv("OPENAI_BASE_URL", "http://gateway.local/v1")
    provider = OpenAIProvider()
    assert provider.base_url == "http://gateway.local/v1"
    assert provider.get_max_tokens_limit("gpt-4o-mini") == 16384
    assert provider.get_max_tokens_limit("some-local-model") == 4096


def test_response_truncation_flag():
    assert LLMResponse("x", "m", "p", finish_reason="length").truncated
    assert LLMResponse("x", "m", "p", finish_reason="max_tokens").truncated
    assert not LLMResponse("x", "m", "p", finish_reason="stop").truncated
    assert not LLMResponse("x", "m", "p").truncated


def test_unregistered_models_resolve_by_family():
    assert model_mod.resolve_provider_class("llama-4-scout") is GroqProvider
    assert model_mod.resolve_provider_class("gpt-4.1") is OpenAIProvider
    assert model_mod.resolve_provider_class("claude-3-haiku") is AnthropicProvider
    assert model_mod.resolve_provider_class("mystery-model") is None


def test_proxy_override_applies_to_all_proxy_vars(monkeypatch):
    monkeypatch.delenv("PROMPTSMITH_PROXY_OVERRIDE", raising=False)
    for key in PROXY_ENV_VARS:
        monkeypatch.setenv(key, "http://old-proxy:1")
    configure_proxy_environment()
    assert os.environ["HTTPS_PROXY"] == "http://old-proxy:1"

    monkeypatch.setenv("PROMPTSMITH_PROXY_OVERRIDE", "http://egress:3128")
    configure_proxy_environment()
    assert {os.environ[key] for key in PROXY_ENV_VARS} == {"http://egress:3128"}
