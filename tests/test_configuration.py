from __future__ import annotations

import logging

from pathlib import Path

import pytest

from promptsmith.classifier import TaskShape
from promptsmith.configuration import (
    SamplingConfig,
    SamplingConfigStore,
    build_settings,
    derive_adaptive,
    execute_config_command,
    is_config_command,
    load_config_file,
    load_sampling_config,
    validate_field,
)
from promptsmith.exceptions import ValidationError


@pytest.mark.parametrize(
    "raw, expected",
    [("0", 0.0), ("1.0", 1.0), ("2", 2.0), (1.5, 1.5), (" 0.25 ", 0.25)],
)
def test_temperature_accepts_range(raw, expected) -> None:
    assert validate_field("temperature", raw) == expected


@pytest.mark.parametrize(
    "raw", ["2.5", "2.000001", "-0.1", "warm", "", "nan", "inf", True]
)
def test_temperature_rejects_out_of_range(raw) -> None:
    with pytest.raises(ValidationError, match="Temperature must be a number between 0 and 2"):
        validate_field("temperature", raw)


def test_top_p_bounds() -> None:
    assert validate_field("top_p", "1") == 1.0
    assert validate_field("top_p", "0.01") == 0.01
    for raw in ("0", "1.01", "abc"):
        with pytest.raises(ValidationError, match="Top P"):
            validate_field("top_p", raw)


def test_top_k_bounds() -> None:
    assert validate_field("top_k", "1") == 1
    assert validate_field("top_k", 1000) == 1000
    assert validate_field("top_k", None) is None
    for raw in ("0", "1001", "4.5", "many"):
        with pytest.raises(ValidationError, match="Top K"):
            validate_field("top_k", raw)


def test_max_tokens_bounds() -> None:
    assert validate_field("max_tokens", "4096") == 4096
    assert validate_field("max_tokens", 800.0) == 800
    for raw in ("0", "4097", "12.5", "lots"):
        with pytest.raises(ValidationError, match="Max tokens"):
            validate_field("max_tokens", raw)


def test_stop_and_model_fields() -> None:
    assert validate_field("stop", "###, END ,,") == ("###", "END")
    assert validate_field("stop", ["a", "b"]) == ("a", "b")
    assert validate_field("model", " gpt-4o-mini ") == "gpt-4o-mini"
    with pytest.raises(ValidationError):
        validate_field("model", "  ")
    with pytest.raises(ValidationError, match="Unknown sampling parameter"):
        validate_field("frequency_penalty", "1")


def test_load_sampling_config_defaults() -> None:
    config = load_sampling_config({})
    assert config == SamplingConfig(
        temperature=0.9, top_p=0.9, max_tokens=1200, model="llama3-8b-8192"
    )
    assert config.top_k is None
    assert config.stop == ()


def test_load_sampling_config_defaults_each_field_independently(caplog) -> None:
    env = {
        "LLM_TEMPERATURE": "0",
        "LLM_TOP_P": "abc",
        "LLM_MAX_TOKENS": "0",
        "LLM_TOP_K": "64",
        "LLM_MODEL": "gpt-4o-mini",
        "LLM_STOP": "###,END",
    }
    with caplog.at_level(logging.WARNING):
        config = load_sampling_config(env)
    assert config.temperature == 0.0
    assert config.top_p == 0.9
    assert config.max_tokens == 1200
    assert config.top_k == 64
    assert config.model == "gpt-4o-mini"
    assert config.stop == ("###", "END")
    assert "top_p" in caplog.text
    assert "max_tokens" in caplog.text


def test_environment_overrides_config_base() -> None:
    config = load_sampling_config(
        {"LLM_TEMPERATURE": "1.1"},
        base={"temperature": 0.2, "max_tokens": 300, "seed": 7},
    )
    assert config.temperature == 1.1
    assert config.max_tokens == 300


def test_derive_adaptive_structured_caps() -> None:
    base = SamplingConfig(temperature=1.8, top_p=0.95, top_k=200)
    derived = derive_adaptive(base, TaskShape(structured=True))
    assert derived.temperature == 0.3
    assert derived.top_p == 0.8
    assert derived.top_k == 40
    assert derived.max_tokens == base.max_tokens


def test_derive_adaptive_creative_floors() -> None:
    base = SamplingConfig(temperature=0.1, top_p=0.5, top_k=10)
    derived = derive_adaptive(base, TaskShape(creative=True))
    assert derived.temperature == 0.7
    assert derived.top_p == 0.85
    assert derived.top_k == 100


def test_derive_adaptive_never_moves_against_the_baseline() -> None:
    low = SamplingConfig(temperature=0.1, top_p=0.5)
    assert derive_adaptive(low, TaskShape(structured=True)).temperature == 0.1
    high = SamplingConfig(temperature=1.8, top_p=0.99)
    assert derive_adaptive(high, TaskShape(creative=True)).temperature == 1.8


def test_structured_takes_precedence_over_creative() -> None:
    base = SamplingConfig(temperature=1.0)
    derived = derive_adaptive(base, TaskShape(creative=True, structured=True))
    assert derived.temperature == 0.3


def test_derive_adaptive_plain_is_unchanged_and_keeps_missing_top_k() -> None:
    base = SamplingConfig(temperature=1.3, top_k=None)
    assert derive_adaptive(base, TaskShape()) == base
    assert derive_adaptive(base, TaskShape(structured=True)).top_k is None


@pytest.mark.parametrize(
    "shape",
    [TaskShape(), TaskShape(creative=True), TaskShape(structured=True)],
)
def test_derive_adaptive_is_idempotent(shape: TaskShape) -> None:
    base = SamplingConfig(temperature=1.2, top_p=0.6, top_k=500)
    once = derive_adaptive(base, shape)
    assert derive_adaptive(once, shape) == once


def test_store_update_is_atomic() -> None:
    store = SamplingConfigStore()
    before = store.snapshot()
    with pytest.raises(ValidationError):
        store.apply_update("temperature", "5")
    assert store.snapshot() == before
    old, new = store.apply_update("temperature", "1.2")
    assert (old, new) == (0.9, 1.2)
    assert before.temperature == 0.9


def test_config_commands() -> None:
    store = SamplingConfigStore()
    assert is_config_command("/config show")
    assert is_config_command("/SET temp 1")
    assert not is_config_command("configure my router")

    shown = execute_config_command(store, "/config show")
    assert "Temperature: 0.9" in shown
    assert "Adaptive Sampling: Enabled" in shown
    assert "Current Configuration" in execute_config_command(store, "/set status")

    message = execute_config_command(store, "/config topp 0.5")
    assert message == "Updated top_p: 0.9 → 0.5"
    execute_config_command(store, "/set temp 1.4")
    execute_config_command(store, "/config tokens 800")
    execute_config_command(store, "/config topk 20")
    execute_config_command(store, "/config stop ###, THE END")
    snapshot = store.snapshot()
    assert snapshot.top_p == 0.5
    assert snapshot.temperature == 1.4
    assert snapshot.max_tokens == 800
    assert snapshot.top_k == 20
    assert snapshot.stop == ("###", "THE END")


@pytest.mark.parametrize(
    "command",
    [
        "/config",
        "/config temperature",
        "/config verbosity 3",
        "/config temperature 3",
        "/config temperature 1 2",
    ],
)
def test_bad_config_commands_leave_store_untouched(command: str) -> None:
    store = SamplingConfigStore()
    before = store.snapshot()
    with pytest.raises(ValidationError):
        execute_config_command(store, command)
    assert store.snapshot() == before


def test_build_settings_resolves_paths(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "llm:\n"
        "  provider: openai\n"
        "  base_url: http://localhost:8000/v1\n"
        "  api_key_env: LOCAL_KEY\n"
        "  organization: research\n"
        "sampling:\n"
        "  temperature: 0.4\n"
        "  top_k: 30\n"
        "prompts:\n"
        "  override_dirs: prompts/custom\n"
        "  max_prompt_chars: 500\n"
        "logging:\n"
        "  level: debug\n"
        "  file: logs/run.log\n"
    )
    config = load_config_file(config_path)
    settings = build_settings(config, config_root=tmp_path, env={})
    assert settings.sampling.temperature == 0.4
    assert settings.sampling.top_k == 30
    assert settings.prompts.override_dirs == (
        (tmp_path / "prompts/custom").resolve(),
    )
    assert settings.prompts.max_prompt_chars == 500
    assert settings.logging.level == "DEBUG"
    assert settings.logging.log_file == (tmp_path / "logs/run.log").resolve()
    provider_cfg = settings.llm.provider_config("gpt-4o-mini")
    assert provider_cfg == {
        "provider": "openai",
        "model": "gpt-4o-mini",
        "base_url": "http://localhost:8000/v1",
        "api_key_env": "LOCAL_KEY",
        "organization": "research",
    }


def test_load_config_file_missing(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config_file(tmp_path / "absent.yaml")
