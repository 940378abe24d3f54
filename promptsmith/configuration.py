"""Typed helpers for sampling parameters and promptsmith configuration."""

from __future__ import annotations

import logging
import math
import os
import re

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import yaml

from promptsmith.classifier import TaskShape
from promptsmith.exceptions import ValidationError

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("configs/default_config.yaml")
DEFAULT_MAX_PROMPT_CHARS = 2000

STRUCTURED_TEMPERATURE_CAP = 0.3
STRUCTURED_TOP_P_CAP = 0.8
STRUCTURED_TOP_K_CAP = 40
CREATIVE_TEMPERATURE_FLOOR = 0.7
CREATIVE_TOP_P_FLOOR = 0.85
CREATIVE_TOP_K_FLOOR = 100

ENV_OVERRIDES: Dict[str, str] = {
    "temperature": "LLM_TEMPERATURE",
    "top_p": "LLM_TOP_P",
    "top_k": "LLM_TOP_K",
    "max_tokens": "LLM_MAX_TOKENS",
    "model": "LLM_MODEL",
    "stop": "LLM_STOP",
}

PARAM_ALIASES: Dict[str, str] = {
    "temperature": "temperature",
    "temp": "temperature",
    "top_p": "top_p",
    "topp": "top_p",
    "top_k": "top_k",
    "topk": "top_k",
    "max_tokens": "max_tokens",
    "tokens": "max_tokens",
    "stop": "stop",
    "model": "model",
}

CONFIG_COMMAND_USAGE = (
    "Invalid config command. Use: /config show, /config top_p <value>, "
    "/config top_k <value>, /config temperature <value>, "
    "/config max_tokens <value>, /config stop <a,b,...>, "
    "/config model <name>"
)

_CONFIG_COMMAND_RE = re.compile(r"^/(?:config|set)\b", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class SamplingConfig:
    """Effective sampling parameters for a completion call."""

    temperature: float = 0.9
    top_p: float = 0.9
    max_tokens: int = 1200
    model: str = "llama3-8b-8192"
    top_k: Optional[int] = None
    stop: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "model": self.model,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "max_tokens": self.max_tokens,
        }
        if self.top_k is not None:
            data["top_k"] = self.top_k
        if self.stop:
            data["stop"] = list(self.stop)
        return data


DEFAULT_SAMPLING = SamplingConfig()


def _parse_float(raw_value: Any, message: str) -> float:
    if isinstance(raw_value, bool):
        raise ValidationError(message)
    try:
        value = float(str(raw_value).strip())
    except (TypeError, ValueError):
        raise ValidationError(message) from None
    if math.isnan(value) or math.isinf(value):
        raise ValidationError(message)
    return value


def _parse_int(raw_value: Any, message: str) -> int:
    if isinstance(raw_value, bool):
        raise ValidationError(message)
    if isinstance(raw_value, float):
        if not raw_value.is_integer():
            raise ValidationError(message)
        return int(raw_value)
    try:
        return int(str(raw_value).strip())
    except (TypeError, ValueError):
        raise ValidationError(message) from None


def _validate_temperature(raw_value: Any) -> float:
    message = "Temperature must be a number between 0 and 2"
    value = _parse_float(raw_value, message)
    if value < 0 or value > 2:
        raise ValidationError(message)
    return value


def _validate_top_p(raw_value: Any) -> float:
    message = "Top P must be a number between 0 (exclusive) and 1 (inclusive)"
    value = _parse_float(raw_value, message)
    if value <= 0 or value > 1:
        raise ValidationError(message)
    return value


def _validate_top_k(raw_value: Any) -> Optional[int]:
    if raw_value is None:
        return None
    message = "Top K must be an integer between 1 and 1000"
    value = _parse_int(raw_value, message)
    if value < 1 or value > 1000:
        raise ValidationError(message)
    return value


def _validate_max_tokens(raw_value: Any) -> int:
    message = "Max tokens must be an integer between 1 and 4096"
    value = _parse_int(raw_value, message)
    if value < 1 or value > 4096:
        raise ValidationError(message)
    return value


def _validate_model(raw_value: Any) -> str:
    if not isinstance(raw_value, str) or not raw_value.strip():
        raise ValidationError("Model must be a non-empty model identifier")
    return raw_value.strip()


def _validate_stop(raw_value: Any) -> Tuple[str, ...]:
    if raw_value is None:
        return ()
    if isinstance(raw_value, str):
        items: Sequence[Any] = raw_value.split(",")
    elif isinstance(raw_value, (list, tuple)):
        items = raw_value
    else:
        raise ValidationError(
            "Stop must be a comma-separated list of stop strings"
        )
    cleaned = []
    for item in items:
        if not isinstance(item, str):
            raise ValidationError(
                "Stop must be a comma-separated list of stop strings"
            )
        if item.strip():
            cleaned.append(item.strip())
    return tuple(cleaned)


_VALIDATORS = {
    "temperature": _validate_temperature,
    "top_p": _validate_top_p,
    "top_k": _validate_top_k,
    "max_tokens": _validate_max_tokens,
    "model": _validate_model,
    "stop": _validate_stop,
}


def validate_field(name: str, raw_value: Any) -> Any:
    """Parse and bounds-check a single sampling field."""

    validator = _VALIDATORS.get(name)
    if validator is None:
        known = ", ".join(sorted(_VALIDATORS))
        raise ValidationError(
            f"Unknown sampling parameter '{name}'. Known: {known}"
        )
    return validator(raw_value)


def load_sampling_config(
    env: Optional[Mapping[str, str]] = None,
    *,
    base: Optional[Mapping[str, Any]] = None,
) -> SamplingConfig:
    """Build the startup sampling config.

    ``base`` (typically the YAML ``sampling`` section) overrides the fixed
    defaults and ``env`` overrides both. Each field falls back on its own:
    an invalid override is logged and ignored.
    """

    environ = os.environ if env is None else env
    values: Dict[str, Any] = {
        name: getattr(DEFAULT_SAMPLING, name) for name in _VALIDATORS
    }
    layers = [("config", dict(base or {}))]
    layers.append(
        (
            "environment",
            {
                name: environ[var]
                for name, var in ENV_OVERRIDES.items()
                if environ.get(var) not in (None, "")
            },
        )
    )
    for source, overrides in layers:
        for name, raw_value in overrides.items():
            if name not in _VALIDATORS:
                LOGGER.warning(
                    "Ignoring unknown sampling parameter '%s' from %s",
                    name,
                    source,
                )
                continue
            try:
                values[name] = validate_field(name, raw_value)
            except ValidationError as exc:
                LOGGER.warning(
                    "Ignoring invalid %s override for %s (%r): %s",
                    source,
                    name,
                    raw_value,
                    exc,
                )
    return SamplingConfig(**values)


def derive_adaptive(base: SamplingConfig, shape: TaskShape) -> SamplingConfig:
    """Tighten sampling for structured tasks, loosen it for creative ones."""

    if shape.structured:
        return replace(
            base,
            temperature=min(base.temperature, STRUCTURED_TEMPERATURE_CAP),
            top_p=min(base.top_p, STRUCTURED_TOP_P_CAP),
            top_k=(
                min(base.top_k, STRUCTURED_TOP_K_CAP)
                if base.top_k is not None
                else None
            ),
        )
    if shape.creative:
        return replace(
            base,
            temperature=max(base.temperature, CREATIVE_TEMPERATURE_FLOOR),
            top_p=max(base.top_p, CREATIVE_TOP_P_FLOOR),
            top_k=(
                max(base.top_k, CREATIVE_TOP_K_FLOOR)
                if base.top_k is not None
                else None
            ),
        )
    return replace(base)


class SamplingConfigStore:
    """Holds the operator's current sampling baseline for a session."""

    def __init__(self, config: Optional[SamplingConfig] = None) -> None:
        self._config = config or SamplingConfig()

    def snapshot(self) -> SamplingConfig:
        return self._config

    def apply_update(self, name: str, value: Any) -> Tuple[Any, Any]:
        """Validate ``value`` and set ``name``; returns ``(old, new)``."""

        validated = validate_field(name, value)
        old = getattr(self._config, name)
        self._config = replace(self._config, **{name: validated})
        LOGGER.info("Sampling parameter %s updated: %r -> %r", name, old, validated)
        return old, validated

    def describe(self) -> str:
        config = self._config
        lines = [
            "Current Configuration:",
            f"Temperature: {config.temperature}",
            f"Top P: {config.top_p}",
            f"Top K: {config.top_k if config.top_k is not None else 'unset'}",
            f"Max Tokens: {config.max_tokens}",
            f"Model: {config.model}",
            f"Stop: {', '.join(config.stop) if config.stop else 'none'}",
            "",
            "Adaptive Sampling: Enabled (parameters adjust based on task type)",
            "- Structured tasks: Lower temperature/top_p for deterministic results",
            "- Creative tasks: Higher temperature/top_p for diverse outputs",
        ]
        return "\n".join(lines)


def is_config_command(text: str) -> bool:
    return bool(text) and _CONFIG_COMMAND_RE.match(text.strip()) is not None


def execute_config_command(store: SamplingConfigStore, text: str) -> str:
    """Run a ``/config`` or ``/set`` command against ``store``.

    Returns the message to show the operator. Raises ``ValidationError``
    for unknown parameters or bad values; the store is left untouched.
    """

    parts = text.strip().split()
    if not parts or not is_config_command(parts[0]):
        raise ValidationError(CONFIG_COMMAND_USAGE)
    if len(parts) == 2 and parts[1].lower() in {"show", "status"}:
        return store.describe()
    if len(parts) < 3:
        raise ValidationError(CONFIG_COMMAND_USAGE)

    name = PARAM_ALIASES.get(parts[1].lower())
    if name is None:
        raise ValidationError(
            f"Unknown parameter '{parts[1]}'. {CONFIG_COMMAND_USAGE}"
        )
    raw_value = " ".join(parts[2:])
    if name != "stop" and len(parts) > 3:
        raise ValidationError(CONFIG_COMMAND_USAGE)
    old, new = store.apply_update(name, raw_value)
    return f"Updated {name}: {_display(old)} → {_display(new)}"


def _display(value: Any) -> str:
    if isinstance(value, tuple):
        return ",".join(value) if value else "none"
    if value is None:
        return "unset"
    return str(value)


@dataclass(frozen=True)
class LLMSettings:
    provider: Optional[str] = None
    base_url: Optional[str] = None
    api_key_env: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    def provider_config(self, model: Optional[str] = None) -> Dict[str, Any]:
        config = dict(self.raw)
        config["provider"] = self.provider
        if model:
            config["model"] = model
        if self.base_url:
            config["base_url"] = self.base_url
        if self.api_key_env:
            config["api_key_env"] = self.api_key_env
        return config


@dataclass(frozen=True)
class PromptSettings:
    override_dirs: Tuple[Path, ...] = field(default_factory=tuple)
    max_prompt_chars: int = DEFAULT_MAX_PROMPT_CHARS


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"
    log_file: Optional[Path] = None


@dataclass(frozen=True)
class Settings:
    llm: LLMSettings
    sampling: SamplingConfig
    prompts: PromptSettings
    logging: LoggingSettings


def _ensure_path(value: str | Path, *, config_root: Path) -> Path:
    path = Path(value)
    if not path.is_absolute():
        path = (config_root / path).resolve()
    return path


def load_config_file(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(f"Config file '{config_path}' not found.")
    return yaml.safe_load(config_path.read_text()) or {}


def build_settings(
    config: Dict[str, Any],
    *,
    config_root: Path,
    env: Optional[Mapping[str, str]] = None,
) -> Settings:
    llm_cfg = dict(config.get("llm") or {})
    llm_settings = LLMSettings(
        provider=llm_cfg.pop("provider", None),
        base_url=llm_cfg.pop("base_url", None),
        api_key_env=llm_cfg.pop("api_key_env", None),
        raw=llm_cfg,
    )

    sampling = load_sampling_config(env, base=config.get("sampling") or {})

    prompts_cfg = config.get("prompts") or {}
    override_value = prompts_cfg.get("override_dirs") or []
    if isinstance(override_value, (str, Path)):
        override_value = [override_value]
    prompt_settings = PromptSettings(
        override_dirs=tuple(
            _ensure_path(item, config_root=config_root)
            for item in override_value
        ),
        max_prompt_chars=int(
            prompts_cfg.get("max_prompt_chars", DEFAULT_MAX_PROMPT_CHARS)
        ),
    )

    logging_cfg = config.get("logging") or {}
    log_file = logging_cfg.get("file")
    logging_settings = LoggingSettings(
        level=str(logging_cfg.get("level", "INFO")).upper(),
        log_file=(
            _ensure_path(log_file, config_root=config_root)
            if log_file
            else None
        ),
    )

    return Settings(
        llm=llm_settings,
        sampling=sampling,
        prompts=prompt_settings,
        logging=logging_settings,
    )


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_MAX_PROMPT_CHARS",
    "DEFAULT_SAMPLING",
    "LLMSettings",
    "LoggingSettings",
    "PromptSettings",
    "SamplingConfig",
    "SamplingConfigStore",
    "Settings",
    "build_settings",
    "derive_adaptive",
    "execute_config_command",
    "is_config_command",
    "load_config_file",
    "load_sampling_config",
    "validate_field",
]
