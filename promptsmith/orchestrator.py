"""Request orchestrator that wires classification, prompting and recovery."""

from __future__ import annotations

import json
import logging
import time

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from promptsmith.classifier import TaskShape, classify, strip_structured_marker
from promptsmith.configuration import (
    DEFAULT_MAX_PROMPT_CHARS,
    SamplingConfig,
    SamplingConfigStore,
    derive_adaptive,
)
from promptsmith.exceptions import (
    ParseError,
    PromptsmithError,
    ProviderError,
    ValidationError,
)
from promptsmith.history import ConversationHistory
from promptsmith.llm.providers import LLMProvider
from promptsmith.llm.utils import total_tokens
from promptsmith.logging import redact
from promptsmith.prompting.builder import PromptBuilder
from promptsmith.recovery import recover_structured_output

LOGGER = logging.getLogger(__name__)

UNKNOWN_TOKENS = "unknown"


@dataclass(frozen=True)
class RequestResult:
    """Uniform outcome of a single orchestrated request."""

    success: bool
    structured: bool = False
    data: Union[str, Dict[str, Any], None] = None
    response_time_ms: Optional[float] = None
    tokens_used: Union[int, str] = UNKNOWN_TOKENS
    sampling: Optional[SamplingConfig] = None
    shape: Optional[TaskShape] = None
    error_message: Optional[str] = None
    error_kind: Optional[str] = None

    @classmethod
    def failure(cls, message: str, kind: str) -> "RequestResult":
        return cls(success=False, error_message=message, error_kind=kind)

    def to_dict(self) -> Dict[str, Any]:
        if not self.success:
            return {
                "success": False,
                "error": self.error_message,
                "error_kind": self.error_kind,
            }
        return {
            "success": True,
            "structured": self.structured,
            "data": self.data,
            "response_time_ms": self.response_time_ms,
            "tokens_used": self.tokens_used,
            "sampling": self.sampling.to_dict() if self.sampling else None,
        }


def validate_prompt(
    text: Optional[str], max_chars: int = DEFAULT_MAX_PROMPT_CHARS
) -> str:
    if not text or not text.strip():
        raise ValidationError("Prompt cannot be empty")
    if len(text) > max_chars:
        raise ValidationError(
            f"Prompt is too long (max {max_chars} characters)"
        )
    return text.strip()


def _error_kind(exc: BaseException) -> str:
    if isinstance(exc, ParseError):
        return "parse"
    if isinstance(exc, ProviderError):
        return "provider"
    if isinstance(exc, ValidationError):
        return "validation"
    return "internal"


class RequestOrchestrator:
    """Single-session controller for classify, prompt, call and recover.

    The conversation history and the sampling store are owned by the
    instance, so independent sessions never share state unless the caller
    passes the same objects in.
    """

    def __init__(
        self,
        provider: LLMProvider,
        store: Optional[SamplingConfigStore] = None,
        *,
        history: Optional[ConversationHistory] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._provider = provider
        self._store = store if store is not None else SamplingConfigStore()
        self._history = (
            history if history is not None else ConversationHistory()
        )
        self._prompt_builder = (
            prompt_builder if prompt_builder is not None else PromptBuilder()
        )
        self._clock = clock

    @property
    def store(self) -> SamplingConfigStore:
        return self._store

    @property
    def history(self) -> List[Dict[str, str]]:
        return self._history.messages()

    def handle(self, raw_prompt: str) -> RequestResult:
        """Run one request; never raises, failures come back as results."""

        try:
            return self._handle(raw_prompt)
        except PromptsmithError as exc:
            kind = _error_kind(exc)
            LOGGER.warning("Request failed (%s): %s", kind, redact(str(exc)))
            return RequestResult.failure(str(exc), kind)
        except Exception as exc:  # pragma: no cover - unexpected failure
            LOGGER.exception("Unexpected orchestrator failure")
            return RequestResult.failure(str(exc), "internal")

    def _handle(self, raw_prompt: str) -> RequestResult:
        shape = classify(raw_prompt)
        clean_prompt = (
            strip_structured_marker(raw_prompt)
            if shape.structured
            else raw_prompt
        )
        bundle = self._prompt_builder.build(clean_prompt, shape)
        messages = [{"role": "system", "content": bundle.system_message}]
        messages.extend(self._history.messages())
        messages.append({"role": "user", "content": bundle.user_message})

        sampling = derive_adaptive(self._store.snapshot(), shape)
        LOGGER.info(
            "Dispatching request (creative=%s, structured=%s, schema=%s) "
            "with %s",
            shape.creative,
            shape.structured,
            bundle.schema_name,
            sampling.to_dict(),
        )

        started = self._clock()
        try:
            response = self._provider.complete(
                messages, sampling=sampling, json_mode=shape.structured
            )
        except Exception as exc:
            provider_name = getattr(self._provider, "name", "provider")
            raise ProviderError(
                f"LLM provider '{provider_name}' failed: {exc}"
            ) from exc
        elapsed_ms = round((self._clock() - started) * 1000, 2)

        if response.truncated:
            LOGGER.warning(
                "Reply was cut off at max_tokens=%s", sampling.max_tokens
            )
        reply = (response.content or "").strip()
        LOGGER.debug("Raw reply: %s", redact(reply[:500]))

        data: Union[str, Dict[str, Any]]
        if shape.structured:
            data = recover_structured_output(reply, bundle.required_keys)
            assistant_entry = json.dumps(
                data, ensure_ascii=False, separators=(",", ":")
            )
        else:
            if not reply:
                raise ProviderError("LLM provider returned no content")
            data = reply
            assistant_entry = reply

        self._history.append_exchange(clean_prompt, assistant_entry)

        tokens = total_tokens(response.usage)
        LOGGER.info(
            "Request completed in %.2fms (tokens=%s)",
            elapsed_ms,
            tokens if tokens is not None else UNKNOWN_TOKENS,
        )
        return RequestResult(
            success=True,
            structured=shape.structured,
            data=data,
            response_time_ms=elapsed_ms,
            tokens_used=tokens if tokens is not None else UNKNOWN_TOKENS,
            sampling=sampling,
            shape=shape,
        )


__all__ = [
    "RequestOrchestrator",
    "RequestResult",
    "validate_prompt",
]
