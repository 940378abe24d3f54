"""Expose the project root on sys.path and shared test doubles."""

from __future__ import annotations

import sys

from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from promptsmith.configuration import SamplingConfig, SamplingConfigStore
from promptsmith.llm.providers import LLMResponse
from promptsmith.orchestrator import RequestOrchestrator

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


class ScriptedProvider:
    """Replays canned replies and records every call it receives."""

    name = "scripted"

    def __init__(
        self,
        replies: Optional[List[Any]] = None,
        usage: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.replies = list(replies or [])
        self.usage = usage
        self.calls: List[Dict[str, Any]] = []

    def complete(
        self,
        messages: List[Dict[str, str]],
        *,
        sampling: SamplingConfig,
        json_mode: bool = False,
    ) -> LLMResponse:
        self.calls.append(
            {
                "messages": [dict(message) for message in messages],
                "sampling": sampling,
                "json_mode": json_mode,
            }
        )
        reply = self.replies.pop(0) if self.replies else ""
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(
            content=reply,
            model=sampling.model,
            provider=self.name,
            usage=self.usage,
        )


@pytest.fixture(autouse=True)
def _clear_sampling_env(monkeypatch):
    for var in (
        "LLM_TEMPERATURE",
        "LLM_TOP_P",
        "LLM_TOP_K",
        "LLM_MAX_TOKENS",
        "LLM_MODEL",
        "LLM_STOP",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture()
def scripted_provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture()
def orchestrator(scripted_provider: ScriptedProvider) -> RequestOrchestrator:
    """Return an orchestrator wired to the scripted provider."""

    return RequestOrchestrator(scripted_provider, SamplingConfigStore())
