"""Shared dataclasses for prompt construction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Literal, Mapping, Optional

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """Single chat message exchanged with a model."""

    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True, slots=True)
class PromptBundle:
    """System/user message pair built for one request."""

    system_message: str
    user_message: str
    schema_name: Optional[str] = None
    json_schema: Optional[Mapping[str, Any]] = None

    @property
    def required_keys(self) -> tuple[str, ...]:
        if not self.json_schema:
            return ()
        return tuple(self.json_schema.get("required") or ())
