"""Custom exceptions for the request orchestrator."""

from __future__ import annotations

from typing import Iterable, Optional, Tuple


class PromptsmithError(RuntimeError):
    """Base exception for orchestration failures."""


class ValidationError(PromptsmithError, ValueError):
    """Raised when operator input (a prompt or a sampling value) is invalid."""


class ProviderError(PromptsmithError):
    """Raised when the completion provider fails or returns no content."""


class ParseError(PromptsmithError):
    """Raised when structured output cannot be recovered from a reply."""

    def __init__(
        self,
        message: str,
        *,
        reason: str = "malformed",
        missing_keys: Optional[Iterable[str]] = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.missing_keys: Tuple[str, ...] = tuple(missing_keys or ())
