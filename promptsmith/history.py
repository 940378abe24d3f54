"""Conversation context shared across the requests of one session."""

from __future__ import annotations

from typing import Dict, Iterator, List

from promptsmith.prompting.types import ChatMessage


class ConversationHistory:
    """Append-only list of user/assistant exchanges.

    Entries are only ever added in pairs, so the history always has an even
    length and alternates ``user``/``assistant`` starting with ``user``.
    """

    def __init__(self) -> None:
        self._messages: List[ChatMessage] = []

    def append_exchange(self, user_content: str, assistant_content: str) -> None:
        self._messages.extend(
            (
                ChatMessage(role="user", content=user_content),
                ChatMessage(role="assistant", content=assistant_content),
            )
        )

    def messages(self) -> List[Dict[str, str]]:
        return [message.to_dict() for message in self._messages]

    @property
    def exchanges(self) -> int:
        return len(self._messages) // 2

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(tuple(self._messages))


__all__ = ["ConversationHistory"]
