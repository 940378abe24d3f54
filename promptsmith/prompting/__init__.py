"""Prompt construction: templates, schemas and message bundles."""

from promptsmith.prompting.builder import PromptBuilder
from promptsmith.prompting.manager import PromptManager
from promptsmith.prompting.schemas import (
    GENERAL_SCHEMA,
    GENERAL_SCHEMA_NAME,
    STORY_SCHEMA,
    STORY_SCHEMA_NAME,
)
from promptsmith.prompting.types import ChatMessage, PromptBundle

__all__ = [
    "ChatMessage",
    "GENERAL_SCHEMA",
    "GENERAL_SCHEMA_NAME",
    "PromptBuilder",
    "PromptBundle",
    "PromptManager",
    "STORY_SCHEMA",
    "STORY_SCHEMA_NAME",
]
