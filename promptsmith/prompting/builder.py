"""Task-aware prompt construction."""

from __future__ import annotations

import json

from typing import Any, Dict, Mapping, Optional, Tuple

from promptsmith.classifier import TaskShape, strip_structured_marker
from promptsmith.prompting.manager import PromptManager
from promptsmith.prompting.schemas import (
    GENERAL_SCHEMA,
    GENERAL_SCHEMA_NAME,
    GENERAL_TASKS,
    STORY_SCHEMA,
    STORY_SCHEMA_NAME,
)
from promptsmith.prompting.types import PromptBundle

STORY_WORD_RANGE = "350–600"

STRICT_JSON_SYSTEM = (
    "You are an assistant that outputs STRICT JSON only. No prose. "
    "Validate against the provided JSON Schema. Do not include any keys "
    "not present in the schema. "
)
STORY_JSON_SYSTEM = STRICT_JSON_SYSTEM + (
    "For text fields, provide concise and coherent content. "
    "Do NOT include markdown or code fences."
)
GENERAL_JSON_SYSTEM = STRICT_JSON_SYSTEM + (
    "For text fields, be concise and helpful. "
    "Do NOT include markdown or code fences."
)
STORY_TEXT_SYSTEM = (
    "You are an award-winning fiction writer. Output ONLY the final "
    "narrative text. No outlines, no analysis, no bullets, no headings."
)
CONCISE_SYSTEM = (
    "You are a concise, helpful assistant. Provide the answer directly. "
    "Include only minimal reasoning strictly needed. "
    "Do NOT reveal chain-of-thought."
)

# (structured, creative) -> template name
DEFAULT_TEMPLATE_MAP: Dict[Tuple[bool, bool], str] = {
    (True, True): "story_json.j2",
    (False, True): "story_text.j2",
    (True, False): "general_json.j2",
}


class PromptBuilder:
    """Turns a raw prompt and its task shape into a ``PromptBundle``.

    Creative and structured prompts are rendered from Jinja templates; a
    plain request is passed through verbatim under a concise system role.
    """

    def __init__(
        self,
        prompt_manager: Optional[PromptManager] = None,
        *,
        template_map: Optional[Mapping[Tuple[bool, bool], str]] = None,
    ) -> None:
        self._prompt_manager = prompt_manager or PromptManager()
        self._template_map = dict(DEFAULT_TEMPLATE_MAP)
        if template_map:
            self._template_map.update(template_map)

    @property
    def prompt_manager(self) -> PromptManager:
        return self._prompt_manager

    def build(self, raw_prompt: str, shape: TaskShape) -> PromptBundle:
        request = strip_structured_marker(raw_prompt)

        if shape.structured and shape.creative:
            return PromptBundle(
                system_message=STORY_JSON_SYSTEM,
                user_message=self._render(
                    (True, True),
                    request=request,
                    schema_name=STORY_SCHEMA_NAME,
                    schema_json=_serialize_schema(STORY_SCHEMA),
                    word_range=STORY_WORD_RANGE,
                ),
                schema_name=STORY_SCHEMA_NAME,
                json_schema=STORY_SCHEMA,
            )

        if shape.creative:
            return PromptBundle(
                system_message=STORY_TEXT_SYSTEM,
                user_message=self._render(
                    (False, True),
                    request=request,
                    word_range=STORY_WORD_RANGE,
                ),
            )

        if shape.structured:
            return PromptBundle(
                system_message=GENERAL_JSON_SYSTEM,
                user_message=self._render(
                    (True, False),
                    request=request,
                    schema_name=GENERAL_SCHEMA_NAME,
                    schema_json=_serialize_schema(GENERAL_SCHEMA),
                    tasks=[task for task in GENERAL_TASKS if task != "story"],
                ),
                schema_name=GENERAL_SCHEMA_NAME,
                json_schema=GENERAL_SCHEMA,
            )

        return PromptBundle(
            system_message=CONCISE_SYSTEM, user_message=request
        )

    def _render(self, key: Tuple[bool, bool], **context: Any) -> str:
        return self._prompt_manager.render(self._template_map[key], **context)


def _serialize_schema(schema: Mapping[str, Any]) -> str:
    return json.dumps(schema, indent=2, ensure_ascii=False)
