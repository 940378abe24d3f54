"""JSON schemas embedded in structured-output prompts.

Only the ``required`` list is enforced locally (see ``promptsmith.recovery``);
the rest of each schema is shown to the model as a contract.
"""

from __future__ import annotations

from typing import Any, Dict

GENERAL_SCHEMA_NAME = "general_schema"
STORY_SCHEMA_NAME = "story_schema"

GENERAL_TASKS = ("qa", "summarize", "extract", "classify", "unknown", "story")

GENERAL_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "task": {"type": "string", "enum": list(GENERAL_TASKS)},
        "answer": {
            "type": "object",
            "properties": {"text": {"type": "string"}},
            "required": ["text"],
            "additionalProperties": False,
        },
        "key_points": {"type": "array", "items": {"type": "string"}},
        "entities": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "type": {"type": "string"},
                    "text": {"type": "string"},
                },
                "required": ["type", "text"],
                "additionalProperties": False,
            },
        },
        "confidence": {"type": "number", "minimum": 0, "maximum": 1},
        "citations": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["task", "answer"],
    "additionalProperties": False,
}

STORY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "task": {"type": "string", "enum": ["story"]},
        "title": {"type": "string"},
        "genre": {"type": "string"},
        "themes": {"type": "array", "items": {"type": "string"}},
        "synopsis": {"type": "string"},
        "word_count": {"type": "number"},
        "story": {"type": "string"},
    },
    "required": [
        "task",
        "title",
        "genre",
        "themes",
        "synopsis",
        "word_count",
        "story",
    ],
    "additionalProperties": False,
}
