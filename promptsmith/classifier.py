"""Task classification by pattern matching against curated keyword tables."""

from __future__ import annotations

import re

from dataclasses import dataclass
from typing import Pattern, Tuple

STRUCTURED_MARKER = "/json"

CREATIVE_KEYWORDS: Tuple[str, ...] = (
    "story",
    "short story",
    "narrative",
    "fiction",
    "tale",
    "fable",
    "bedtime",
    "poem",
    "poetry",
    "novella",
    "scene",
    "screenplay",
    "creative writing",
)

# Raw regex alternatives matched alongside the keywords; "write the history
# of Rome" counts as creative through the "history" suffix.
CREATIVE_PATTERNS: Tuple[str, ...] = (r"write.*story",)

STRUCTURED_PHRASES: Tuple[str, ...] = (
    "as json",
    "structured output",
)


def _phrase_pattern(
    phrases: Tuple[str, ...], patterns: Tuple[str, ...] = ()
) -> Pattern[str]:
    alternatives = [
        r"\s+".join(re.escape(word) for word in phrase.split())
        for phrase in phrases
    ]
    alternatives.extend(patterns)
    return re.compile(
        r"\b(?:" + "|".join(alternatives) + r")\b", re.IGNORECASE
    )


_CREATIVE_RE = _phrase_pattern(CREATIVE_KEYWORDS, CREATIVE_PATTERNS)
_STRUCTURED_PHRASE_RE = _phrase_pattern(STRUCTURED_PHRASES)
_MARKER_RE = re.compile(
    r"^\s*" + re.escape(STRUCTURED_MARKER) + r"\b\s*", re.IGNORECASE
)


@dataclass(frozen=True, slots=True)
class TaskShape:
    """Per-request classification; derived from the prompt, never stored."""

    creative: bool = False
    structured: bool = False


def is_creative_request(text: str) -> bool:
    return bool(text) and _CREATIVE_RE.search(text) is not None


def has_structured_marker(text: str) -> bool:
    return bool(text) and _MARKER_RE.match(text) is not None


def wants_structured_output(text: str) -> bool:
    if not text:
        return False
    return (
        has_structured_marker(text)
        or _STRUCTURED_PHRASE_RE.search(text) is not None
    )


def classify(text: str) -> TaskShape:
    """Return the task shape of ``text``.

    Both flags are independent: a prompt such as ``/json write a fable``
    is creative and structured at the same time.
    """

    return TaskShape(
        creative=is_creative_request(text),
        structured=wants_structured_output(text),
    )


def strip_structured_marker(text: str) -> str:
    """Remove a leading ``/json`` marker (and the whitespace after it)."""

    if not text:
        return ""
    return _MARKER_RE.sub("", text, count=1)


__all__ = [
    "CREATIVE_KEYWORDS",
    "CREATIVE_PATTERNS",
    "STRUCTURED_MARKER",
    "STRUCTURED_PHRASES",
    "TaskShape",
    "classify",
    "has_structured_marker",
    "is_creative_request",
    "strip_structured_marker",
    "wants_structured_output",
]
