"""Recover a JSON object from model output that may carry surrounding noise."""

from __future__ import annotations

import json

from typing import Any, Dict, Iterable

from promptsmith.exceptions import ParseError


def extract_json_object(text: str) -> Dict[str, Any]:
    """Parse the first brace-balanced ``{...}`` block found in ``text``.

    Braces are counted naively, including any that appear inside string
    values.
    """

    start = text.find("{")
    if start == -1:
        raise ParseError("No JSON object found in response", reason="no_object")

    depth = 0
    for index in range(start, len(text)):
        char = text[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        if depth == 0:
            candidate = text[start : index + 1]
            try:
                parsed = json.loads(candidate)
            except json.JSONDecodeError as exc:
                raise ParseError(
                    f"Malformed JSON in response: {exc}", reason="malformed"
                ) from exc
            return parsed
    raise ParseError(
        "Malformed JSON in response: unbalanced braces", reason="malformed"
    )


def parse_structured_output(raw_text: str) -> Dict[str, Any]:
    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict):
        return parsed
    return extract_json_object(raw_text or "")


def recover_structured_output(
    raw_text: str, required_keys: Iterable[str] = ()
) -> Dict[str, Any]:
    """Return the JSON object in ``raw_text`` once its required keys check out."""

    parsed = parse_structured_output(raw_text)
    missing = [key for key in required_keys if key not in parsed]
    if missing:
        raise ParseError(
            "Structured output missing required keys: " + ", ".join(missing),
            reason="missing_keys",
            missing_keys=missing,
        )
    return parsed


__all__ = [
    "extract_json_object",
    "parse_structured_output",
    "recover_structured_output",
]
