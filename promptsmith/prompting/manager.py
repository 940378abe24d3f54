# Copyright (c) Meta Platforms, Inc. and affiliates.
# Modifications copyright (c) 2025 Logan Martel.
# Adapted from https://github.com/meta-pytorch/KernelAgent (Apache-2.0).

"""Jinja2 template lookup for task prompts."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Sequence

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateNotFound,
    UndefinedError,
)

DEFAULT_TEMPLATES_DIR = Path(__file__).parent / "templates"


class PromptManager:
    """Renders task templates, checking override directories first.

    A deployment can replace ``story_text.j2`` by dropping a file with the
    same name into one of ``extra_dirs``. Templates are rendered with
    ``StrictUndefined`` so a typo in a variable name fails loudly instead of
    sending the model an empty slot.
    """

    def __init__(
        self,
        templates_dir: Optional[Path] = None,
        *,
        extra_dirs: Optional[Sequence[Path]] = None,
    ) -> None:
        base_dir = Path(templates_dir or DEFAULT_TEMPLATES_DIR)
        if not base_dir.is_dir():
            raise FileNotFoundError(f"Templates directory not found: {base_dir}")

        overrides = [Path(path) for path in extra_dirs or ()]
        missing = [path for path in overrides if not path.is_dir()]
        if missing:
            raise FileNotFoundError(
                f"Prompt override directory not found: {missing[0]}"
            )

        self._search_paths = (*overrides, base_dir)
        self._env = Environment(
            loader=ChoiceLoader(
                [FileSystemLoader(str(path)) for path in self._search_paths]
            ),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    @property
    def search_paths(self) -> tuple[Path, ...]:
        return self._search_paths

    def list_templates(self) -> list[str]:
        return sorted(set(self._env.list_templates()))

    def render(self, template_name: str, **context: Any) -> str:
        try:
            template = self._env.get_template(template_name)
        except TemplateNotFound as exc:
            searched = ", ".join(str(path) for path in self._search_paths)
            raise FileNotFoundError(
                f"Template '{template_name}' not found (searched: {searched})"
            ) from exc
        try:
            return template.render(**context)
        except UndefinedError as exc:
            raise ValueError(
                f"Template '{template_name}' needs a value that was not "
                f"provided: {exc}"
            ) from exc
