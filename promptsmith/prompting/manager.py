# Copyright (c) Meta Platforms, Inc. and affiliates.
# Modifications copyright (c) 2025 Logan Martel.
# Adapted from https://github.com/meta-pytorch/KernelAgent (Apache-2.0).

"""Jinja2 loader for the framing templates used by the format adapter."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateNotFound,
)

DEFAULT_TEMPLATES_DIR = Path(__file__).parent / "templates"


def _require_dir(path: Path, what: str) -> Path:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{what} not found: {path}")
    return path


class PromptManager:
    """Renders named framing templates.

    Override directories are searched before the bundled templates, so a
    deployment can replace e.g. ``task_format.j2`` without forking the
    package. Undefined template variables raise instead of rendering empty.
    """

    def __init__(
        self,
        templates_dir: Optional[Path] = None,
        *,
        extra_dirs: Optional[Iterable[Path]] = None,
    ) -> None:
        bundled = _require_dir(
            templates_dir or DEFAULT_TEMPLATES_DIR, "Templates directory"
        )
        overrides = [
            _require_dir(d, "Prompt override directory") for d in extra_dirs or ()
        ]
        self._search_paths = (*overrides, bundled)
        self._env = Environment(
            loader=ChoiceLoader([FileSystemLoader(str(p)) for p in self._search_paths]),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    @property
    def search_paths(self) -> tuple[Path, ...]:
        return self._search_paths

    def list_templates(self) -> list[str]:
        return sorted(set(self._env.list_templates()))

    def render(self, template_name: str, **context) -> str:
        """Render ``template_name`` with surrounding whitespace stripped."""

        try:
            template = self._env.get_template(template_name)
        except TemplateNotFound as exc:
            searched = ", ".join(str(p) for p in self._search_paths)
            raise FileNotFoundError(
                f"Template '{template_name}' not found in {searched}"
            ) from exc
        return template.render(**context).strip()
