"""Variable substitution for ``{{name}}`` placeholders."""

from __future__ import annotations

import json
import logging
import re

from typing import Any, Callable, Dict, List, Mapping, Optional

from promptsmith.exceptions import MissingRequiredVariable
from promptsmith.prompting.types import RenderContext, Variable

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")

# Token names that resolve from RenderContext fields before variables.
CONTEXT_KEYS: Dict[str, Callable[[RenderContext], Optional[str]]] = {
    "provider": lambda ctx: ctx.provider,
    "taskType": lambda ctx: ctx.task_type,
    "task_type": lambda ctx: ctx.task_type,
    "domainKnowledge": lambda ctx: ctx.domain_knowledge,
    "domain_knowledge": lambda ctx: ctx.domain_knowledge,
}

_LOGGER = logging.getLogger(__name__)


def placeholders(template: str) -> List[str]:
    """Return distinct placeholder names in order of first appearance."""

    seen: Dict[str, None] = {}
    for match in PLACEHOLDER_PATTERN.finditer(template or ""):
        seen.setdefault(match.group(1), None)
    return list(seen)


def value_to_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, Mapping):
        return json.dumps(dict(value), ensure_ascii=False)
    if isinstance(value, (list, tuple, set, frozenset)):
        return ", ".join(value_to_string(item) for item in value)
    return str(value)


class VariableSubstitutionEngine:
    """Replaces placeholders in a single pass; values are never re-scanned."""

    def substitute(
        self,
        template: str,
        variables: Mapping[str, Variable],
        context: Optional[RenderContext] = None,
    ) -> str:
        if not template:
            return template or ""
        ctx = context or RenderContext()
        missing: List[str] = []
        unknown: List[str] = []

        def _replace(match: re.Match[str]) -> str:
            name = match.group(1)
            override = CONTEXT_KEYS.get(name)
            if override is not None:
                value = override(ctx)
                if value is not None:
                    return value_to_string(value)
            variable = variables.get(name)
            if variable is None:
                unknown.append(name)
                return match.group(0)
            value = ctx.variables.get(name)
            if value is None:
                value = variable.default_value
            if value is None:
                if variable.required:
                    if name not in missing:
                        missing.append(name)
                    return match.group(0)
                return ""
            return value_to_string(value)

        result = PLACEHOLDER_PATTERN.sub(_replace, template)
        if missing:
            raise MissingRequiredVariable(missing)
        if unknown:
            _LOGGER.warning(
                "Leaving unknown placeholders untouched: %s",
                ", ".join(sorted(set(unknown))),
            )
        return result
