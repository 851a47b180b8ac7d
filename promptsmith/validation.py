"""Decode raw mappings (YAML/JSON/request bodies) into typed records."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from promptsmith.constants import RENDER_MODES, SUPPORTED_PROVIDERS
from promptsmith.exceptions import InvalidProviderError, ValidationError
from promptsmith.prompting.types import (
    VARIABLE_TYPES,
    PromptDefinition,
    PromptRecord,
    PromptRule,
    StructuredPrompt,
    Variable,
)
from promptsmith.types import EnhancementRequest, RenderRequest


def _get(data: Mapping[str, Any], *names: str, default: Any = None) -> Any:
    for name in names:
        if name in data and data[name] is not None:
            return data[name]
    return default


def _str_tuple(value: Any, field_name: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, Sequence):
        raise ValidationError(f"'{field_name}' must be a list of strings")
    return tuple(str(item) for item in value)


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValidationError(f"'{field_name}' must be a mapping")
    return value


def decode_variable(data: Mapping[str, Any]) -> Variable:
    data = _mapping(data, "variables[]")
    key = data.get("key")
    if not key or not isinstance(key, str):
        raise ValidationError("Every variable needs a string 'key'")
    var_type = data.get("type", "string")
    if var_type not in VARIABLE_TYPES:
        raise ValidationError(
            f"Variable '{key}' has unknown type '{var_type}'"
        )
    options = data.get("options")
    if var_type in ("select", "multiselect") and not options:
        raise ValidationError(
            f"Variable '{key}' of type {var_type} needs options"
        )
    return Variable(
        key=key,
        label=str(data.get("label") or key),
        type=var_type,
        required=bool(data.get("required", False)),
        default_value=_get(data, "default_value", "default"),
        options=_str_tuple(options, f"{key}.options") if options else None,
    )


def decode_structured_prompt(data: Mapping[str, Any]) -> StructuredPrompt:
    data = _mapping(data, "structured")
    user_template = data.get("user_template")
    if not isinstance(user_template, str):
        raise ValidationError(
            "Structured prompt needs a 'user_template' string"
        )
    rules: List[PromptRule] = []
    for entry in data.get("rules") or ():
        entry = _mapping(entry, "structured.rules[]")
        if "name" not in entry:
            raise ValidationError("Every structured rule needs a 'name'")
        rules.append(
            PromptRule(str(entry["name"]), str(entry.get("description", "")))
        )
    return StructuredPrompt(
        system=_str_tuple(data.get("system"), "structured.system"),
        user_template=user_template,
        capabilities=_str_tuple(
            data.get("capabilities"), "structured.capabilities"
        ),
        rules=tuple(rules),
        variables=_str_tuple(data.get("variables"), "structured.variables"),
        schema_version=int(data.get("schema_version", 1)),
    )


def decode_prompt_definition(data: Mapping[str, Any]) -> PromptDefinition:
    data = _mapping(data, "prompt")
    goal = data.get("goal")
    if not isinstance(goal, str) or not goal.strip():
        raise ValidationError("Prompt needs a non-empty 'goal'")
    expectations = _mapping(
        _get(data, "output_expectations", "outputExpectations"),
        "output_expectations",
    )
    output_format = _get(
        data, "output_format", "outputFormat"
    ) or expectations.get("format", "")
    output_fields = _get(data, "output_fields") or expectations.get("fields")
    return PromptDefinition(
        goal=goal,
        audience=str(data.get("audience") or ""),
        steps=_str_tuple(data.get("steps"), "steps"),
        output_format=str(output_format or ""),
        output_fields=frozenset(_str_tuple(output_fields, "output_fields")),
        tags=frozenset(_str_tuple(data.get("tags"), "tags")),
    )


def decode_prompt_record(
    data: Mapping[str, Any], *, prompt_id: Optional[str] = None
) -> PromptRecord:
    """Decode a stored prompt (flat, or with a nested ``human_prompt``)."""

    data = _mapping(data, "prompt")
    record_id = prompt_id or _get(data, "id", "prompt_id", "promptId")
    if not record_id:
        raise ValidationError("Prompt needs an 'id'")
    human = _get(data, "human_prompt", "humanPrompt") or data
    definition = decode_prompt_definition(human)
    if data.get("tags") and not human.get("tags"):
        definition = replace(
            definition, tags=frozenset(_str_tuple(data["tags"], "tags"))
        )
    structured_data = _get(data, "structured", "prompt_structured")
    return PromptRecord(
        prompt_id=str(record_id),
        definition=definition,
        variables=tuple(
            decode_variable(entry) for entry in data.get("variables") or ()
        ),
        structured=(
            decode_structured_prompt(structured_data)
            if structured_data is not None
            else None
        ),
        tuned_for_provider=_get(
            data, "tuned_for_provider", "tunedForProvider"
        ),
    )


def decode_provider(provider: Any) -> str:
    if provider not in SUPPORTED_PROVIDERS:
        raise InvalidProviderError(
            f"Invalid provider: {provider}. Valid providers are: "
            + ", ".join(SUPPORTED_PROVIDERS)
        )
    return str(provider)


def decode_render_request(
    data: Mapping[str, Any], *, prompt_id: Optional[str] = None
) -> RenderRequest:
    data = _mapping(data, "render request")
    record_id = prompt_id or _get(data, "prompt_id", "promptId", "id")
    if not record_id:
        raise ValidationError("Render request needs a 'prompt_id'")
    provider = decode_provider(data.get("provider"))
    mode = _get(data, "mode", "version", default="original")
    if mode not in RENDER_MODES:
        raise ValidationError(
            f"Invalid mode: {mode}. Valid modes are: "
            + ", ".join(RENDER_MODES)
        )
    temperature = data.get("temperature")
    if temperature is not None:
        if isinstance(temperature, bool) or not isinstance(
            temperature, (int, float)
        ):
            raise ValidationError("'temperature' must be a number")
        if not 0 <= temperature <= 2:
            raise ValidationError("'temperature' must be between 0 and 2")
        temperature = float(temperature)
    return RenderRequest(
        prompt_id=str(record_id),
        provider=provider,
        mode=mode,
        variables=dict(_mapping(data.get("variables"), "variables")),
        temperature=temperature,
        target_model=_get(data, "target_model", "targetModel"),
        model=data.get("model"),
        connection_id=_get(data, "connection_id", "connectionId"),
        task_type=_get(data, "task_type", "taskType"),
        domain_knowledge=_get(data, "domain_knowledge", "domainKnowledge"),
    )


def decode_enhancement_request(
    data: Mapping[str, Any], *, prompt_id: Optional[str] = None
) -> EnhancementRequest:
    data = _mapping(data, "enhancement request")
    record_id = prompt_id or _get(data, "prompt_id", "promptId", "id")
    if not record_id:
        raise ValidationError("Enhancement request needs a 'prompt_id'")
    target_provider = _get(data, "target_provider", "targetProvider")
    if target_provider is not None:
        target_provider = decode_provider(target_provider)
    return EnhancementRequest(
        prompt_id=str(record_id),
        target_provider=target_provider,
        target_model=_get(data, "target_model", "targetModel"),
        preserve_style=bool(
            _get(data, "preserve_style", "preserveStyle", default=False)
        ),
    )


def validate_variable_values(
    variables: Mapping[str, Variable], values: Mapping[str, Any]
) -> None:
    """Check supplied values against their declared types and options."""

    problems: List[str] = []
    for key, value in values.items():
        variable = variables.get(key)
        if variable is None or value is None:
            continue
        if variable.type == "number":
            if isinstance(value, bool) or not _is_number(value):
                problems.append(f"{key} must be a number")
        elif variable.type == "boolean":
            if not isinstance(value, bool) and str(value).lower() not in (
                "true",
                "false",
            ):
                problems.append(f"{key} must be true or false")
        elif variable.type == "select":
            if variable.options and str(value) not in variable.options:
                problems.append(
                    f"{key} must be one of: {', '.join(variable.options)}"
                )
        elif variable.type == "multiselect":
            if isinstance(value, str):
                chosen: List[Any] = [value]
            elif isinstance(value, (list, tuple, set, frozenset)):
                chosen = list(value)
            else:
                problems.append(f"{key} must be a list of choices")
                continue
            invalid = [
                str(item)
                for item in chosen
                if variable.options and str(item) not in variable.options
            ]
            if invalid:
                problems.append(
                    f"{key} has invalid choice(s): {', '.join(invalid)}"
                )
    if problems:
        raise ValidationError(
            "Invalid variable values: " + "; ".join(problems)
        )


def _is_number(value: Any) -> bool:
    if isinstance(value, (int, float)):
        return True
    try:
        float(str(value))
    except ValueError:
        return False
    return True


def coerce_cli_value(raw: str) -> Any:
    """Best-effort typing for ``--var key=value`` values."""

    lowered = raw.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        return raw


def parse_assignments(pairs: Sequence[str]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key.strip():
            raise ValidationError(f"Expected key=value, got '{pair}'")
        values[key.strip()] = coerce_cli_value(raw)
    return values
