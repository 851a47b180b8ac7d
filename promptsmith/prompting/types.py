"""Shared dataclasses for prompt definitions and provider messages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Optional, Tuple

Role = Literal["system", "user", "assistant"]
VariableType = Literal["string", "number", "boolean", "select", "multiselect"]
PromptKind = Literal["agent", "task"]
TaskType = Literal[
    "code",
    "analysis",
    "generation",
    "transformation",
    "classification",
    "summarization",
    "conversation",
    "creative",
    "unknown",
]

VARIABLE_TYPES: Tuple[str, ...] = (
    "string",
    "number",
    "boolean",
    "select",
    "multiselect",
)


@dataclass(frozen=True, slots=True)
class ProviderMessage:
    """Single message in a provider-specific sequence."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True, slots=True)
class PromptDefinition:
    """Human-readable prompt as authored; immutable per version."""

    goal: str
    audience: str = ""
    steps: Tuple[str, ...] = ()
    output_format: str = ""
    output_fields: frozenset[str] = frozenset()
    tags: frozenset[str] = frozenset()

    @property
    def combined_text(self) -> str:
        return f"{self.goal} {' '.join(self.steps)}"


@dataclass(frozen=True, slots=True)
class Variable:
    """Declared template variable."""

    key: str
    label: str = ""
    type: VariableType = "string"
    required: bool = False
    default_value: Any = None
    options: Optional[Tuple[str, ...]] = None

    @property
    def has_default(self) -> bool:
        return self.default_value is not None


@dataclass(frozen=True, slots=True)
class PromptRule:
    name: str
    description: str


@dataclass(frozen=True, slots=True)
class StructuredPrompt:
    """Pre-computed enhanced form of a prompt."""

    system: Tuple[str, ...]
    user_template: str
    capabilities: Tuple[str, ...] = ()
    rules: Tuple[PromptRule, ...] = ()
    variables: Tuple[str, ...] = ()
    schema_version: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "system": list(self.system),
            "capabilities": list(self.capabilities),
            "user_template": self.user_template,
            "rules": [
                {"name": rule.name, "description": rule.description}
                for rule in self.rules
            ],
            "variables": list(self.variables),
        }


@dataclass(frozen=True, slots=True)
class PromptRecord:
    """Read-only view of a stored prompt version handed to the pipeline."""

    prompt_id: str
    definition: PromptDefinition
    variables: Tuple[Variable, ...] = ()
    structured: Optional[StructuredPrompt] = None
    tuned_for_provider: Optional[str] = None

    def declared_variables(self) -> dict[str, Variable]:
        """Variables declared by the record plus bare structured names."""

        declared = {variable.key: variable for variable in self.variables}
        if self.structured is not None:
            for name in self.structured.variables:
                declared.setdefault(name, Variable(key=name, label=name))
        return declared


@dataclass(frozen=True, slots=True)
class RenderContext:
    """Per-render substitution context."""

    variables: Mapping[str, Any] = field(default_factory=dict)
    provider: Optional[str] = None
    task_type: Optional[str] = None
    domain_knowledge: Optional[str] = None


@dataclass(frozen=True, slots=True)
class AdaptedPrompt:
    """Provider-ready message sequence produced by the format adapter."""

    messages: Tuple[ProviderMessage, ...]
    formatted_prompt: str
    mode: str
    kind: Optional[PromptKind] = None
