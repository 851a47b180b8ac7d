"""Core dataclasses for render requests, payloads, and enhancement results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Mapping, Optional, Tuple

from promptsmith.constants import MODE_ORIGINAL
from promptsmith.prompting.types import (
    ProviderMessage,
    StructuredPrompt,
    TaskType,
    VariableType,
)

PayloadSource = Literal["live", "mock", "fallback"]
RenderJobStatus = Literal["started", "progressing", "completed", "failed"]


@dataclass(frozen=True)
class RenderRequest:
    """Validated render request (see ``promptsmith.validation``)."""

    prompt_id: str
    provider: str
    mode: str = MODE_ORIGINAL
    variables: Mapping[str, Any] = field(default_factory=dict)
    temperature: Optional[float] = None
    target_model: Optional[str] = None
    model: Optional[str] = None
    connection_id: Optional[str] = None
    task_type: Optional[str] = None
    domain_knowledge: Optional[str] = None


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TokenUsage":
        prompt = int(data.get("promptTokens", data.get("prompt_tokens", 0)))
        completion = int(
            data.get("completionTokens", data.get("completion_tokens", 0))
        )
        total = data.get("totalTokens", data.get("total_tokens"))
        return cls(
            prompt_tokens=prompt,
            completion_tokens=completion,
            total_tokens=int(total) if total is not None else prompt + completion,
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "promptTokens": self.prompt_tokens,
            "completionTokens": self.completion_tokens,
            "totalTokens": self.total_tokens,
        }


@dataclass(frozen=True)
class RenderedPayload:
    """Result of a render; identical shape for live and mock responses."""

    provider: str
    model: str
    messages: Tuple[ProviderMessage, ...]
    formatted_prompt: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    target_model: Optional[str] = None
    response: Optional[str] = None
    usage: Optional[TokenUsage] = None
    source: PayloadSource = "mock"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "provider": self.provider,
            "model": self.model,
            "messages": [message.to_dict() for message in self.messages],
            "parameters": dict(self.parameters),
            "formatted_prompt": self.formatted_prompt,
            "response": self.response,
            "source": self.source,
        }
        if self.target_model:
            data["target_model"] = self.target_model
        if self.usage is not None:
            data["usage"] = self.usage.to_dict()
        return data


@dataclass
class RenderJob:
    """Tracking record for one render invocation, keyed by prompt/connection."""

    prompt_id: str
    connection_id: str
    status: RenderJobStatus
    started_at: float
    finished_at: Optional[float] = None

    @property
    def key(self) -> Tuple[str, str]:
        return (self.prompt_id, self.connection_id)

    @property
    def is_terminal(self) -> bool:
        return self.status in ("completed", "failed")


@dataclass(frozen=True)
class Question:
    """Clarifying question generated for an under-specified prompt."""

    id: str
    variable_key: str
    text: str
    type: VariableType
    required: bool = False
    options: Optional[Tuple[str, ...]] = None
    help_text: Optional[str] = None
    prompt_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "variable_key": self.variable_key,
            "text": self.text,
            "type": self.type,
            "required": self.required,
        }
        if self.prompt_id is not None:
            data["prompt_id"] = self.prompt_id
        if self.options is not None:
            data["options"] = list(self.options)
        if self.help_text is not None:
            data["help_text"] = self.help_text
        return data


@dataclass(frozen=True)
class EnhancementRequest:
    prompt_id: str
    target_provider: Optional[str] = None
    target_model: Optional[str] = None
    preserve_style: bool = False


@dataclass(frozen=True)
class EnhancementResult:
    structured_prompt: StructuredPrompt
    questions: Tuple[Question, ...]
    rationale: str
    confidence: float
    changes_made: Tuple[str, ...]
    task_type: TaskType = "unknown"
    warnings: Tuple[str, ...] = ()
    enhancement_provider: Optional[str] = None
    enhancement_model: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "structuredPrompt": self.structured_prompt.to_dict(),
            "questions": [question.to_dict() for question in self.questions],
            "rationale": self.rationale,
            "confidence": self.confidence,
            "changes_made": list(self.changes_made),
            "task_type": self.task_type,
            "warnings": list(self.warnings),
            "enhancement_provider": self.enhancement_provider,
            "enhancement_model": self.enhancement_model,
        }
