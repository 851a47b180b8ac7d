"""Promptsmith package entry point."""

from .exceptions import (
    ExecutorFailure,
    InvalidProviderError,
    MissingRequiredVariable,
    PromptsmithError,
    ValidationError,
)
from .prompting.types import PromptDefinition, PromptRecord, Variable
from .registry import ServiceRegistry, build_registry
from .rendering.orchestrator import RenderOrchestrator
from .types import (
    EnhancementRequest,
    EnhancementResult,
    RenderedPayload,
    RenderRequest,
)

__all__ = [
    "EnhancementRequest",
    "EnhancementResult",
    "ExecutorFailure",
    "InvalidProviderError",
    "MissingRequiredVariable",
    "PromptDefinition",
    "PromptRecord",
    "PromptsmithError",
    "RenderOrchestrator",
    "RenderRequest",
    "RenderedPayload",
    "ServiceRegistry",
    "ValidationError",
    "Variable",
    "build_registry",
]
