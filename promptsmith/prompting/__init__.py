"""Prompt classification, adaptation, and substitution."""

from promptsmith.prompting.adapter import (
    FormatAdapter,
    ProviderFormatProfile,
    build_original_prompt,
    provider_format_profile,
)
from promptsmith.prompting.classifier import (
    CLASSIFICATION_RULES,
    TASK_TYPE_RULES,
    classify,
    detect_task_type,
)
from promptsmith.prompting.manager import PromptManager
from promptsmith.prompting.substitution import (
    VariableSubstitutionEngine,
    placeholders,
)
from promptsmith.prompting.types import (
    AdaptedPrompt,
    PromptDefinition,
    PromptRecord,
    PromptRule,
    ProviderMessage,
    RenderContext,
    StructuredPrompt,
    Variable,
)

__all__ = [
    "AdaptedPrompt",
    "CLASSIFICATION_RULES",
    "FormatAdapter",
    "PromptDefinition",
    "PromptManager",
    "PromptRecord",
    "PromptRule",
    "ProviderFormatProfile",
    "ProviderMessage",
    "RenderContext",
    "StructuredPrompt",
    "TASK_TYPE_RULES",
    "Variable",
    "VariableSubstitutionEngine",
    "build_original_prompt",
    "classify",
    "detect_task_type",
    "placeholders",
    "provider_format_profile",
]
