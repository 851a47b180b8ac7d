"""Prompt enhancement: structured forms, clarifying questions, and jobs."""

from promptsmith.enhancement.questions import QuestionGenerator, prioritize
from promptsmith.enhancement.service import EnhancementService
from promptsmith.enhancement.workflow import (
    EnhancementJob,
    EnhancementProgress,
    EnhancementWorkflow,
)

__all__ = [
    "EnhancementJob",
    "EnhancementProgress",
    "EnhancementService",
    "EnhancementWorkflow",
    "QuestionGenerator",
    "prioritize",
]
