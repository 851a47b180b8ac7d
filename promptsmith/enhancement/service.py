"""Enhancement service: turns a human prompt into its structured form."""

from __future__ import annotations

import logging

from typing import List, Optional

from promptsmith.configuration import EnhancementSettings
from promptsmith.enhancement.questions import QuestionGenerator, prioritize
from promptsmith.prompting.adapter import build_original_prompt
from promptsmith.prompting.classifier import detect_task_type
from promptsmith.prompting.manager import PromptManager
from promptsmith.prompting.substitution import placeholders
from promptsmith.prompting.types import (
    PromptDefinition,
    PromptRecord,
    PromptRule,
    StructuredPrompt,
)
from promptsmith.types import EnhancementRequest, EnhancementResult

_LOGGER = logging.getLogger(__name__)

SYSTEM_PREAMBLE = (
    "You are a helpful assistant specialized in the task described below."
)
DEFAULT_CAPABILITIES = ("analysis", "structured_output", "detailed_feedback")
DEFAULT_RULES = (
    PromptRule(
        "accuracy",
        "Ensure all information provided is accurate and relevant",
    ),
    PromptRule("completeness", "Address all aspects mentioned in the goal"),
)
MIN_USER_TEMPLATE_LENGTH = 50


class EnhancementService:
    """Builds :class:`EnhancementResult` objects for stored prompts."""

    def __init__(
        self,
        settings: Optional[EnhancementSettings] = None,
        *,
        prompt_manager: Optional[PromptManager] = None,
        question_generator: Optional[QuestionGenerator] = None,
    ) -> None:
        self.settings = settings or EnhancementSettings()
        self._prompt_manager = prompt_manager or PromptManager()
        self._questions = question_generator or QuestionGenerator(
            self.settings
        )

    def enhance(
        self, record: PromptRecord, request: Optional[EnhancementRequest] = None
    ) -> EnhancementResult:
        request = request or EnhancementRequest(prompt_id=record.prompt_id)
        prompt = record.definition
        _LOGGER.info(
            "Enhancing prompt %s (target=%s)",
            record.prompt_id,
            request.target_provider or self.settings.default_provider,
        )

        structured = self.structure(record, preserve_style=request.preserve_style)
        task_type = detect_task_type(prompt)
        questions = prioritize(
            [
                *self._questions.generate(
                    prompt, task_type, prompt_id=record.prompt_id
                ),
                *self._questions.variable_questions(
                    record.variables, prompt_id=record.prompt_id
                ),
            ]
        )
        confidence = (
            self.settings.confidence_with_questions
            if questions
            else self.settings.confidence_no_questions
        )
        return EnhancementResult(
            structured_prompt=structured,
            questions=tuple(questions),
            rationale=rationale(structured),
            confidence=confidence,
            changes_made=tuple(changes_made(structured, request.preserve_style)),
            task_type=task_type,
            warnings=tuple(quality_warnings(structured)),
            enhancement_provider=(
                request.target_provider or self.settings.default_provider
            ),
            enhancement_model=(
                request.target_model or self.settings.default_model
            ),
        )

    def structure(
        self, record: PromptRecord, *, preserve_style: bool = False
    ) -> StructuredPrompt:
        """Build the structured form of ``record``.

        With ``preserve_style`` the user template keeps the author's own
        sections instead of the numbered goal/steps layout.
        """

        prompt = record.definition
        system = [SYSTEM_PREAMBLE]
        if prompt.audience:
            system.append(f"Your target audience is: {prompt.audience}")
        if preserve_style:
            user_template = build_original_prompt(prompt)
        else:
            user_template = self._user_template(prompt)
        variables = [variable.key for variable in record.variables]
        for name in placeholders(user_template):
            if name not in variables:
                variables.append(name)
        return StructuredPrompt(
            system=tuple(system),
            user_template=user_template,
            capabilities=DEFAULT_CAPABILITIES,
            rules=DEFAULT_RULES,
            variables=tuple(variables),
        )

    def _user_template(self, prompt: PromptDefinition) -> str:
        return self._prompt_manager.render(
            "structured_user.j2",
            goal=prompt.goal,
            steps=prompt.steps,
            output_format=prompt.output_format,
        )


def quality_warnings(structured: StructuredPrompt) -> List[str]:
    warnings: List[str] = []
    if len(structured.system) < 2:
        warnings.append("Consider adding more detailed system instructions")
    if not structured.rules:
        warnings.append("Consider adding specific rules or constraints")
    if len(structured.user_template) < MIN_USER_TEMPLATE_LENGTH:
        warnings.append("User template might be too simple")
    return warnings


def changes_made(
    structured: StructuredPrompt, preserve_style: bool = False
) -> List[str]:
    changes = ["Added system instructions for context"]
    if preserve_style:
        changes.append("Kept the original wording as the user template")
    else:
        changes.append("Structured the user template with clear steps")
    if structured.variables:
        changes.append(
            f"Declared {len(structured.variables)} template variable(s)"
        )
    changes.append("Added rules for accuracy and completeness")
    return changes


def rationale(structured: StructuredPrompt) -> str:
    parts: List[str] = []
    if structured.system:
        parts.append(
            f"Added {len(structured.system)} system instruction(s) to provide "
            "clear context and role definition"
        )
    if structured.rules:
        parts.append(
            f"Defined {len(structured.rules)} specific rule(s) to ensure "
            "consistent behavior"
        )
    if structured.capabilities:
        parts.append(
            f"Identified {len(structured.capabilities)} key capability "
            "requirement(s)"
        )
    template_vars = placeholders(structured.user_template)
    if template_vars:
        parts.append(
            f"Extracted {len(template_vars)} variable(s) to make the prompt "
            "reusable"
        )
    if (
        len(structured.system) <= 1
        and not structured.rules
        and not structured.capabilities
        and not template_vars
    ):
        return (
            "Converted human prompt to structured format with minimal "
            "changes needed."
        )
    parts.append(
        "Converted free-form instructions into structured template format"
    )
    parts.append("Organized content into system context and user-facing template")
    return f"Enhanced the prompt by: {'; '.join(parts)}."
