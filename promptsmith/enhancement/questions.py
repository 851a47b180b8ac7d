"""Clarifying-question generation for under-specified prompts.

Questions are only produced when the prompt is neither already specific nor a
self-contained request (``explain``, ``what is``, ...). Each task type has its
own generator; every generator skips questions whose answer is already
present in the prompt text.
"""

from __future__ import annotations

import logging
import uuid

from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from promptsmith.configuration import EnhancementSettings
from promptsmith.prompting.classifier import contains_any
from promptsmith.prompting.types import PromptDefinition, TaskType, Variable
from promptsmith.types import Question

_LOGGER = logging.getLogger(__name__)

SELF_CONTAINED_KEYWORDS: Tuple[str, ...] = (
    "explain",
    "describe",
    "list",
    "define",
    "compare",
    "what is",
    "how to",
    "why does",
    "when should",
)
DATA_KEYWORDS: Tuple[str, ...] = (
    "data",
    "file",
    "document",
    "content",
    "text",
    "input",
)
TOPIC_KEYWORDS: Tuple[str, ...] = ("about", "on", "regarding")
STYLE_KEYWORDS: Tuple[str, ...] = (
    "professional",
    "casual",
    "formal",
    "informal",
    "technical",
    "simple",
    "detailed",
)
LANGUAGE_KEYWORDS: Tuple[str, ...] = (
    "javascript",
    "python",
    "java",
    "typescript",
    "c#",
    "go",
    "rust",
    "php",
    "ruby",
)
STYLE_OPTIONS: Tuple[str, ...] = (
    "professional",
    "casual",
    "academic",
    "creative",
    "technical",
    "friendly",
)
LANGUAGE_OPTIONS: Tuple[str, ...] = (
    "JavaScript",
    "Python",
    "TypeScript",
    "Java",
    "C#",
    "Go",
    "Rust",
    "Other",
)

TaskQuestionGenerator = Callable[
    ["QuestionGenerator", PromptDefinition, Optional[str]], List[Question]
]


def _question(
    variable_key: str,
    text: str,
    *,
    prompt_id: Optional[str],
    type: str = "string",
    required: bool = False,
    options: Optional[Sequence[str]] = None,
    help_text: Optional[str] = None,
) -> Question:
    return Question(
        id=str(uuid.uuid4()),
        variable_key=variable_key,
        text=text,
        type=type,  # type: ignore[arg-type]
        required=required,
        options=tuple(options) if options is not None else None,
        help_text=help_text,
        prompt_id=prompt_id,
    )


def prioritize(questions: Iterable[Question]) -> List[Question]:
    """Drop repeated variable keys (first wins) and put required ones first."""

    seen: set[str] = set()
    unique: List[Question] = []
    for question in questions:
        if question.variable_key in seen:
            continue
        seen.add(question.variable_key)
        unique.append(question)
    return sorted(unique, key=lambda q: not q.required)


class QuestionGenerator:
    """Produces targeted questions for a prompt and its detected task type."""

    def __init__(self, settings: Optional[EnhancementSettings] = None) -> None:
        self.settings = settings or EnhancementSettings()

    # Gate -----------------------------------------------------------------

    def already_specific(self, prompt: PromptDefinition) -> bool:
        s = self.settings
        total_length = len(prompt.goal) + len(" ".join(prompt.steps))
        detailed_steps = len(prompt.steps) >= s.min_detailed_steps and any(
            len(step) > s.detailed_step_length for step in prompt.steps
        )
        return (
            total_length > s.specific_min_length
            and detailed_steps
            and len(prompt.output_fields) > 1
        )

    def self_contained(self, prompt: PromptDefinition) -> bool:
        return contains_any(prompt.goal, SELF_CONTAINED_KEYWORDS)

    def should_generate(self, prompt: PromptDefinition) -> bool:
        return not (self.already_specific(prompt) or self.self_contained(prompt))

    def goal_is_vague(self, prompt: PromptDefinition) -> bool:
        goal = prompt.goal.lower()
        if len(prompt.goal) < self.settings.vague_goal_length:
            return True
        return "analyze" in goal and "for" not in goal

    def very_vague(self, prompt: PromptDefinition) -> bool:
        return (
            len(prompt.goal) < self.settings.very_vague_goal_length
            and len(prompt.steps) < 2
        )

    # Generation -----------------------------------------------------------

    def generate(
        self,
        prompt: PromptDefinition,
        task_type: TaskType,
        *,
        prompt_id: Optional[str] = None,
    ) -> List[Question]:
        if not self.should_generate(prompt):
            _LOGGER.debug("Prompt %s needs no clarifying questions", prompt_id)
            return []
        generator = _TASK_GENERATORS.get(task_type, QuestionGenerator._generic)
        questions = prioritize(generator(self, prompt, prompt_id))
        _LOGGER.info(
            "Generated %d question(s) for %s prompt %s",
            len(questions),
            task_type,
            prompt_id,
        )
        return questions

    def variable_questions(
        self, variables: Iterable[Variable], *, prompt_id: Optional[str] = None
    ) -> List[Question]:
        """Questions for required variables that have no default value."""

        questions: List[Question] = []
        for variable in variables:
            if not variable.required or variable.has_default:
                continue
            text = variable.label or variable.key
            if variable.type == "number":
                text += " (enter a number)"
            elif variable.type == "boolean":
                text += " (yes/no)"
            elif variable.type in ("select", "multiselect"):
                verb = "one" if variable.type == "select" else "multiple"
                choices = ", ".join(variable.options or ()) or "no options"
                text += f" (choose {verb}: {choices})"
            questions.append(
                _question(
                    variable.key,
                    text + " *",
                    prompt_id=prompt_id,
                    type=variable.type,
                    required=True,
                    options=variable.options,
                )
            )
        return questions

    def _analysis(
        self, prompt: PromptDefinition, prompt_id: Optional[str]
    ) -> List[Question]:
        questions: List[Question] = []
        if not contains_any(prompt.combined_text, DATA_KEYWORDS):
            questions.append(
                _question(
                    "analysis_data",
                    "What data or content should be analyzed?",
                    prompt_id=prompt_id,
                    required=True,
                    help_text=(
                        "Provide the specific data, document, or content to "
                        "analyze"
                    ),
                )
            )
        if self.goal_is_vague(prompt):
            questions.append(
                _question(
                    "analysis_focus",
                    "What specific aspects should the analysis focus on?",
                    prompt_id=prompt_id,
                    help_text="e.g., trends, patterns, quality, performance",
                )
            )
        return questions

    def _generation(
        self, prompt: PromptDefinition, prompt_id: Optional[str]
    ) -> List[Question]:
        questions: List[Question] = []
        if not contains_any(prompt.goal, TOPIC_KEYWORDS, whole_words=True):
            questions.append(
                _question(
                    "generation_topic",
                    "What topic or subject should be generated?",
                    prompt_id=prompt_id,
                    required=True,
                    help_text=(
                        "The main topic, theme, or subject for the generated "
                        "content"
                    ),
                )
            )
        if not contains_any(prompt.combined_text, STYLE_KEYWORDS):
            questions.append(
                _question(
                    "content_style",
                    "What style or tone should be used?",
                    prompt_id=prompt_id,
                    type="select",
                    options=STYLE_OPTIONS,
                    help_text="The writing style or tone for the content",
                )
            )
        return questions

    def _transformation(
        self, prompt: PromptDefinition, prompt_id: Optional[str]
    ) -> List[Question]:
        return [
            _question(
                "source_format",
                "What is the current format of the content?",
                prompt_id=prompt_id,
                required=True,
                help_text="e.g., JSON, CSV, plain text",
            ),
            _question(
                "target_format",
                "What format should the content be transformed to?",
                prompt_id=prompt_id,
                required=True,
                help_text="The desired output format",
            ),
        ]

    def _classification(
        self, prompt: PromptDefinition, prompt_id: Optional[str]
    ) -> List[Question]:
        return [
            _question(
                "classification_categories",
                "What categories should be used for classification?",
                prompt_id=prompt_id,
                required=True,
                help_text="List the categories or labels to classify into",
            )
        ]

    def _code(
        self, prompt: PromptDefinition, prompt_id: Optional[str]
    ) -> List[Question]:
        questions: List[Question] = []
        if not contains_any(
            prompt.combined_text, LANGUAGE_KEYWORDS, whole_words=True
        ):
            questions.append(
                _question(
                    "programming_language",
                    "What programming language should be used?",
                    prompt_id=prompt_id,
                    type="select",
                    required=True,
                    options=LANGUAGE_OPTIONS,
                    help_text="The programming language for the code",
                )
            )
        if self.goal_is_vague(prompt):
            questions.append(
                _question(
                    "code_requirements",
                    "What are the specific requirements for the code?",
                    prompt_id=prompt_id,
                    help_text=(
                        "Any specific requirements, constraints, or features "
                        "needed"
                    ),
                )
            )
        return questions

    def _generic(
        self, prompt: PromptDefinition, prompt_id: Optional[str]
    ) -> List[Question]:
        if not self.very_vague(prompt):
            return []
        return [
            _question(
                "specific_requirements",
                "What are the specific requirements or details?",
                prompt_id=prompt_id,
                help_text=(
                    "Any additional details that would help complete the task"
                ),
            )
        ]


_TASK_GENERATORS: Dict[str, TaskQuestionGenerator] = {
    "analysis": QuestionGenerator._analysis,
    "generation": QuestionGenerator._generation,
    "transformation": QuestionGenerator._transformation,
    "classification": QuestionGenerator._classification,
    "code": QuestionGenerator._code,
}
