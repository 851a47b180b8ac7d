"""Keyword-table classifiers for prompt kind and task type.

Both classifiers are pure functions of their inputs. Rules are evaluated in
table order and the first matching rule decides; bump ``RULESET_VERSION`` when
a table changes so cached classifications can be invalidated.
"""

from __future__ import annotations

import re

from dataclasses import dataclass
from typing import Iterable, Literal, Tuple

from promptsmith.constants import (
    PROMPT_KIND_AGENT,
    PROMPT_KIND_TASK,
    TAG_PROMPT_TYPE_AGENT,
    TAG_PROMPT_TYPE_TASK,
)
from promptsmith.prompting.types import PromptDefinition, PromptKind, TaskType

RULESET_VERSION = "2024.1"

Scope = Literal["goal", "goal_and_steps"]


def contains_any(
    text: str, keywords: Iterable[str], *, whole_words: bool = False
) -> bool:
    """Case-insensitive keyword presence check."""

    lowered = text.lower()
    for keyword in keywords:
        if whole_words:
            pattern = r"(?<![\w#+])" + re.escape(keyword) + r"(?![\w#+])"
            if re.search(pattern, lowered):
                return True
        elif keyword in lowered:
            return True
    return False


@dataclass(frozen=True)
class KeywordRule:
    """Maps a keyword set found in ``scope`` to a prompt-kind verdict."""

    name: str
    keywords: Tuple[str, ...]
    verdict: PromptKind
    scope: Scope = "goal_and_steps"

    def matches(self, prompt: PromptDefinition) -> bool:
        text = prompt.goal if self.scope == "goal" else prompt.combined_text
        return contains_any(text, self.keywords)


@dataclass(frozen=True)
class TaskTypeRule:
    """Maps a keyword bucket to a task type unless an excluded word appears."""

    task_type: TaskType
    keywords: Tuple[str, ...]
    excluded: Tuple[str, ...] = ()

    def matches(self, text: str) -> bool:
        if not contains_any(text, self.keywords):
            return False
        return not (self.excluded and contains_any(text, self.excluded))


AGENT_MARKERS: Tuple[str, ...] = (
    "expert",
    "specialist",
    "engineer",
    "architect",
    "masters",
    "specializing",
    "capabilities",
    "behavioral traits",
    "knowledge base",
    "response approach",
    "example interactions",
    "purpose",
    "## capabilities",
    "## behavioral",
    "you are",
    "i am",
    "my expertise",
    "my specialization",
)

TASK_MARKERS: Tuple[str, ...] = (
    "create",
    "build",
    "generate",
    "analyze",
    "write",
    "develop",
    "design",
    "implement",
    "test",
    "review",
    "document",
    "plan",
    "organize",
    "identify",
)

# Agent markers are listed first so they win when both sets match.
CLASSIFICATION_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule("agent-identity", AGENT_MARKERS, PROMPT_KIND_AGENT),
    KeywordRule("task-imperative", TASK_MARKERS, PROMPT_KIND_TASK, "goal"),
)

DEFAULT_PROMPT_KIND: PromptKind = PROMPT_KIND_TASK

CODE_WORDS: Tuple[str, ...] = ("function", "code", "program", "script")

# Code is checked before generation so "write a function" stays code.
TASK_TYPE_RULES: Tuple[TaskTypeRule, ...] = (
    TaskTypeRule(
        "code",
        (
            "code",
            "program",
            "script",
            "function",
            "algorithm",
            "debug",
            "refactor",
            "write a function",
            "implement",
        ),
    ),
    TaskTypeRule(
        "analysis",
        ("analyze", "analysis", "examine", "evaluate", "assess", "review", "study"),
    ),
    TaskTypeRule(
        "generation",
        ("generate", "create", "write", "produce", "build", "make", "compose"),
        excluded=CODE_WORDS,
    ),
    TaskTypeRule(
        "transformation",
        ("transform", "convert", "translate", "reformat", "restructure", "modify"),
    ),
    TaskTypeRule(
        "classification",
        ("classify", "categorize", "sort", "group", "label", "tag"),
    ),
    TaskTypeRule(
        "summarization",
        ("summarize", "summary", "condense", "brief", "overview", "abstract"),
    ),
    TaskTypeRule(
        "conversation",
        ("chat", "conversation", "dialogue", "discuss", "talk", "respond"),
    ),
    TaskTypeRule(
        "creative",
        ("creative", "story", "poem", "design", "brainstorm", "imagine"),
    ),
)


def classify(
    prompt: PromptDefinition, manual_tags: Iterable[str] = ()
) -> PromptKind:
    """Return ``"agent"`` or ``"task"`` for ``prompt``."""

    tags = set(prompt.tags) | set(manual_tags)
    if TAG_PROMPT_TYPE_AGENT in tags:
        return PROMPT_KIND_AGENT
    if TAG_PROMPT_TYPE_TASK in tags:
        return PROMPT_KIND_TASK
    for rule in CLASSIFICATION_RULES:
        if rule.matches(prompt):
            return rule.verdict
    return DEFAULT_PROMPT_KIND


def detect_task_type(prompt: PromptDefinition) -> TaskType:
    """Return the first task-type bucket whose keywords appear in ``prompt``."""

    text = prompt.combined_text
    for rule in TASK_TYPE_RULES:
        if rule.matches(text):
            return rule.task_type
    return "unknown"
