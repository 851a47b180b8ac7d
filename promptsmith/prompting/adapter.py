"""Provider-specific message adaptation for prompt records.

Each provider has its own wrapping convention, and downstream executors match
on the exact tokens:

* ``openai`` receives separate ``system`` and ``user`` turns.
* ``anthropic`` receives one ``user`` turn embedding ``Human:`` / ``Assistant:``.
* ``meta`` receives one ``user`` turn wrapped in ``[INST] ... [/INST]``.
"""

from __future__ import annotations

import logging

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple

from promptsmith.constants import (
    MODE_ENHANCED,
    MODE_NO_ADAPT,
    MODE_ORIGINAL,
    PROMPT_KIND_AGENT,
    PROVIDER_ANTHROPIC,
    PROVIDER_META,
    PROVIDER_OPENAI,
    SUPPORTED_PROVIDERS,
)
from promptsmith.exceptions import (
    InvalidPromptError,
    UnsupportedProviderError,
    ValidationError,
)
from promptsmith.prompting.classifier import classify
from promptsmith.prompting.manager import PromptManager
from promptsmith.prompting.substitution import VariableSubstitutionEngine
from promptsmith.prompting.types import (
    AdaptedPrompt,
    PromptDefinition,
    PromptKind,
    PromptRecord,
    ProviderMessage,
    RenderContext,
)

NO_ADAPT_SYSTEM = (
    "You are a helpful assistant. Please respond to the following prompt "
    "exactly as written."
)
AGENT_CLOSING = "Become this expert agent with all specified capabilities."
TASK_CLOSING = "Please complete this task now."
ORIGINAL_PROMPT_HEADER = "## Original Prompt to Adapt:"

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderFormatProfile:
    """Output conventions a provider's models respond best to."""

    name: str
    agent_style: str
    task_style: str


PROVIDER_FORMAT_PROFILES: Dict[str, ProviderFormatProfile] = {
    PROVIDER_OPENAI: ProviderFormatProfile(
        name="OpenAI GPT",
        agent_style=(
            "structured, clear, and actionable responses with numbered "
            "lists, code blocks, and practical examples"
        ),
        task_style=(
            "structured, clear, and actionable deliverables with numbered "
            "lists, code blocks, and practical examples"
        ),
    ),
    PROVIDER_ANTHROPIC: ProviderFormatProfile(
        name="Anthropic Claude",
        agent_style=(
            "conversational, detailed explanations with step-by-step "
            "reasoning and thoughtful analysis"
        ),
        task_style=(
            "detailed, thorough deliverables with comprehensive explanations "
            "and step-by-step reasoning"
        ),
    ),
    PROVIDER_META: ProviderFormatProfile(
        name="Meta Llama",
        agent_style=(
            "concise, direct responses with practical examples and "
            "straightforward explanations"
        ),
        task_style=(
            "concise, direct deliverables with practical examples and "
            "straightforward presentation"
        ),
    ),
}


def provider_format_profile(provider: str) -> ProviderFormatProfile:
    try:
        return PROVIDER_FORMAT_PROFILES[provider]
    except KeyError:
        raise UnsupportedProviderError(
            f"No format profile for provider '{provider}'"
        ) from None


def build_original_prompt(prompt: PromptDefinition) -> str:
    """Return the complete original prompt as literal sections."""

    sections = [f"**Goal:** {prompt.goal}"]
    if prompt.audience:
        sections.append(f"\n**Audience:** {prompt.audience}")
    if prompt.steps:
        sections.append("\n**Capabilities and Knowledge:**")
        sections.extend(f"\n{step}" for step in prompt.steps)
    if prompt.output_format:
        sections.append(f"\n**Output Expectations:** {prompt.output_format}")
    return "\n".join(sections)


def format_prompt_text(
    provider: str, messages: Sequence[ProviderMessage]
) -> str:
    if provider == PROVIDER_OPENAI:
        return "\n\n".join(f"{m.role}: {m.content}" for m in messages)
    return messages[0].content if messages else ""


class FormatAdapter:
    """Turns a prompt record into a provider-ready message sequence."""

    def __init__(
        self,
        prompt_manager: Optional[PromptManager] = None,
        substitution: Optional[VariableSubstitutionEngine] = None,
    ) -> None:
        self._prompt_manager = prompt_manager or PromptManager()
        self._substitution = substitution or VariableSubstitutionEngine()

    def adapt(
        self,
        record: PromptRecord,
        mode: str,
        provider: str,
        context: Optional[RenderContext] = None,
        *,
        manual_tags: Iterable[str] = (),
    ) -> AdaptedPrompt:
        if provider not in SUPPORTED_PROVIDERS:
            raise UnsupportedProviderError(
                f"Unsupported provider '{provider}'. Valid providers are: "
                + ", ".join(SUPPORTED_PROVIDERS)
            )
        if not record.definition.goal or not record.definition.goal.strip():
            raise InvalidPromptError(
                f"Prompt '{record.prompt_id}' has an empty goal"
            )
        ctx = context or RenderContext(provider=provider)

        if mode == MODE_ENHANCED and record.structured is not None:
            messages = self._enhanced(record, provider, ctx)
            kind: Optional[PromptKind] = None
        elif mode == MODE_ENHANCED:
            _LOGGER.info(
                "Prompt %s has no structured form; using adaptive rendering",
                record.prompt_id,
            )
            kind = classify(record.definition, manual_tags)
            messages = self._adaptive(record, provider, kind, ctx)
            mode = MODE_ORIGINAL
        elif mode == MODE_NO_ADAPT:
            messages = self._no_adapt(record.definition, provider)
            kind = None
        elif mode == MODE_ORIGINAL:
            kind = classify(record.definition, manual_tags)
            messages = self._adaptive(record, provider, kind, ctx)
        else:
            raise ValidationError(f"Unknown render mode '{mode}'")

        return AdaptedPrompt(
            messages=messages,
            formatted_prompt=format_prompt_text(provider, messages),
            mode=mode,
            kind=kind,
        )

    def _enhanced(
        self, record: PromptRecord, provider: str, ctx: RenderContext
    ) -> Tuple[ProviderMessage, ...]:
        structured = record.structured
        assert structured is not None
        system = "\n".join(structured.system)
        user = self._substitution.substitute(
            structured.user_template, record.declared_variables(), ctx
        )
        if provider == PROVIDER_OPENAI:
            return (
                ProviderMessage("system", system),
                ProviderMessage("user", user),
            )
        if provider == PROVIDER_ANTHROPIC:
            return (
                ProviderMessage(
                    "user",
                    f"Human: {system}\n\n{user}\n\nAssistant: I'll help you "
                    "with that following the provided instructions.",
                ),
            )
        return (ProviderMessage("user", f"[INST] {system}\n\n{user} [/INST]"),)

    def _no_adapt(
        self, prompt: PromptDefinition, provider: str
    ) -> Tuple[ProviderMessage, ...]:
        text = build_original_prompt(prompt)
        if provider == PROVIDER_OPENAI:
            return (
                ProviderMessage("system", NO_ADAPT_SYSTEM),
                ProviderMessage("user", text),
            )
        if provider == PROVIDER_ANTHROPIC:
            return (
                ProviderMessage(
                    "user",
                    f"Human: {text}\n\nAssistant: I'll respond to this prompt:",
                ),
            )
        return (ProviderMessage("user", f"[INST] {text} [/INST]"),)

    def _adaptive(
        self,
        record: PromptRecord,
        provider: str,
        kind: PromptKind,
        ctx: RenderContext,
    ) -> Tuple[ProviderMessage, ...]:
        prompt = record.definition
        profile = provider_format_profile(provider)
        if kind == PROMPT_KIND_AGENT:
            instructions = self._prompt_manager.render(
                "agent_format.j2",
                profile=profile,
                same_provider=record.tuned_for_provider == provider,
            )
            body = (
                f"{instructions}\n\n{ORIGINAL_PROMPT_HEADER}\n\n"
                f"{build_original_prompt(prompt)}"
            )
            closing = AGENT_CLOSING
            assistant_lead = "I am this expert agent:"
        else:
            instructions = self._prompt_manager.render(
                "task_format.j2", profile=profile
            )
            definition = self._prompt_manager.render(
                "task_definition.j2",
                goal=prompt.goal,
                audience=prompt.audience,
                steps=prompt.steps,
                output_format=prompt.output_format,
            )
            body = f"{instructions}\n\n{definition}"
            closing = TASK_CLOSING
            assistant_lead = "I'll complete this task for you:"

        body = self._substitution.substitute(
            body, record.declared_variables(), ctx
        )
        if provider == PROVIDER_OPENAI:
            return (
                ProviderMessage("system", body),
                ProviderMessage("user", closing),
            )
        if provider == PROVIDER_ANTHROPIC:
            return (
                ProviderMessage(
                    "user",
                    f"Human: {body}\n\n{closing}\n\nAssistant: {assistant_lead}",
                ),
            )
        return (ProviderMessage("user", f"[INST] {body}\n\n{closing} [/INST]"),)
