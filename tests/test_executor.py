from __future__ import annotations

import asyncio
import logging

import pytest

from promptsmith.configuration import ConnectionSettings, ExecutorSettings
from promptsmith.exceptions import ExecutorFailure
from promptsmith.execution import (
    AnthropicProvider,
    EchoProvider,
    ExecutionOptions,
    ExecutionRequest,
    MetaProvider,
    OpenAIProvider,
    ProviderExecutor,
    load_executor,
)
from promptsmith.execution.anthropic_provider import split_system
from promptsmith.prompting.types import ProviderMessage
from promptsmith.types import TokenUsage

MISSING_KEY = "PROMPTSMITH_TEST_MISSING_KEY"
MESSAGES = (
    ProviderMessage("system", "Be brief."),
    ProviderMessage("user", "hello there friend"),
)


class CountingEcho(EchoProvider):
    created = 0

    def __init__(self, **kwargs) -> None:
        CountingEcho.created += 1
        super().__init__(**kwargs)


class BrokenEcho(EchoProvider):
    def _send(self, model, messages, temperature, max_tokens):
        raise ConnectionError("connection reset")


class OfflineEcho(EchoProvider):
    def is_available(self) -> bool:
        return False


def _executor(provider_cls=EchoProvider, **connection) -> ProviderExecutor:
    connection.setdefault("provider", "openai")
    return ProviderExecutor(
        {"c1": ConnectionSettings(connection_id="c1", **connection)},
        {"openai": provider_cls},
    )


def _run(executor, **options):
    request = ExecutionRequest(
        connection_id=options.pop("connection_id", "c1"),
        user_id="u1",
        messages=MESSAGES,
        options=ExecutionOptions(**options),
    )
    return asyncio.run(executor.execute(request))


def test_execute_with_echo_provider() -> None:
    result = _run(_executor(model="echo-1"))

    assert result.provider == "echo"
    assert result.model == "echo-1"
    assert result.response == "hello there friend"
    assert result.usage == TokenUsage(5, 3, 8)


def test_request_model_overrides_connection_model() -> None:
    result = _run(_executor(model="echo-1"), model="echo-2")
    assert result.model == "echo-2"


def test_provider_default_model_is_last_resort() -> None:
    assert _run(_executor()).model == "echo"


def test_providers_are_cached_per_connection() -> None:
    CountingEcho.created = 0
    executor = _executor(CountingEcho)
    _run(executor)
    _run(executor)
    assert CountingEcho.created == 1


def test_unknown_connection_fails() -> None:
    with pytest.raises(ExecutorFailure, match="Unknown connection"):
        _run(_executor(), connection_id="missing")


def test_unregistered_provider_fails() -> None:
    with pytest.raises(ExecutorFailure, match="No provider registered"):
        _run(_executor(provider="meta"))


def test_provider_errors_become_executor_failures() -> None:
    with pytest.raises(ExecutorFailure, match="connection reset") as excinfo:
        _run(_executor(BrokenEcho))
    assert isinstance(excinfo.value.__cause__, ConnectionError)


def test_unavailable_provider_fails() -> None:
    with pytest.raises(ExecutorFailure, match="not available"):
        _run(_executor(OfflineEcho))


def test_load_executor(caplog) -> None:
    with caplog.at_level(logging.WARNING):
        assert load_executor(ExecutorSettings()) is None
    assert "mock responses" in caplog.text

    settings = ExecutorSettings(
        connections={"c1": ConnectionSettings("c1", "openai")}
    )
    executor = load_executor(
        settings, provider_classes={"openai": EchoProvider}
    )
    assert isinstance(executor, ProviderExecutor)
    assert set(executor.connections) == {"c1"}


def test_openai_provider_without_key(monkeypatch) -> None:
    monkeypatch.delenv(MISSING_KEY, raising=False)
    provider = OpenAIProvider(api_key_env=MISSING_KEY)

    assert not provider.is_available()
    assert provider.default_model == "gpt-4o-mini"
    with pytest.raises(RuntimeError):
        provider.complete(MESSAGES, model="gpt-4o")


def test_openai_request_params(monkeypatch) -> None:
    monkeypatch.delenv(MISSING_KEY, raising=False)
    provider = OpenAIProvider(api_key_env=MISSING_KEY)

    params = provider.request_params("gpt-4o", MESSAGES, 0.3, 500)
    assert params == {
        "model": "gpt-4o",
        "messages": [m.to_dict() for m in MESSAGES],
        "temperature": 0.3,
        "max_tokens": 500,
    }

    reasoning = provider.request_params("o3-mini", MESSAGES, 0.3, 100)
    assert reasoning["max_completion_tokens"] == 100
    assert "temperature" not in reasoning


def test_token_limits_cap_requested_tokens(monkeypatch) -> None:
    monkeypatch.delenv(MISSING_KEY, raising=False)
    provider = OpenAIProvider(api_key_env=MISSING_KEY)

    assert provider.token_limit("gpt-4o", 50_000) == 32000
    assert provider.token_limit("gpt-3.5-turbo", 50_000) == 16000
    assert provider.token_limit("mystery", 50_000) == 8192
    assert provider.token_limit("gpt-4o", 100) == 100


def test_placeholder_key_is_ignored(monkeypatch) -> None:
    monkeypatch.setenv(MISSING_KEY, "your-api-key-here")
    assert not OpenAIProvider(api_key_env=MISSING_KEY).is_available()


def test_split_system_joins_system_turns() -> None:
    system, turns = split_system(
        (ProviderMessage("system", "One."), *MESSAGES)
    )
    assert system == "One.\n\nBe brief."
    assert turns == [{"role": "user", "content": "hello there friend"}]


def test_meta_and_anthropic_providers_without_keys(monkeypatch) -> None:
    monkeypatch.delenv(MISSING_KEY, raising=False)
    meta = MetaProvider(api_key_env=MISSING_KEY)
    assert meta.name == "meta"
    assert meta.base_url == "https://api.llama.com/compat/v1/"
    assert not meta.is_available()

    anthropic = AnthropicProvider(api_key_env=MISSING_KEY)
    assert anthropic.name == "anthropic"
    assert not anthropic.is_available()
    with pytest.raises(RuntimeError):
        anthropic.complete(MESSAGES)
