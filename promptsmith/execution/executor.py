"""Executor capability contract and the provider-backed implementation."""

from __future__ import annotations

import asyncio
import logging

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Protocol, Tuple, Type

from promptsmith.configuration import ConnectionSettings
from promptsmith.exceptions import ExecutorFailure
from promptsmith.execution.base import BaseProvider
from promptsmith.prompting.types import ProviderMessage
from promptsmith.types import TokenUsage

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutionOptions:
    temperature: float = 0.7
    max_tokens: int = 2000
    model: Optional[str] = None


@dataclass(frozen=True)
class ExecutionRequest:
    connection_id: str
    user_id: str
    messages: Tuple[ProviderMessage, ...]
    options: ExecutionOptions = field(default_factory=ExecutionOptions)


@dataclass(frozen=True)
class ExecutionResult:
    provider: str
    model: str
    response: str
    usage: Optional[TokenUsage] = None


class Executor(Protocol):
    """Dispatches messages to a real LLM; may fail asynchronously."""

    async def execute(self, request: ExecutionRequest) -> ExecutionResult: ...


class ProviderExecutor:
    """Executor that resolves a connection to a provider SDK client.

    SDK calls are blocking, so they run in a worker thread. Timeouts are left
    to the SDK clients. Every failure surfaces as :class:`ExecutorFailure`.
    """

    def __init__(
        self,
        connections: Mapping[str, ConnectionSettings],
        provider_classes: Mapping[str, Type[BaseProvider]],
    ) -> None:
        self._connections = dict(connections)
        self._provider_classes = dict(provider_classes)
        self._providers: Dict[str, BaseProvider] = {}

    @property
    def connections(self) -> Dict[str, ConnectionSettings]:
        return dict(self._connections)

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        connection = self._connections.get(request.connection_id)
        if connection is None:
            raise ExecutorFailure(
                f"Unknown connection '{request.connection_id}'"
            )
        provider = self._provider_for(connection)
        model = (
            request.options.model or connection.model or provider.default_model
        )
        _LOGGER.info(
            "Executing %d message(s) on %s (model=%s, connection=%s)",
            len(request.messages),
            provider.name,
            model,
            connection.connection_id,
        )
        try:
            response = await asyncio.to_thread(
                provider.complete,
                request.messages,
                model=model,
                temperature=request.options.temperature,
                max_tokens=request.options.max_tokens,
            )
        except Exception as exc:
            raise ExecutorFailure(
                f"{provider.name} execution failed: {exc}"
            ) from exc
        return ExecutionResult(
            provider=response.provider,
            model=response.model,
            response=response.content or "",
            usage=response.usage,
        )

    def _provider_for(self, connection: ConnectionSettings) -> BaseProvider:
        cached = self._providers.get(connection.connection_id)
        if cached is not None:
            return cached
        provider_cls = self._provider_classes.get(connection.provider)
        if provider_cls is None:
            raise ExecutorFailure(
                f"No provider registered for '{connection.provider}'"
            )
        kwargs: Dict[str, str] = {}
        if connection.api_key_env:
            kwargs["api_key_env"] = connection.api_key_env
        if connection.base_url:
            kwargs["base_url"] = connection.base_url
        try:
            provider = provider_cls(**kwargs)
        except TypeError as exc:
            raise ExecutorFailure(
                f"Invalid options for provider '{connection.provider}': {exc}"
            ) from exc
        if not provider.is_available():
            raise ExecutorFailure(
                f"Provider '{connection.provider}' is not available for "
                f"connection '{connection.connection_id}'"
            )
        self._providers[connection.connection_id] = provider
        return provider
