"""First-match mappers over handler chains and error handlers."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from switchyard.dispatch.capabilities import ErrorHandler, resolve
from switchyard.dispatch.chain import HandlerChain


class RequestMapper:
    """Selects the first chain whose handler accepts the input.

    Chains are evaluated in registration order and evaluation stops at the
    first accepting predicate, so later chains are never consulted.
    """

    def __init__(self, chains: Iterable[HandlerChain], *, name: str | None = None) -> None:
        self._chains = tuple(chains)
        self.name = name or "RequestMapper"

    @property
    def chains(self) -> tuple[HandlerChain, ...]:
        return self._chains

    async def match(self, handler_input: Any) -> HandlerChain | None:
        for chain in self._chains:
            if await resolve(chain.handler.can_handle(handler_input)):
                return chain
        return None

    def describe(self) -> dict[str, Any]:
        return {"name": self.name, "chains": [c.describe() for c in self._chains]}


class ErrorMapper:
    """Selects the first error handler that accepts ``(input, error)``."""

    def __init__(self, handlers: Iterable[ErrorHandler[Any, Any]]) -> None:
        self._handlers = tuple(handlers)

    @property
    def handlers(self) -> tuple[ErrorHandler[Any, Any], ...]:
        return self._handlers

    async def match(self, handler_input: Any, error: Exception) -> ErrorHandler[Any, Any] | None:
        for handler in self._handlers:
            if await resolve(handler.can_handle(handler_input, error)):
                return handler
        return None
