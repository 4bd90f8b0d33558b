"""Capability shapes consumed by the dispatcher.

Collaborators plug into the pipeline by exposing one of these shapes.
Every method may return a plain value or an awaitable; the dispatcher
resolves both through :func:`resolve`.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

type MaybeAwaitable[T] = T | Awaitable[T]


@runtime_checkable
class RequestHandler[InputT, OutputT](Protocol):
    """A domain handler selected by predicate match."""

    def can_handle(self, handler_input: InputT) -> MaybeAwaitable[bool]: ...

    def handle(self, handler_input: InputT) -> MaybeAwaitable[OutputT]: ...


@runtime_checkable
class RequestInterceptor[InputT](Protocol):
    """Side-effecting stage run before the handler."""

    def process(self, handler_input: InputT) -> MaybeAwaitable[None]: ...


@runtime_checkable
class ResponseInterceptor[InputT, OutputT](Protocol):
    """Side-effecting stage run after the handler; may mutate *output* in place."""

    def process(self, handler_input: InputT, output: OutputT) -> MaybeAwaitable[None]: ...


@runtime_checkable
class ErrorHandler[InputT, OutputT](Protocol):
    """Recovery route selected by predicate match over ``(input, error)``."""

    def can_handle(self, handler_input: InputT, error: Exception) -> MaybeAwaitable[bool]: ...

    def handle(self, handler_input: InputT, error: Exception) -> MaybeAwaitable[OutputT]: ...


class FunctionInterceptor:
    """Wraps a bare callable so it exposes the ``process`` capability."""

    def __init__(self, func: Callable[..., Any]) -> None:
        self._func = func
        self.name = getattr(func, "__qualname__", repr(func))

    def process(self, *args: Any) -> Any:
        return self._func(*args)

    def __repr__(self) -> str:
        return f"FunctionInterceptor({self.name})"


async def resolve[T](value: MaybeAwaitable[T]) -> T:
    """Await *value* if it is awaitable, otherwise return it as-is."""
    if inspect.isawaitable(value):
        return await value
    return value


def component_name(component: object) -> str:
    """Human-readable name for a handler, interceptor or error handler."""
    name = getattr(component, "name", None)
    if isinstance(name, str) and name:
        return name
    qualname = getattr(component, "__qualname__", None)
    if isinstance(qualname, str):
        return qualname
    return component.__class__.__name__
