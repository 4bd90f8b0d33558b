"""ConfigurationBuilder — fluent assembly of an immutable Configuration.

Matchers, executors and interceptors are normalized at registration time
so the dispatch path only ever sees one capability shape:

* a request matcher is an :class:`Identifier` (compared to the request's
  resolved name) or a :class:`Predicate`;
* an error matcher is an exception type (``isinstance`` check) or a
  :class:`Predicate`;
* a bare callable interceptor is wrapped in a
  :class:`~switchyard.dispatch.capabilities.FunctionInterceptor`.

``build()`` snapshots the accumulated state.  Calls made on the builder
afterwards never affect an already-built Configuration.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Self

from switchyard.dispatch.adapters import GenericHandlerAdapter, HandlerAdapter
from switchyard.dispatch.capabilities import FunctionInterceptor, component_name
from switchyard.dispatch.chain import HandlerChain
from switchyard.dispatch.mappers import ErrorMapper, RequestMapper
from switchyard.errors import RegistrationError

type NameResolver = Callable[[Any], str | None]

# --- Matchers -----------------------------------------------------------


@dataclass(frozen=True)
class Identifier:
    """Matches inputs whose resolved name equals ``name``."""

    name: str

    def to_predicate(self, resolver: NameResolver) -> Callable[[Any], bool]:
        expected = self.name

        def matches_identifier(handler_input: Any) -> bool:
            return resolver(handler_input) == expected

        return matches_identifier

    def describe(self) -> str:
        return self.name


@dataclass(frozen=True)
class Predicate:
    """Matches inputs for which ``func`` returns a truthy value."""

    func: Callable[..., Any]

    def to_predicate(self, resolver: NameResolver) -> Callable[..., Any]:
        return self.func

    def describe(self) -> str:
        return component_name(self.func)


type Matcher = Identifier | Predicate


def to_matcher(matcher: str | Callable[..., Any], *, scope: str) -> Matcher:
    """Normalize a raw request matcher into the tagged variant."""
    if isinstance(matcher, str):
        return Identifier(matcher)
    if callable(matcher):
        return Predicate(matcher)
    raise RegistrationError(f"Incompatible matcher type: {type(matcher).__name__}", scope=scope)


def resolve_request_name(handler_input: Any) -> str | None:
    """Default name resolver: the input's ``request_name`` attribute."""
    return getattr(handler_input, "request_name", None)


# --- Function-backed capabilities ---------------------------------------


class FunctionRequestHandler:
    """A request handler assembled from a predicate and an executor."""

    def __init__(
        self,
        predicate: Callable[[Any], Any],
        executor: Callable[[Any], Any],
        *,
        matcher_description: str,
    ) -> None:
        self._predicate = predicate
        self._executor = executor
        self.name = component_name(executor)
        self.matcher_description = matcher_description

    def can_handle(self, handler_input: Any) -> Any:
        return self._predicate(handler_input)

    def handle(self, handler_input: Any) -> Any:
        return self._executor(handler_input)


class FunctionErrorHandler:
    """An error handler assembled from an error matcher and an executor."""

    def __init__(
        self,
        predicate: Callable[[Any, Exception], Any],
        executor: Callable[[Any, Exception], Any],
        *,
        matcher_description: str,
    ) -> None:
        self._predicate = predicate
        self._executor = executor
        self.name = component_name(executor)
        self.matcher_description = matcher_description

    def can_handle(self, handler_input: Any, error: Exception) -> Any:
        return self._predicate(handler_input, error)

    def handle(self, handler_input: Any, error: Exception) -> Any:
        return self._executor(handler_input, error)


# --- Configuration ------------------------------------------------------


@dataclass(frozen=True)
class Configuration:
    """Immutable dispatcher configuration produced by :meth:`ConfigurationBuilder.build`.

    Attributes:
        request_mappers: Tried in order by the dispatcher.
        handler_adapters: Tried in order for each resolved handler.
        error_mapper: ``None`` when no error handler was registered.
        request_interceptors: Global request interceptors.
        response_interceptors: Global response interceptors.
    """

    request_mappers: tuple[RequestMapper, ...]
    handler_adapters: tuple[HandlerAdapter, ...]
    error_mapper: ErrorMapper | None = None
    request_interceptors: tuple[Any, ...] = field(default_factory=tuple)
    response_interceptors: tuple[Any, ...] = field(default_factory=tuple)

    def describe(self) -> dict[str, Any]:
        """Serializable summary of routes, interceptors and recovery."""
        handlers = self.error_mapper.handlers if self.error_mapper is not None else ()
        return {
            "request_mappers": [m.describe() for m in self.request_mappers],
            "handler_adapters": [component_name(a) for a in self.handler_adapters],
            "request_interceptors": [component_name(i) for i in self.request_interceptors],
            "response_interceptors": [component_name(i) for i in self.response_interceptors],
            "error_handlers": [
                {
                    "handler": component_name(h),
                    "matcher": getattr(h, "matcher_description", None),
                }
                for h in handlers
            ],
        }


def merge_configurations(primary: Configuration, *others: Configuration) -> Configuration:
    """Compose independently built configurations into one.

    Request mappers, interceptors and error handlers of *others* are
    appended after those of *primary*, preserving order.  Adapters are
    taken from *primary* first, then any adapter type not yet present.
    """
    mappers = list(primary.request_mappers)
    adapters = list(primary.handler_adapters)
    request_interceptors = list(primary.request_interceptors)
    response_interceptors = list(primary.response_interceptors)
    error_handlers = list(primary.error_mapper.handlers) if primary.error_mapper else []

    for other in others:
        mappers.extend(other.request_mappers)
        known = {type(a) for a in adapters}
        adapters.extend(a for a in other.handler_adapters if type(a) not in known)
        request_interceptors.extend(other.request_interceptors)
        response_interceptors.extend(other.response_interceptors)
        if other.error_mapper is not None:
            error_handlers.extend(other.error_mapper.handlers)

    return Configuration(
        request_mappers=tuple(mappers),
        handler_adapters=tuple(adapters),
        error_mapper=ErrorMapper(error_handlers) if error_handlers else None,
        request_interceptors=tuple(request_interceptors),
        response_interceptors=tuple(response_interceptors),
    )


# --- Builder ------------------------------------------------------------


class ConfigurationBuilder:
    """Accumulates handlers, interceptors and error handlers via chained calls.

    Usage::

        configuration = (
            ConfigurationBuilder()
            .add_request_interceptors(validate)
            .add_handler("HelloIntent", say_hello)
            .add_handlers(FallbackHandler())
            .add_error_handler(ValueError, apologize)
            .build()
        )

    Parameters:
        name_resolver: Resolves an input's name for identifier matchers.
            Defaults to the input's ``request_name`` attribute.
        mapper_name: Name given to the single RequestMapper produced.
    """

    def __init__(
        self,
        *,
        name_resolver: NameResolver | None = None,
        mapper_name: str | None = None,
    ) -> None:
        self._name_resolver: NameResolver = name_resolver or resolve_request_name
        self._mapper_name = mapper_name
        self._chains: list[HandlerChain] = []
        self._request_interceptors: list[Any] = []
        self._response_interceptors: list[Any] = []
        self._error_handlers: list[Any] = []

    @property
    def _scope(self) -> str:
        return self.__class__.__name__

    # --- Request handlers -------------------------------------------------

    def add_handler(
        self,
        matcher: str | Callable[[Any], Any],
        executor: Callable[[Any], Any],
        *,
        request_interceptors: Iterable[Any] = (),
        response_interceptors: Iterable[Any] = (),
    ) -> Self:
        """Register a route from a matcher and an executor.

        *matcher* is a request name or a predicate over the input.  The
        optional interceptors are scoped to this route only.
        """
        normalized = to_matcher(matcher, scope=self._scope)
        if not callable(executor):
            raise RegistrationError(
                f"Incompatible executor type: {type(executor).__name__}", scope=self._scope
            )
        handler = FunctionRequestHandler(
            normalized.to_predicate(self._name_resolver),
            executor,
            matcher_description=normalized.describe(),
        )
        self._chains.append(
            HandlerChain(
                handler=handler,
                request_interceptors=self._normalize_interceptors(request_interceptors),
                response_interceptors=self._normalize_interceptors(response_interceptors),
            )
        )
        return self

    def add_handlers(self, *handlers: Any) -> Self:
        """Register pre-built request handlers or handler chains, in order."""
        for handler in handlers:
            if isinstance(handler, HandlerChain):
                self._chains.append(handler)
            else:
                self._chains.append(HandlerChain(handler=handler))
        return self

    # --- Global interceptors ----------------------------------------------

    def add_request_interceptors(self, *interceptors: Any) -> Self:
        """Register global interceptors run before routing."""
        self._request_interceptors.extend(self._normalize_interceptors(interceptors))
        return self

    def add_response_interceptors(self, *interceptors: Any) -> Self:
        """Register global interceptors run after the chain completes."""
        self._response_interceptors.extend(self._normalize_interceptors(interceptors))
        return self

    # --- Error handlers ---------------------------------------------------

    def add_error_handler(
        self,
        matcher: type[BaseException] | Callable[[Any, Exception], Any],
        executor: Callable[[Any, Exception], Any],
    ) -> Self:
        """Register a recovery route.

        *matcher* is an exception type (accepts instances of it) or a
        predicate over ``(input, error)``.
        """
        if isinstance(matcher, type) and issubclass(matcher, BaseException):
            exc_type = matcher

            def matches_exception(_handler_input: Any, error: Exception) -> bool:
                return isinstance(error, exc_type)

            predicate: Callable[[Any, Exception], Any] = matches_exception
            description = exc_type.__name__
        elif callable(matcher):
            predicate = matcher
            description = component_name(matcher)
        else:
            raise RegistrationError(
                f"Incompatible matcher type: {type(matcher).__name__}", scope=self._scope
            )
        if not callable(executor):
            raise RegistrationError(
                f"Incompatible executor type: {type(executor).__name__}", scope=self._scope
            )
        self._error_handlers.append(
            FunctionErrorHandler(predicate, executor, matcher_description=description)
        )
        return self

    def add_error_handlers(self, *handlers: Any) -> Self:
        """Register pre-built error handlers, in order."""
        self._error_handlers.extend(handlers)
        return self

    # --- Finalization -----------------------------------------------------

    def build(self) -> Configuration:
        """Produce an immutable Configuration from the accumulated state."""
        return Configuration(
            request_mappers=(RequestMapper(self._chains, name=self._mapper_name),),
            handler_adapters=(GenericHandlerAdapter(),),
            error_mapper=ErrorMapper(self._error_handlers) if self._error_handlers else None,
            request_interceptors=tuple(self._request_interceptors),
            response_interceptors=tuple(self._response_interceptors),
        )

    def _normalize_interceptors(self, interceptors: Iterable[Any]) -> tuple[Any, ...]:
        normalized: list[Any] = []
        for interceptor in interceptors:
            if callable(getattr(interceptor, "process", None)):
                normalized.append(interceptor)
            elif callable(interceptor):
                normalized.append(FunctionInterceptor(interceptor))
            else:
                raise RegistrationError(
                    f"Incompatible executor type: {type(interceptor).__name__}",
                    scope=self._scope,
                )
        return tuple(normalized)
