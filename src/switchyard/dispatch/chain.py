"""HandlerChain — one handler plus its route-local interceptors."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from switchyard.dispatch.capabilities import RequestHandler, component_name


@dataclass(frozen=True)
class HandlerChain:
    """Binds a request handler to the interceptors scoped to its route.

    Built once at configuration time and never mutated afterward.  Absent
    interceptor lists are stored as empty tuples.
    """

    handler: RequestHandler[Any, Any]
    request_interceptors: tuple[Any, ...] = field(default_factory=tuple)
    response_interceptors: tuple[Any, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Accept any iterable at construction but store tuples.
        object.__setattr__(self, "request_interceptors", _freeze(self.request_interceptors))
        object.__setattr__(self, "response_interceptors", _freeze(self.response_interceptors))

    @property
    def name(self) -> str:
        return component_name(self.handler)

    def describe(self) -> dict[str, Any]:
        """Return a serializable summary used by ``switchyard routes``."""
        return {
            "handler": self.name,
            "matcher": getattr(self.handler, "matcher_description", None),
            "request_interceptors": [component_name(i) for i in self.request_interceptors],
            "response_interceptors": [component_name(i) for i in self.response_interceptors],
        }


def _freeze(items: Iterable[Any] | None) -> tuple[Any, ...]:
    if items is None:
        return ()
    return tuple(items)
