"""Handler adapters — invoke heterogeneous handler shapes uniformly.

The dispatcher never calls a handler directly.  It asks each registered
adapter in order whether it ``supports()`` the resolved handler and lets
the first one ``execute()`` it.
"""

from __future__ import annotations

from typing import Any, Protocol

from switchyard.dispatch.capabilities import MaybeAwaitable, resolve


class HandlerAdapter(Protocol):
    """Structural bridge between the dispatcher and one handler shape."""

    def supports(self, handler: object) -> bool: ...

    def execute(self, handler_input: Any, handler: Any) -> MaybeAwaitable[Any]: ...


class GenericHandlerAdapter:
    """Adapter for handlers exposing callable ``can_handle`` and ``handle``."""

    name = "GenericHandlerAdapter"

    def supports(self, handler: object) -> bool:
        return callable(getattr(handler, "can_handle", None)) and callable(
            getattr(handler, "handle", None)
        )

    async def execute(self, handler_input: Any, handler: Any) -> Any:
        return await resolve(handler.handle(handler_input))
