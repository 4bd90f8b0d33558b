"""Exception taxonomy for switchyard.

INVARIANT: Routing failures are configuration defects and are never retried.
Every error records the *scope* (component name) that raised it so the
hosting invoker can tell a dispatcher failure from a builder failure.
"""

from __future__ import annotations


class DispatchError(Exception):
    """Base class for every error raised by switchyard itself."""

    def __init__(self, message: str, *, scope: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.scope = scope

    def __str__(self) -> str:
        return self.message


class NoHandlerFoundError(DispatchError):
    """No registered chain accepted the input."""


class NoAdapterFoundError(DispatchError):
    """The resolved handler has a shape no registered adapter can invoke."""


class RegistrationError(DispatchError, TypeError):
    """A matcher, executor or interceptor of an unsupported type was registered."""


class SkillIdMismatchError(DispatchError):
    """The request targets a different skill than the one configured."""


class AttributesError(DispatchError):
    """Session attributes were accessed on an out-of-session request."""


class RequestValidationError(DispatchError):
    """The inbound request envelope failed structural validation.

    Attributes:
        errors: Every problem found, in detection order.
    """

    def __init__(self, errors: list[str], *, scope: str | None = None) -> None:
        super().__init__(f"Request validation failed: {'; '.join(errors)}", scope=scope)
        self.errors = list(errors)
