"""Stock error handlers answering with a spoken apology."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from switchyard.errors import RequestValidationError

if TYPE_CHECKING:
    from switchyard.domain.envelope import Response
    from switchyard.services.skill import HandlerInput

logger = logging.getLogger(__name__)

DEFAULT_REPROMPT = "What would you like to ask me?"


@dataclass(frozen=True)
class ErrorCategory:
    """Spoken answer for one family of failures."""

    title: str
    message: str
    keywords: tuple[str, ...] = ()

    def matches(self, error_message: str) -> bool:
        return any(keyword in error_message for keyword in self.keywords)


# First match wins; UNEXPECTED is the fallback.
ERROR_CATEGORIES: tuple[ErrorCategory, ...] = (
    ErrorCategory(
        "Connection Issue",
        "I'm having trouble connecting to the AI service right now. "
        "Please try again in a moment.",
        ("timeout", "API"),
    ),
    ErrorCategory(
        "Service Busy",
        "The AI service is busy right now. Please wait a moment and try again.",
        ("rate limit",),
    ),
    ErrorCategory(
        "Technical Issue",
        "I'm experiencing a temporary technical issue. Please try again later.",
        ("authentication", "unauthorized"),
    ),
    ErrorCategory(
        "Speech Recognition Issue",
        "I didn't catch what you said. Could you please repeat your question?",
        ("speech", "recognition"),
    ),
    ErrorCategory(
        "Startup Issue",
        "I'm having trouble starting up, but I'm ready to help now. "
        "What would you like to ask me?",
        ("skill activation", "launch"),
    ),
)

UNEXPECTED = ErrorCategory(
    "Unexpected Error",
    "I'm sorry, I encountered an unexpected issue. Could you please try again?",
)


def categorize(error: BaseException) -> ErrorCategory:
    """Pick the spoken category for *error* from its message."""
    message = str(error)
    for category in ERROR_CATEGORIES:
        if category.matches(message):
            return category
    return UNEXPECTED


class ValidationErrorHandler:
    """Answers requests rejected by :class:`RequestValidationInterceptor`."""

    name = "ValidationErrorHandler"

    def can_handle(self, handler_input: HandlerInput, error: Exception) -> bool:
        return isinstance(error, RequestValidationError)

    def handle(self, handler_input: HandlerInput, error: Exception) -> Response:
        # Validation details are logged, never spoken.
        logger.warning("Request validation errors: %s", getattr(error, "errors", [str(error)]))
        return (
            handler_input.response_builder.speak(
                "I'm sorry, there was an issue processing your request."
            )
            .with_simple_card("Request Error", "Please try your request again.")
            .with_should_end_session(False)
            .get_response()
        )


class CatchAllErrorHandler:
    """Accepts every error and answers with a categorized apology.

    Register it last: it never declines, so error handlers after it are
    never consulted.
    """

    name = "CatchAllErrorHandler"

    def __init__(self, *, card_prefix: str = "Assistant", reprompt: str = DEFAULT_REPROMPT) -> None:
        self._card_prefix = card_prefix
        self._reprompt = reprompt

    def can_handle(self, handler_input: HandlerInput, error: Exception) -> bool:
        return True

    def handle(self, handler_input: HandlerInput, error: Exception) -> Response:
        category = categorize(error)
        logger.error(
            "Unhandled %s while serving %s: %s",
            type(error).__name__,
            handler_input.request_name,
            error,
            exc_info=error,
        )
        return (
            handler_input.response_builder.speak(category.message)
            .reprompt(self._reprompt)
            .with_should_end_session(False)
            .with_simple_card(
                f"{self._card_prefix} - {category.title}",
                "Please try your request again. If the problem persists, try again later.",
            )
            .get_response()
        )
