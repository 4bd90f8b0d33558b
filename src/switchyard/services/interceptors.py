"""Stock interceptors for skills built on :class:`HandlerInput`.

* RequestValidationInterceptor — structural checks, raises on failure.
* SlotSanitizationInterceptor — scrubs slot values in place.
* RequestLoggingInterceptor / ResponseLoggingInterceptor — structured
  request and response log lines via structlog.

INVARIANT: Logging interceptors never fail a request.
"""

from __future__ import annotations

import re
import time
from collections.abc import Iterable
from typing import TYPE_CHECKING

import structlog

from switchyard.domain.envelope import INTENT_REQUEST, RequestEnvelope
from switchyard.errors import RequestValidationError

if TYPE_CHECKING:
    from switchyard.domain.envelope import Response
    from switchyard.services.skill import HandlerInput

log = structlog.get_logger(__name__)

START_TIME_ATTRIBUTE = "processing_start"
SANITIZED_INPUT_ATTRIBUTE = "sanitized_input"


# --- Validation ---------------------------------------------------------


def validate_envelope(envelope: RequestEnvelope) -> list[str]:
    """Return every structural problem found on *envelope*, in order."""
    errors: list[str] = []
    if not envelope.version:
        errors.append("Missing request version")

    request = envelope.request
    if request is None:
        errors.append("Missing request object")
        return errors
    if not request.type:
        errors.append("Missing request type")
    if not request.request_id:
        errors.append("Missing request ID")

    session = envelope.session
    if session is not None:
        if not session.session_id:
            errors.append("Missing session ID")
        if session.user is None or not session.user.user_id:
            errors.append("Missing user ID")

    if request.type == INTENT_REQUEST:
        if request.intent is None:
            errors.append("Missing intent object")
        elif not request.intent.name:
            errors.append("Missing intent name")
    return errors


class RequestValidationInterceptor:
    """Rejects structurally invalid envelopes before routing."""

    name = "RequestValidationInterceptor"

    def process(self, handler_input: HandlerInput) -> None:
        errors = validate_envelope(handler_input.request_envelope)
        if errors:
            raise RequestValidationError(errors, scope=self.name)


# --- Sanitization -------------------------------------------------------

_UNSAFE_CHARS = re.compile(r"[<>\"'&]")
_WHITESPACE = re.compile(r"\s+")


def sanitize_text(value: str, *, max_length: int = 1000) -> str:
    """Strip markup characters, collapse whitespace, trim and truncate."""
    cleaned = _UNSAFE_CHARS.sub("", value)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    return cleaned[:max_length]


class SlotSanitizationInterceptor:
    """Rewrites intent slot values in place with :func:`sanitize_text`.

    The sanitized value of the first slot named in *question_slots* is
    stored as the ``sanitized_input`` request attribute.
    """

    name = "SlotSanitizationInterceptor"

    def __init__(
        self,
        *,
        max_length: int = 1000,
        question_slots: Iterable[str] = ("question", "Query"),
    ) -> None:
        self._max_length = max_length
        self._question_slots = tuple(question_slots)

    def process(self, handler_input: HandlerInput) -> None:
        request = handler_input.request_envelope.request
        if request is None or request.type != INTENT_REQUEST or request.intent is None:
            return

        attributes = handler_input.attributes_manager.get_request_attributes()
        for slot_name, slot in request.intent.slots.items():
            if slot.value is None:
                continue
            slot.value = sanitize_text(slot.value, max_length=self._max_length)
            if slot_name in self._question_slots:
                attributes.setdefault(SANITIZED_INPUT_ATTRIBUTE, slot.value)


# --- Logging ------------------------------------------------------------


class RequestLoggingInterceptor:
    """Logs one ``request.received`` line and records the start time."""

    name = "RequestLoggingInterceptor"

    def process(self, handler_input: HandlerInput) -> None:
        attributes = handler_input.attributes_manager.get_request_attributes()
        attributes[START_TIME_ATTRIBUTE] = time.perf_counter()
        try:
            envelope = handler_input.request_envelope
            request = envelope.request
            log.info(
                "request.received",
                request_id=request.request_id if request else None,
                session_id=envelope.session.session_id if envelope.session else None,
                user_id=envelope.user_id,
                request_name=handler_input.request_name,
                locale=request.locale if request else None,
                new_session=envelope.session.new if envelope.session else False,
                sanitized_input_length=len(attributes.get(SANITIZED_INPUT_ATTRIBUTE) or ""),
            )
        except Exception:
            log.warning("request.logging_failed", exc_info=True)


class ResponseLoggingInterceptor:
    """Logs one ``response.sent`` line with timing and response shape."""

    name = "ResponseLoggingInterceptor"

    def process(self, handler_input: HandlerInput, output: Response | None) -> None:
        try:
            attributes = handler_input.attributes_manager.get_request_attributes()
            started = attributes.get(START_TIME_ATTRIBUTE)
            elapsed_ms = (
                round((time.perf_counter() - started) * 1000, 2) if started is not None else None
            )
            request = handler_input.request_envelope.request
            speech = output.output_speech if output is not None else None
            log.info(
                "response.sent",
                request_id=request.request_id if request else None,
                request_name=handler_input.request_name,
                processing_time_ms=elapsed_ms,
                speech_type=speech.type if speech else None,
                should_end_session=output.should_end_session if output is not None else None,
                has_card=bool(output is not None and output.card),
                has_reprompt=bool(output is not None and output.reprompt),
            )
        except Exception:
            log.warning("response.logging_failed", exc_info=True)
