"""ResponseBuilder — accumulates one Response across pipeline stages.

INVARIANT: ``get_response()`` always returns the same Response instance,
so whatever a handler built is what response interceptors observe and
mutate.
"""

from __future__ import annotations

import re
from typing import Any, Self

from switchyard.domain.envelope import Card, OutputSpeech, Reprompt, Response

_SPEAK_TAG = re.compile(r"^\s*<speak>(.*)</speak>\s*$", re.DOTALL)


def _trim_speak(ssml: str) -> str:
    match = _SPEAK_TAG.match(ssml)
    return match.group(1) if match else ssml


class ResponseBuilder:
    """Fluent builder over a single mutable :class:`Response`."""

    def __init__(self) -> None:
        self._response = Response()

    def speak(self, speech: str, play_behavior: str | None = None) -> Self:
        """Set the spoken output, wrapping it as SSML."""
        self._response.output_speech = OutputSpeech(
            type="SSML",
            ssml=f"<speak>{_trim_speak(speech)}</speak>",
            play_behavior=play_behavior,
        )
        return self

    def reprompt(self, speech: str, play_behavior: str | None = None) -> Self:
        """Set the reprompt and keep the session open."""
        self._response.reprompt = Reprompt(
            output_speech=OutputSpeech(
                type="SSML",
                ssml=f"<speak>{_trim_speak(speech)}</speak>",
                play_behavior=play_behavior,
            )
        )
        self._response.should_end_session = False
        return self

    def with_simple_card(self, title: str, content: str) -> Self:
        self._response.card = Card(type="Simple", title=title, content=content)
        return self

    def with_should_end_session(self, value: bool) -> Self:
        self._response.should_end_session = value
        return self

    def add_directive(self, directive: dict[str, Any]) -> Self:
        if self._response.directives is None:
            self._response.directives = []
        self._response.directives.append(directive)
        return self

    def get_response(self) -> Response:
        return self._response
