"""Request and response envelope models.

Field names are snake_case in Python and camelCase on the wire
(``requestId``, ``shouldEndSession``).  Unknown wire fields are kept on
the model (``extra="allow"``) so handlers can reach interface-specific
data without this module enumerating it.

Envelope models are deliberately mutable: interceptors rewrite slot
values and response interceptors adjust the response in place.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

INTENT_REQUEST = "IntentRequest"


class WireModel(BaseModel):
    """Base for camelCase wire models."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize with wire aliases, omitting unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# --- Request side -------------------------------------------------------


class Application(WireModel):
    application_id: str | None = None


class User(WireModel):
    user_id: str | None = None
    access_token: str | None = None


class Session(WireModel):
    new: bool = False
    session_id: str | None = None
    application: Application | None = None
    user: User | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)


class SystemState(WireModel):
    application: Application | None = None
    user: User | None = None
    api_endpoint: str | None = None
    api_access_token: str | None = None


class RequestContext(WireModel):
    system: SystemState | None = Field(default=None, alias="System")


class Slot(WireModel):
    name: str | None = None
    value: str | None = None


class Intent(WireModel):
    name: str | None = None
    confirmation_status: str | None = None
    slots: dict[str, Slot] = Field(default_factory=dict)


class Request(WireModel):
    type: str | None = None
    request_id: str | None = None
    timestamp: str | None = None
    locale: str | None = None
    intent: Intent | None = None


class RequestEnvelope(WireModel):
    """One inbound request as delivered by the hosting platform."""

    version: str | None = None
    session: Session | None = None
    context: RequestContext | None = None
    request: Request | None = None

    @property
    def request_type(self) -> str | None:
        return self.request.type if self.request else None

    @property
    def intent_name(self) -> str | None:
        if self.request is None or self.request.intent is None:
            return None
        return self.request.intent.name

    @property
    def application_id(self) -> str | None:
        """Application id from ``context.System``, falling back to the session."""
        system = self.context.system if self.context else None
        if system is not None and system.application is not None:
            return system.application.application_id
        if self.session is not None and self.session.application is not None:
            return self.session.application.application_id
        return None

    @property
    def user_id(self) -> str | None:
        if self.session is not None and self.session.user is not None:
            return self.session.user.user_id
        system = self.context.system if self.context else None
        if system is not None and system.user is not None:
            return system.user.user_id
        return None


def resolve_request_name(envelope: RequestEnvelope) -> str | None:
    """Intent name for ``IntentRequest``; the request type otherwise."""
    if envelope.request_type == INTENT_REQUEST:
        return envelope.intent_name
    return envelope.request_type


def get_slot_value(envelope: RequestEnvelope, slot_name: str) -> str | None:
    """Value of *slot_name* on an intent request, or ``None``."""
    if envelope.request is None or envelope.request.intent is None:
        return None
    slot = envelope.request.intent.slots.get(slot_name)
    return slot.value if slot else None


# --- Response side ------------------------------------------------------


class OutputSpeech(WireModel):
    type: Literal["PlainText", "SSML"] = "SSML"
    text: str | None = None
    ssml: str | None = None
    play_behavior: str | None = None


class Reprompt(WireModel):
    output_speech: OutputSpeech


class Card(WireModel):
    type: str = "Simple"
    title: str | None = None
    content: str | None = None


class Response(WireModel):
    """Accumulated output of one dispatch."""

    output_speech: OutputSpeech | None = None
    reprompt: Reprompt | None = None
    card: Card | None = None
    directives: list[dict[str, Any]] | None = None
    should_end_session: bool | None = None


class ResponseEnvelope(WireModel):
    version: str = "1.0"
    response: Response | None = None
    user_agent: str | None = None
    session_attributes: dict[str, Any] | None = None
