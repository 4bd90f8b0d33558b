"""Skill — turns a request envelope into a response envelope.

The skill is the host-facing container around a :class:`Dispatcher`.  Per
invocation it verifies the target skill id, builds one mutable
:class:`HandlerInput`, dispatches it, and wraps the resulting
:class:`Response` in a :class:`ResponseEnvelope`.

INVARIANT: Skill id verification happens before dispatch and is never
routed through error handlers.
"""

from __future__ import annotations

import logging
import platform
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Self

from switchyard import __version__
from switchyard.dispatch.builder import Configuration, ConfigurationBuilder, merge_configurations
from switchyard.dispatch.dispatcher import Dispatcher
from switchyard.domain.attributes import AttributesManager
from switchyard.domain.envelope import (
    RequestEnvelope,
    Response,
    ResponseEnvelope,
    resolve_request_name,
)
from switchyard.domain.response import ResponseBuilder
from switchyard.errors import SkillIdMismatchError

if TYPE_CHECKING:
    from switchyard.config.settings import SwitchyardSettings

logger = logging.getLogger(__name__)

type HostInvoker = Callable[[dict[str, Any], Any], Awaitable[dict[str, Any]]]


@dataclass
class HandlerInput:
    """Mutable per-request context threaded through every pipeline stage.

    One instance is created per invocation and shared by reference with
    every interceptor, handler and error handler of that dispatch.
    """

    request_envelope: RequestEnvelope
    context: Any = None
    attributes_manager: AttributesManager = field(init=False)
    response_builder: ResponseBuilder = field(default_factory=ResponseBuilder)

    def __post_init__(self) -> None:
        self.attributes_manager = AttributesManager(self.request_envelope)

    @property
    def request_name(self) -> str | None:
        """Intent name for intent requests, request type otherwise."""
        return resolve_request_name(self.request_envelope)


def user_agent(custom_user_agent: str | None = None) -> str:
    """Build the user agent string reported on every response envelope."""
    agent = f"switchyard/{__version__} Python/{platform.python_version()}"
    if custom_user_agent:
        agent = f"{agent} {custom_user_agent}"
    return agent


class Skill:
    """Top-level container for one dispatcher configuration.

    Parameters:
        configuration: The dispatcher configuration.
        skill_id: When set, requests for any other application id are
            rejected with :class:`SkillIdMismatchError`.
        custom_user_agent: Appended to the reported user agent.
    """

    def __init__(
        self,
        configuration: Configuration,
        *,
        skill_id: str | None = None,
        custom_user_agent: str | None = None,
    ) -> None:
        self.configuration = configuration
        self.skill_id = skill_id
        self.custom_user_agent = custom_user_agent
        self._dispatcher = Dispatcher.from_configuration(configuration)
        self._user_agent = user_agent(custom_user_agent)

    def extend(self, *configurations: Configuration) -> Skill:
        """Return a new Skill that also routes through *configurations*.

        Their request mappers are consulted after this skill's own, so
        existing routes keep precedence.
        """
        return Skill(
            merge_configurations(self.configuration, *configurations),
            skill_id=self.skill_id,
            custom_user_agent=self.custom_user_agent,
        )

    async def invoke(
        self,
        envelope: RequestEnvelope | dict[str, Any],
        context: Any = None,
    ) -> ResponseEnvelope:
        """Dispatch one request envelope and wrap the output.

        Raises:
            SkillIdMismatchError: The envelope targets another skill.
        """
        request_envelope = (
            envelope
            if isinstance(envelope, RequestEnvelope)
            else RequestEnvelope.model_validate(envelope)
        )
        self._verify_skill_id(request_envelope)

        handler_input = HandlerInput(request_envelope=request_envelope, context=context)
        response: Response | None = await self._dispatcher.dispatch(handler_input)

        session_attributes = (
            handler_input.attributes_manager.get_session_attributes()
            if handler_input.attributes_manager.in_session
            else None
        )
        return ResponseEnvelope(
            version="1.0",
            response=response,
            user_agent=self._user_agent,
            session_attributes=session_attributes,
        )

    def _verify_skill_id(self, envelope: RequestEnvelope) -> None:
        if self.skill_id is None:
            return
        if envelope.application_id != self.skill_id:
            logger.warning(
                "Rejected request for application %s (expected %s)",
                envelope.application_id,
                self.skill_id,
            )
            raise SkillIdMismatchError(
                "Skill ID verification failed!", scope=self.__class__.__name__
            )


class SkillBuilder(ConfigurationBuilder):
    """ConfigurationBuilder that produces a :class:`Skill`.

    Identifier matchers compare against :attr:`HandlerInput.request_name`.

    Usage::

        skill = (
            SkillBuilder()
            .with_skill_id("amzn1.ask.skill.example")
            .add_handler("LaunchRequest", welcome)
            .add_handler("AMAZON.StopIntent", goodbye)
            .add_error_handlers(CatchAllErrorHandler())
            .create()
        )
    """

    def __init__(self) -> None:
        super().__init__(mapper_name="SkillBuilder")
        self._skill_id: str | None = None
        self._custom_user_agent: str | None = None

    def with_skill_id(self, skill_id: str | None) -> Self:
        self._skill_id = skill_id
        return self

    def with_custom_user_agent(self, custom_user_agent: str | None) -> Self:
        self._custom_user_agent = custom_user_agent
        return self

    def create(self) -> Skill:
        return Skill(
            self.build(),
            skill_id=self._skill_id,
            custom_user_agent=self._custom_user_agent,
        )

    def handler(self) -> HostInvoker:
        """Return a host invoker ``(event, context) -> dict`` for this skill.

        The skill is created once; the returned coroutine function can be
        handed to any async host (a serverless runtime, a web route).
        """
        skill = self.create()

        async def invoke(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
            response_envelope = await skill.invoke(event, context)
            return response_envelope.to_wire()

        return invoke


def standard_skill_builder(settings: SwitchyardSettings) -> SkillBuilder:
    """SkillBuilder preloaded with the stock interceptors enabled in *settings*.

    Global request interceptors run as validation, slot sanitization, then
    request logging; response logging runs after every handler.  The
    validation error handler is registered first so malformed requests
    get the request-error answer; register a catch-all last.
    """
    from switchyard.services.interceptors import (
        RequestLoggingInterceptor,
        RequestValidationInterceptor,
        ResponseLoggingInterceptor,
        SlotSanitizationInterceptor,
    )
    from switchyard.services.recovery import ValidationErrorHandler

    cfg = settings.interceptors
    builder = (
        SkillBuilder()
        .with_skill_id(settings.skill.skill_id)
        .with_custom_user_agent(settings.skill.custom_user_agent)
    )
    if cfg.validate_requests:
        builder.add_request_interceptors(RequestValidationInterceptor())
        builder.add_error_handlers(ValidationErrorHandler())
    if cfg.sanitize_slots:
        builder.add_request_interceptors(
            SlotSanitizationInterceptor(
                max_length=cfg.sanitize_max_length,
                question_slots=cfg.question_slots,
            )
        )
    if cfg.log_requests:
        builder.add_request_interceptors(RequestLoggingInterceptor())
    if cfg.log_responses:
        builder.add_response_interceptors(ResponseLoggingInterceptor())
    return builder
