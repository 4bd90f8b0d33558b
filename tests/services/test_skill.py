"""Tests for Skill, SkillBuilder, HandlerInput and the standard builder."""

from __future__ import annotations

import logging
import platform
from pathlib import Path
from typing import Any

import pytest

from switchyard import __version__
from switchyard.config.settings import SwitchyardSettings
from switchyard.dispatch.builder import ConfigurationBuilder
from switchyard.errors import NoHandlerFoundError, SkillIdMismatchError
from switchyard.services.interceptors import (
    RequestLoggingInterceptor,
    RequestValidationInterceptor,
    ResponseLoggingInterceptor,
    SlotSanitizationInterceptor,
)
from switchyard.services.recovery import CatchAllErrorHandler, ValidationErrorHandler
from switchyard.services.skill import (
    HandlerInput,
    SkillBuilder,
    standard_skill_builder,
    user_agent,
)
from tests.conftest import APPLICATION_ID, make_input, make_payload


def hello(handler_input: HandlerInput) -> Any:
    return handler_input.response_builder.speak("Hello").get_response()


def speaker(text: str) -> Any:
    def speak(handler_input: HandlerInput) -> Any:
        return handler_input.response_builder.speak(text).get_response()

    return speak


def count_turns(handler_input: HandlerInput) -> Any:
    attributes = handler_input.attributes_manager.get_session_attributes()
    attributes["turns"] = attributes.get("turns", 0) + 1
    return handler_input.response_builder.speak("Counted").get_response()


class TestHandlerInput:
    def test_request_name(self) -> None:
        assert make_input(intent_name="HelloIntent").request_name == "HelloIntent"
        assert make_input("LaunchRequest").request_name == "LaunchRequest"

    def test_fresh_builder_and_attributes_per_input(self) -> None:
        first, second = make_input(), make_input()
        assert first.response_builder is not second.response_builder
        assert first.attributes_manager.in_session is True


class TestUserAgent:
    def test_default(self) -> None:
        assert user_agent() == f"switchyard/{__version__} Python/{platform.python_version()}"

    def test_custom_suffix(self) -> None:
        assert user_agent("my-skill/2.0").endswith(" my-skill/2.0")


class TestSkillInvoke:
    async def test_routes_by_intent_name(self) -> None:
        skill = SkillBuilder().add_handler("HelloIntent", hello).create()
        envelope = await skill.invoke(make_payload())
        assert envelope.version == "1.0"
        assert envelope.response is not None
        assert envelope.response.output_speech is not None
        assert envelope.response.output_speech.ssml == "<speak>Hello</speak>"
        assert envelope.user_agent == user_agent()

    async def test_routes_by_request_type(self) -> None:
        skill = (
            SkillBuilder()
            .add_handler("HelloIntent", hello)
            .add_handler("LaunchRequest", speaker("Welcome"))
            .create()
        )
        envelope = await skill.invoke(make_payload("LaunchRequest"))
        assert envelope.response is not None
        assert envelope.response.output_speech is not None
        assert envelope.response.output_speech.ssml == "<speak>Welcome</speak>"

    async def test_session_attributes_echoed(self) -> None:
        skill = SkillBuilder().add_handler("HelloIntent", count_turns).create()
        envelope = await skill.invoke(make_payload(attributes={"turns": 2}))
        assert envelope.session_attributes == {"turns": 3}

    async def test_out_of_session_has_no_session_attributes(self) -> None:
        skill = SkillBuilder().add_handler("HelloIntent", hello).create()
        envelope = await skill.invoke(make_payload(in_session=False))
        assert envelope.session_attributes is None
        assert "sessionAttributes" not in envelope.to_wire()

    async def test_context_reaches_handler(self) -> None:
        seen: list[Any] = []

        def capture(handler_input: HandlerInput) -> None:
            seen.append(handler_input.context)

        skill = SkillBuilder().add_handler("HelloIntent", capture).create()
        envelope = await skill.invoke(make_payload(), context={"aws_request_id": "abc"})
        assert seen == [{"aws_request_id": "abc"}]
        assert envelope.response is None

    async def test_unrouted_request_raises(self) -> None:
        skill = SkillBuilder().add_handler("HelloIntent", hello).create()
        with pytest.raises(NoHandlerFoundError):
            await skill.invoke(make_payload(intent_name="OtherIntent"))


class TestSkillId:
    async def test_matching_id_dispatches(self) -> None:
        skill = (
            SkillBuilder().with_skill_id(APPLICATION_ID).add_handler("HelloIntent", hello).create()
        )
        envelope = await skill.invoke(make_payload())
        assert envelope.response is not None

    async def test_mismatch_raises_before_dispatch(self, caplog: pytest.LogCaptureFixture) -> None:
        calls: list[str] = []

        def never(handler_input: HandlerInput) -> None:
            calls.append("called")

        skill = (
            SkillBuilder()
            .with_skill_id("amzn1.ask.skill.other")
            .add_request_interceptors(lambda i: calls.append("interceptor"))
            .add_handler("HelloIntent", never)
            .add_error_handlers(CatchAllErrorHandler())
            .create()
        )
        with caplog.at_level(logging.WARNING, logger="switchyard"):
            with pytest.raises(SkillIdMismatchError, match="Skill ID verification failed!"):
                await skill.invoke(make_payload())
        assert calls == []
        assert "Rejected request" in caplog.text


class TestSkillBuilder:
    async def test_custom_user_agent(self) -> None:
        skill = (
            SkillBuilder()
            .with_custom_user_agent("demo/1.0")
            .add_handler("HelloIntent", hello)
            .create()
        )
        envelope = await skill.invoke(make_payload())
        assert envelope.user_agent == user_agent("demo/1.0")

    async def test_handler_returns_wire_dict(self) -> None:
        invoke = SkillBuilder().add_handler("HelloIntent", hello).handler()
        result = await invoke(make_payload(), None)
        assert result["version"] == "1.0"
        assert result["response"]["outputSpeech"]["ssml"] == "<speak>Hello</speak>"
        assert result["userAgent"].startswith("switchyard/")

    def test_mapper_named_after_builder(self) -> None:
        skill = SkillBuilder().create()
        assert skill.configuration.request_mappers[0].name == "SkillBuilder"


class TestExtend:
    async def test_extension_routes_after_own(self) -> None:
        skill = SkillBuilder().add_handler("HelloIntent", hello).create()
        extra = (
            ConfigurationBuilder()
            .add_handler("HelloIntent", speaker("shadowed"))
            .add_handler("ExtraIntent", speaker("extra"))
            .build()
        )
        extended = skill.extend(extra)
        own = await extended.invoke(make_payload())
        added = await extended.invoke(make_payload(intent_name="ExtraIntent"))
        assert own.response is not None and own.response.output_speech is not None
        assert own.response.output_speech.ssml == "<speak>Hello</speak>"
        assert added.response is not None and added.response.output_speech is not None
        assert added.response.output_speech.ssml == "<speak>extra</speak>"

    def test_extend_keeps_identity_settings(self) -> None:
        skill = SkillBuilder().with_skill_id("sid").with_custom_user_agent("ua").create()
        extended = skill.extend()
        assert extended is not skill
        assert extended.skill_id == "sid"
        assert extended.custom_user_agent == "ua"


class TestStandardSkillBuilder:
    def test_all_stock_interceptors_by_default(self, settings: SwitchyardSettings) -> None:
        configuration = standard_skill_builder(settings).build()
        assert [type(i) for i in configuration.request_interceptors] == [
            RequestValidationInterceptor,
            SlotSanitizationInterceptor,
            RequestLoggingInterceptor,
        ]
        assert [type(i) for i in configuration.response_interceptors] == [
            ResponseLoggingInterceptor
        ]
        assert configuration.error_mapper is not None
        assert [type(h) for h in configuration.error_mapper.handlers] == [ValidationErrorHandler]

    def test_disabled_interceptors(self, tmp_path: Path) -> None:
        (tmp_path / "switchyard.toml").write_text(
            "[interceptors]\n"
            "validate_requests = false\n"
            "sanitize_slots = false\n"
            "log_requests = false\n"
            "log_responses = false\n"
        )
        settings = SwitchyardSettings.from_cli(config_path=str(tmp_path / "switchyard.toml"))
        configuration = standard_skill_builder(settings).build()
        assert configuration.request_interceptors == ()
        assert configuration.response_interceptors == ()
        assert configuration.error_mapper is None

    async def test_invalid_request_answered(self, settings: SwitchyardSettings) -> None:
        skill = standard_skill_builder(settings).add_handler("HelloIntent", hello).create()
        payload = make_payload()
        del payload["request"]["requestId"]
        envelope = await skill.invoke(payload)
        assert envelope.response is not None
        assert envelope.response.output_speech is not None
        assert "issue processing your request" in (envelope.response.output_speech.ssml or "")
        assert envelope.response.should_end_session is False

    async def test_skill_id_from_settings(self, tmp_path: Path) -> None:
        config = tmp_path / "switchyard.toml"
        config.write_text('[skill]\nskill_id = "amzn1.ask.skill.other"\n')
        settings = SwitchyardSettings.from_cli(config_path=str(config))
        skill = standard_skill_builder(settings).add_handler("HelloIntent", hello).create()
        with pytest.raises(SkillIdMismatchError):
            await skill.invoke(make_payload())
