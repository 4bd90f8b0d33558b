"""Shared pytest fixtures and test helpers for switchyard tests."""

from __future__ import annotations

import sys
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from switchyard.config.settings import SwitchyardSettings
from switchyard.domain.envelope import RequestEnvelope
from switchyard.services.skill import HandlerInput

APPLICATION_ID = "amzn1.ask.skill.test"


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> SwitchyardSettings:
    """Settings rooted at an empty temp project with no config file."""
    monkeypatch.delenv("SWITCHYARD_CONFIG", raising=False)
    return SwitchyardSettings.from_cli(project_root=tmp_path)


@pytest.fixture
def _isolated_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp project root so the CLI discovers nothing else.

    Use via ``@pytest.mark.usefixtures("_isolated_project")``.
    """
    monkeypatch.delenv("SWITCHYARD_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def skill_module(tmp_path: Path) -> Generator[Path]:
    """Directory on ``sys.path`` for skill modules written by a test.

    Modules imported from it are dropped from ``sys.modules`` afterwards
    so each test sees its own source.
    """
    before = set(sys.modules)
    sys.path.insert(0, str(tmp_path))
    try:
        yield tmp_path
    finally:
        sys.path.remove(str(tmp_path))
        for name in set(sys.modules) - before:
            if name.startswith("skill_"):
                sys.modules.pop(name, None)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def make_payload(
    request_type: str = "IntentRequest",
    *,
    intent_name: str | None = "HelloIntent",
    slots: dict[str, str | None] | None = None,
    in_session: bool = True,
    attributes: dict[str, Any] | None = None,
    application_id: str = APPLICATION_ID,
    request_id: str = "req-1",
) -> dict[str, Any]:
    """Build a wire-format request envelope dict."""
    request: dict[str, Any] = {
        "type": request_type,
        "requestId": request_id,
        "timestamp": "2024-01-01T00:00:00Z",
        "locale": "en-US",
    }
    if request_type == "IntentRequest" and intent_name is not None:
        request["intent"] = {
            "name": intent_name,
            "confirmationStatus": "NONE",
            "slots": {
                name: {"name": name, "value": value} for name, value in (slots or {}).items()
            },
        }
    payload: dict[str, Any] = {
        "version": "1.0",
        "context": {
            "System": {
                "application": {"applicationId": application_id},
                "user": {"userId": "user-1"},
            }
        },
        "request": request,
    }
    if in_session:
        payload["session"] = {
            "new": False,
            "sessionId": "session-1",
            "application": {"applicationId": application_id},
            "user": {"userId": "user-1"},
            "attributes": dict(attributes or {}),
        }
    return payload


def make_input(request_type: str = "IntentRequest", **kwargs: Any) -> HandlerInput:
    """Build a HandlerInput around :func:`make_payload`."""
    envelope = RequestEnvelope.model_validate(make_payload(request_type, **kwargs))
    return HandlerInput(request_envelope=envelope)
