"""Command: dispatch one request envelope through a skill."""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any, TextIO

import click

from switchyard.commands._base import SwitchyardCommand
from switchyard.services.result import ServiceResult

if TYPE_CHECKING:
    from switchyard.commands._context import AppContext


def _read_payload(request: TextIO) -> dict[str, Any] | ServiceResult:
    """Decode *request* as a JSON object, or return an INVALID_REQUEST failure."""
    try:
        payload = json.load(request)
    except json.JSONDecodeError as exc:
        return ServiceResult.failure("dispatch", "INVALID_REQUEST", f"Invalid JSON: {exc}")
    if not isinstance(payload, dict):
        return ServiceResult.failure(
            "dispatch", "INVALID_REQUEST", "Request payload must be a JSON object"
        )
    return payload


@click.command(
    cls=SwitchyardCommand,
    examples="""\
  switchyard dispatch my_skill:skill request.json
  switchyard dispatch my_skill:build_skill - < request.json
  switchyard --json dispatch my_skill.app:builder request.json""",
)
@click.argument("target")
@click.argument("request", type=click.File("r", encoding="utf-8"), default="-")
@click.pass_obj
def dispatch(app: AppContext, target: str, request: TextIO) -> None:
    """Dispatch REQUEST (a JSON envelope file, or - for stdin) to TARGET.

    TARGET is ``module:attribute`` naming a Skill, a SkillBuilder, or a
    factory returning one.
    """
    payload = _read_payload(request)
    if isinstance(payload, ServiceResult):
        app.emit(payload)
        return
    app.emit(asyncio.run(app.runner.dispatch(target, payload)))
