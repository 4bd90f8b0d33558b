"""Command: list the composed routes of a skill."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from switchyard.commands._base import SwitchyardCommand

if TYPE_CHECKING:
    from switchyard.commands._context import AppContext


@click.command(
    cls=SwitchyardCommand,
    examples="""\
  switchyard routes my_skill:skill
  switchyard -v routes my_skill:build_skill
  switchyard --json routes my_skill.app:builder""",
)
@click.argument("target")
@click.pass_obj
def routes(app: AppContext, target: str) -> None:
    """Show handler chains, interceptors and error handlers of TARGET."""
    app.emit(app.runner.routes(target))
