"""Subcommand modules for switchyard.

Provides register_commands(), which uses deferred imports to keep
``switchyard --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from switchyard.commands.dispatch import dispatch
    from switchyard.commands.routes import routes

    cli.add_command(dispatch)
    cli.add_command(routes)
