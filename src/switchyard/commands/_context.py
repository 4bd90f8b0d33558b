"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Provides a lazily built SkillRunner and centralized
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from switchyard.output.formatters import format_result

if TYPE_CHECKING:
    from switchyard.config.settings import SwitchyardSettings
    from switchyard.services.result import ServiceResult
    from switchyard.services.runner import SkillRunner


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The runner is created on first use so ``--help`` and ``--version``
    never trigger plugin discovery.
    """

    def __init__(self, settings: SwitchyardSettings) -> None:
        self.settings = settings
        self._runner: SkillRunner | None = None

        from switchyard.config.logging import configure_logging

        interceptors = settings.interceptors
        configure_logging(
            verbose=settings.verbose,
            log_json=settings.log_json,
            log_traffic=interceptors.log_requests or interceptors.log_responses,
        )

    @property
    def runner(self) -> SkillRunner:
        """The skill runner (created lazily on first access)."""
        if self._runner is None:
            from switchyard.services.runner import SkillRunner

            self._runner = SkillRunner(self.settings)
        return self._runner

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings go to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        output = format_result(
            result,
            json_output=self.settings.json_output,
            verbose=self.settings.verbose,
        )
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not self.settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
