"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Provides lazy Studio initialization and centralized
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from trainerctl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from trainerctl.config.settings import TrainerSettings
    from trainerctl.infrastructure.studio import Studio
    from trainerctl.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The studio is lazily initialized on first use so ``--help`` and
    ``--version`` never touch the database.
    """

    def __init__(self, settings: TrainerSettings) -> None:
        self.settings = settings
        self._studio: Studio | None = None

        from trainerctl.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose,
            log_json=settings.log_json,
            trainer_id=settings.acting_trainer,
        )

        if settings.verbose:
            from trainerctl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def studio(self) -> Studio:
        """The studio instance (created lazily on first access)."""
        if self._studio is None:
            from trainerctl.infrastructure.studio import Studio

            self._studio = Studio(self.settings)
            self._studio.init_plugins()
        return self._studio

    @property
    def trainer_id(self) -> str:
        """The acting trainer; required by every trainer-scoped command."""
        trainer = self.settings.acting_trainer
        if not trainer:
            raise click.UsageError(
                "No trainer id: pass --trainer or set [identity] trainer_id in trainerctl.toml"
            )
        return trainer

    def close(self) -> None:
        """Dispose the studio engine if one was opened."""
        if self._studio is not None:
            self._studio.close()
            self._studio = None

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings go to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
