"""Command: bring the studio database schema up to date."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from trainerctl.commands._base import TrainerCommand

if TYPE_CHECKING:
    from trainerctl.commands._context import AppContext


@click.command(
    cls=TrainerCommand,
    examples="""\
  trainerctl upgrade --check
  trainerctl upgrade
  trainerctl upgrade --stamp""",
)
@click.option("--check", "check_only", is_flag=True, help="List pending revisions only.")
@click.option(
    "--stamp",
    is_flag=True,
    help="Record the current schema as up to date without migrating.",
)
@click.pass_obj
def upgrade(app: AppContext, check_only: bool, stamp: bool) -> None:
    """Back up the database, then apply pending schema revisions."""
    if check_only and stamp:
        raise click.UsageError("--check and --stamp cannot be combined")

    from trainerctl.services.upgrade import UpgradeService

    svc = UpgradeService(app.studio)
    if check_only:
        app.emit(svc.check_pending())
    elif stamp:
        app.emit(svc.stamp_current())
    else:
        app.emit(svc.apply())
