"""Command: plan reminders for upcoming sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from trainerctl.commands._base import TrainerCommand

if TYPE_CHECKING:
    from trainerctl.commands._context import AppContext


@click.command(
    cls=TrainerCommand,
    examples="""\
  trainerctl reminders
  trainerctl reminders --minutes-before 60
  trainerctl --json reminders""",
)
@click.option(
    "--minutes-before",
    type=click.IntRange(min=0),
    default=None,
    help="Lead time (default from [reminders] minutes_before).",
)
@click.pass_obj
def reminders(app: AppContext, minutes_before: int | None) -> None:
    """List the reminders to schedule for upcoming sessions."""
    from trainerctl.services.reminders import ReminderService

    app.emit(ReminderService(app.studio).upcoming(app.trainer_id, minutes_before=minutes_before))
