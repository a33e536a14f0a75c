"""Command group: session scheduling and lifecycle."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import click

from trainerctl.commands._base import INSTANT, TrainerGroup
from trainerctl.domain.lifecycle import SessionMode
from trainerctl.services.lifecycle import LifecycleService
from trainerctl.services.scheduling import ScheduleService

if TYPE_CHECKING:
    from trainerctl.commands._context import AppContext


_SESSION_EXAMPLES = """\
  trainerctl session schedule 3 2026-11-02T09:00:00Z --duration 45
  trainerctl session complete 12
  trainerctl session reschedule 12 2026-11-03T10:00:00Z
  trainerctl session agenda --day 2026-11-02"""


@click.group(cls=TrainerGroup, examples=_SESSION_EXAMPLES)
@click.pass_obj
def session(app: AppContext) -> None:
    """Schedule sessions and move them through their lifecycle."""


@session.command(
    examples="""\
  trainerctl session schedule 3 2026-11-02T09:00:00Z
  trainerctl session schedule 3 2026-11-02T09:00:00+01:00 --end 2026-11-02T10:30:00+01:00
  trainerctl session schedule 3 2026-11-02T18:00:00Z --mode online --title Mobility"""
)
@click.argument("client_id", type=int)
@click.argument("start_at", type=INSTANT)
@click.option("--end", "end_at", type=INSTANT, default=None, help="End time.")
@click.option(
    "--duration",
    "duration_minutes",
    type=click.IntRange(min=1),
    default=None,
    help="Length in minutes when --end is omitted.",
)
@click.option(
    "--mode",
    type=click.Choice([m.value for m in SessionMode]),
    default=None,
    help="Session mode (default from [sessions] default_mode).",
)
@click.option("--title", default=None, help="Short label.")
@click.option("--notes", default=None, help="Free-form notes.")
@click.pass_obj
def schedule(
    app: AppContext,
    client_id: int,
    start_at: datetime,
    end_at: datetime | None,
    duration_minutes: int | None,
    mode: str | None,
    title: str | None,
    notes: str | None,
) -> None:
    """Schedule a session for CLIENT_ID starting at START_AT."""
    if end_at is not None and duration_minutes is not None:
        raise click.UsageError("Pass either --end or --duration, not both")
    app.emit(
        LifecycleService(app.studio).schedule(
            app.trainer_id,
            client_id,
            start_at,
            end_at=end_at,
            duration_minutes=duration_minutes,
            mode=mode,
            title=title,
            notes=notes,
        )
    )


@session.command(examples="  trainerctl session pending 12")
@click.argument("session_id", type=int)
@click.pass_obj
def pending(app: AppContext, session_id: int) -> None:
    """Mark a session as pending confirmation."""
    app.emit(LifecycleService(app.studio).mark_pending(session_id))


@session.command(examples="  trainerctl session scheduled 12")
@click.argument("session_id", type=int)
@click.pass_obj
def scheduled(app: AppContext, session_id: int) -> None:
    """Mark a pending session as scheduled again."""
    app.emit(LifecycleService(app.studio).mark_scheduled(session_id))


@session.command(examples="  trainerctl session complete 12")
@click.argument("session_id", type=int)
@click.pass_obj
def complete(app: AppContext, session_id: int) -> None:
    """Complete a session, using a package credit when one is available."""
    app.emit(LifecycleService(app.studio).complete(session_id))


@session.command(examples="  trainerctl session cancel 12")
@click.argument("session_id", type=int)
@click.pass_obj
def cancel(app: AppContext, session_id: int) -> None:
    """Cancel a session. Package credits are not touched."""
    app.emit(LifecycleService(app.studio).cancel(session_id))


@session.command(examples="  trainerctl session reschedule 12 2026-11-03T10:00:00Z")
@click.argument("session_id", type=int)
@click.argument("new_start_at", type=INSTANT)
@click.pass_obj
def reschedule(app: AppContext, session_id: int, new_start_at: datetime) -> None:
    """Move a session to NEW_START_AT, keeping its duration."""
    app.emit(ScheduleService(app.studio).reschedule(session_id, new_start_at))


@session.command(
    examples="""\
  trainerctl session agenda
  trainerctl session agenda --day 2026-11-02"""
)
@click.option("--day", default=None, help="UTC day (YYYY-MM-DD), default today.")
@click.pass_obj
def agenda(app: AppContext, day: str | None) -> None:
    """List the trainer's sessions on one day."""
    app.emit(LifecycleService(app.studio).agenda(app.trainer_id, day=day))
