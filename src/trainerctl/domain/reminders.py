"""Reminder planning for upcoming sessions.

The planner is pure: it receives the sessions, the current instant and an
explicit set of keys already handed to the notification collaborator, and
returns the reminders still to schedule. The caller owns the key set and
decides its lifetime (one CLI process, one app session, ...).
"""

from __future__ import annotations

from collections.abc import Iterable, MutableSet
from datetime import datetime, timedelta

from pydantic import BaseModel

from trainerctl.domain.entities import Session
from trainerctl.domain.lifecycle import is_terminal

DEFAULT_MINUTES_BEFORE = 120
DEFAULT_SESSION_LENGTH = timedelta(hours=1)


class Reminder(BaseModel):
    """One calendar/notification entry for the device collaborator."""

    model_config = {"frozen": True}

    key: str
    session_id: int
    title: str
    start_at: datetime
    end_at: datetime
    notes: str
    trigger_at: datetime


def reminder_key(session: Session) -> str:
    """Idempotency key for a session's reminder.

    The start time is part of the key so a rescheduled session gets a
    fresh reminder.
    """
    return f"{session.id}@{session.start_at.isoformat()}"


def plan_reminders(
    sessions: Iterable[Session],
    *,
    now: datetime,
    scheduled_keys: MutableSet[str],
    minutes_before: int = DEFAULT_MINUTES_BEFORE,
) -> list[Reminder]:
    """Plan reminders for *sessions* not yet covered by *scheduled_keys*.

    Skips terminal sessions and sessions whose trigger time is not in the
    future. Keys of the returned reminders are added to *scheduled_keys*.
    """
    lead = timedelta(minutes=minutes_before)
    planned: list[Reminder] = []
    for session in sorted(sessions, key=lambda s: (s.start_at, s.id)):
        if is_terminal(session.status):
            continue
        key = reminder_key(session)
        if key in scheduled_keys:
            continue
        trigger_at = session.start_at - lead
        if trigger_at <= now:
            continue

        label = session.title or session.mode.value.replace("_", " ")
        planned.append(
            Reminder(
                key=key,
                session_id=session.id,
                title="Upcoming session",
                start_at=session.start_at,
                end_at=session.end_at or session.start_at + DEFAULT_SESSION_LENGTH,
                notes=f"{session.start_at:%H:%M} • {label}",
                trigger_at=trigger_at,
            )
        )
        scheduled_keys.add(key)
    return planned
