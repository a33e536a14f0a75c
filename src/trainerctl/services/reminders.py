"""ReminderService — loads upcoming sessions and plans their reminders."""

from __future__ import annotations

from collections.abc import MutableSet
from datetime import datetime
from typing import cast

from trainerctl.domain.entities import Session
from trainerctl.domain.errors import TrainerError, ValidationError
from trainerctl.domain.lifecycle import SessionStatus
from trainerctl.domain.reminders import plan_reminders
from trainerctl.domain.times import parse_instant, to_iso, utc_now
from trainerctl.services.base import BaseService
from trainerctl.services.result import ServiceResult
from trainerctl.services.telemetry import traced


class ReminderService(BaseService):
    @traced
    def upcoming(
        self,
        trainer_id: str,
        *,
        now: datetime | str | None = None,
        minutes_before: int | None = None,
        scheduled_keys: MutableSet[str] | None = None,
    ) -> ServiceResult:
        """Plan reminders for the trainer's open sessions starting after *now*.

        *scheduled_keys* is updated in place; pass the same set on later
        calls to avoid planning a reminder twice.
        """
        op = "plan_reminders"
        keys: MutableSet[str] = scheduled_keys if scheduled_keys is not None else set()
        lead = minutes_before
        if lead is None:
            lead = self._studio.settings.reminders.minutes_before
        try:
            if lead < 0:
                raise ValidationError("minutes_before must not be negative", field="minutes_before")
            reference = parse_instant(now, field_name="now") if now is not None else utc_now()
            with self._studio.transaction() as txn:
                sessions = txn.store.list(
                    "session",
                    {
                        "trainer_id": trainer_id,
                        "status": [SessionStatus.SCHEDULED, SessionStatus.PENDING],
                    },
                    order_by="start_at",
                )
        except TrainerError as exc:
            return self._failure(op, exc)

        upcoming = [cast(Session, s) for s in sessions if cast(Session, s).start_at > reference]
        reminders = plan_reminders(
            upcoming, now=reference, scheduled_keys=keys, minutes_before=lead
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "now": to_iso(reference),
                "minutes_before": lead,
                "count": len(reminders),
                "items": [r.model_dump(mode="json") for r in reminders],
            },
        )
