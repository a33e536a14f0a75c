"""ScheduleService — moving sessions in time.

Rescheduling only rewrites ``start_at``/``end_at``. It never touches
``status`` or ``package_id``, so a completed session keeps its credit.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, cast

from trainerctl.domain.entities import Session, to_data
from trainerctl.domain.errors import PastTimeError, TrainerError
from trainerctl.domain.reminders import DEFAULT_SESSION_LENGTH
from trainerctl.domain.times import parse_instant, to_iso, utc_now
from trainerctl.services.base import BaseService
from trainerctl.services.result import ServiceResult
from trainerctl.services.telemetry import traced

if TYPE_CHECKING:
    from trainerctl.infrastructure.studio import StudioTransaction

logger = logging.getLogger(__name__)


class ScheduleService(BaseService):
    """Reschedules sessions while preserving their duration."""

    @traced
    def reschedule(
        self,
        session_id: int,
        new_start_at: datetime | str,
        *,
        now: datetime | str | None = None,
    ) -> ServiceResult:
        """Move a session to *new_start_at*, keeping its length.

        The duration is ``end_at - start_at`` of the stored session, or one
        hour when it has no end. *new_start_at* must be strictly after
        *now* (default: the current UTC instant).
        """
        op = "reschedule_session"
        warnings: list[str] = []

        try:
            # Stored at second precision; compare what will be stored.
            start = parse_instant(new_start_at, field_name="new_start_at").replace(microsecond=0)
            reference = parse_instant(now, field_name="now") if now is not None else utc_now()
            if start <= reference:
                raise PastTimeError(
                    f"New start {to_iso(start)} is not after {to_iso(reference)}",
                    session_id=session_id,
                    new_start_at=to_iso(start),
                    now=to_iso(reference),
                )

            def work(txn: StudioTransaction) -> tuple[Session, Session]:
                session = cast(Session, txn.store.get("session", session_id))
                length: timedelta = session.duration or DEFAULT_SESSION_LENGTH
                updated = txn.store.update(
                    "session",
                    session_id,
                    {"start_at": start, "end_at": start + length},
                    precondition={"start_at": session.start_at},
                )
                return session, cast(Session, updated)

            before, after = self._run_with_conflict_retry(work)
        except TrainerError as exc:
            return self._failure(op, exc)

        logger.info(
            "Rescheduled session %s: %s -> %s",
            session_id,
            to_iso(before.start_at),
            to_iso(after.start_at),
        )
        data = to_data(after, previous_start_at=to_iso(before.start_at))
        self._dispatch_event(
            "post_session_reschedule",
            {
                "session_id": session_id,
                "old_start_at": to_iso(before.start_at),
                "new_start_at": to_iso(after.start_at),
            },
            warnings,
        )
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)
