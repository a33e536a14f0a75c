"""LifecycleService — session scheduling and status transitions.

States: scheduled (initial), pending, completed, cancelled. The last two
are terminal. ``complete`` is the only transition with a cross-entity
side effect: it may debit one package credit, and the debit and the
session write commit in the same transaction or not at all.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any, cast

from trainerctl.domain.entities import Package, Session, to_data
from trainerctl.domain.errors import (
    CapacityExceededError,
    ConflictError,
    InvalidTransitionError,
    TrainerError,
    ValidationError,
)
from trainerctl.domain.lifecycle import (
    SESSION_TRANSITIONS,
    SessionStatus,
    is_terminal,
    is_valid_transition,
)
from trainerctl.domain.times import parse_day, parse_instant, utc_now
from trainerctl.services.base import BaseService
from trainerctl.services.ledger import PackageLedger, remaining_credits
from trainerctl.services.result import ServiceResult
from trainerctl.services.telemetry import annotate, trace_span, traced

if TYPE_CHECKING:
    from trainerctl.infrastructure.studio import StudioTransaction

logger = logging.getLogger(__name__)

# Selection + debit attempts inside one completion: the first try and one
# re-selection against a fresh read after a lost race.
_DEBIT_ATTEMPTS = 2


class LifecycleService(BaseService):
    """Handles session creation and the session status state machine."""

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    @traced
    def schedule(
        self,
        trainer_id: str,
        client_id: int,
        start_at: datetime | str,
        *,
        end_at: datetime | str | None = None,
        duration_minutes: int | None = None,
        mode: str | None = None,
        title: str | None = None,
        notes: str | None = None,
    ) -> ServiceResult:
        """Create a session in state ``scheduled``.

        When *end_at* is omitted the session lasts *duration_minutes*, or
        the configured default duration.
        """
        op = "schedule_session"
        cfg = self._studio.settings.sessions
        warnings: list[str] = []

        try:
            start = parse_instant(start_at, field_name="start_at")
            if end_at is not None:
                end = parse_instant(end_at, field_name="end_at")
            else:
                minutes = duration_minutes
                if minutes is None:
                    minutes = cfg.default_duration_minutes
                if minutes <= 0:
                    raise ValidationError(
                        "duration_minutes must be positive", field="duration_minutes"
                    )
                end = start + timedelta(minutes=minutes)
            if end <= start:
                raise ValidationError("end_at must be after start_at", field="end_at")

            with self._studio.transaction() as txn:
                txn.store.get("client", client_id)
                session = txn.store.create(
                    "session",
                    {
                        "trainer_id": trainer_id,
                        "client_id": client_id,
                        "start_at": start,
                        "end_at": end,
                        "mode": mode or cfg.default_mode,
                        "status": SessionStatus.SCHEDULED,
                        "title": title,
                        "notes": notes,
                    },
                )
        except TrainerError as exc:
            return self._failure(op, exc)

        data = to_data(session)
        self._dispatch_event("post_session_schedule", {"session": data}, warnings)
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    # ------------------------------------------------------------------
    # Simple status overwrites
    # ------------------------------------------------------------------

    @traced
    def mark_pending(self, session_id: int) -> ServiceResult:
        """Move an open session to ``pending``."""
        return self._set_status("mark_pending", session_id, SessionStatus.PENDING)

    @traced
    def mark_scheduled(self, session_id: int) -> ServiceResult:
        """Move an open session back to ``scheduled``."""
        return self._set_status("mark_scheduled", session_id, SessionStatus.SCHEDULED)

    @traced
    def cancel(self, session_id: int) -> ServiceResult:
        """Cancel an open session. Package credits are never touched."""
        return self._set_status("cancel_session", session_id, SessionStatus.CANCELLED)

    def _set_status(self, op: str, session_id: int, target: SessionStatus) -> ServiceResult:
        warnings: list[str] = []

        def work(txn: StudioTransaction) -> tuple[Session, Session]:
            session = cast(Session, txn.store.get("session", session_id))
            _ensure_open(session, target)
            if session.status == target:
                return session, session
            updated = txn.store.update(
                "session",
                session_id,
                {"status": target},
                precondition={"status": session.status},
            )
            return session, cast(Session, updated)

        try:
            before, after = self._run_with_conflict_retry(work)
        except TrainerError as exc:
            return self._failure(op, exc)

        data = to_data(after, previous_status=before.status.value)
        if before.status != after.status:
            self._dispatch_event(
                "post_session_status",
                {
                    "session_id": session_id,
                    "old_status": before.status.value,
                    "new_status": target.value,
                },
                warnings,
            )
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    @traced
    def complete(self, session_id: int) -> ServiceResult:
        """Complete a session, consuming one package credit when available.

        Steps, all inside one transaction:

        1. Re-read the session; terminal sessions are rejected.
        2. Select the client's active package with credit left.
        3. Debit it with a compare-and-set on ``sessions_used``. A lost race
           triggers one re-selection against a fresh read; a second loss
           falls back to per-session billing.
        4. Write ``status=completed`` and ``package_id``, guarded by the
           status read in step 1 so a concurrent completion of the same
           session cannot also succeed.
        """
        op = "complete_session"
        warnings: list[str] = []

        def work(txn: StudioTransaction) -> tuple[Session, Package | None]:
            session = cast(Session, txn.store.get("session", session_id))
            _ensure_open(session, SessionStatus.COMPLETED)

            with trace_span("package_debit") as span:
                package = self._debit_first_available(PackageLedger(txn.store), session)
                if span:
                    span.annotate("package_id", package.id if package else None)

            updated = txn.store.update(
                "session",
                session_id,
                {
                    "status": SessionStatus.COMPLETED,
                    "package_id": package.id if package else None,
                },
                precondition={"status": session.status, "package_id": None},
            )
            return cast(Session, updated), package

        try:
            session, package = self._run_with_conflict_retry(work)
        except TrainerError as exc:
            return self._failure(op, exc)

        data = to_data(
            session,
            credit_consumed=package is not None,
            package=to_data(package, remaining=remaining_credits(package)) if package else None,
        )
        self._dispatch_event(
            "post_session_complete",
            {"session_id": session.id, "package_id": session.package_id},
            warnings,
        )
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    @staticmethod
    def _debit_first_available(ledger: PackageLedger, session: Session) -> Package | None:
        for attempt in range(1, _DEBIT_ATTEMPTS + 1):
            package = ledger.select_active_package(session.client_id)
            if package is None:
                return None
            try:
                return ledger.consume_credit(package.id, expected_used=package.sessions_used)
            except (CapacityExceededError, ConflictError) as exc:
                annotate("lost_races", attempt)
                logger.info(
                    "Credit race lost for session %s on package %s (attempt %d): %s",
                    session.id,
                    package.id,
                    attempt,
                    exc.message,
                )
        logger.info("Session %s completes without a package credit after contention", session.id)
        annotate("fallback", "no_package")
        return None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @traced
    def agenda(self, trainer_id: str, *, day: date | str | None = None) -> ServiceResult:
        """Sessions of *trainer_id* starting on *day* (UTC, default today)."""
        op = "agenda"
        try:
            target = parse_day(day) if day is not None else utc_now().date()
            with self._studio.transaction() as txn:
                rows = txn.store.list("session", {"trainer_id": trainer_id}, order_by="start_at")
        except TrainerError as exc:
            return self._failure(op, exc)

        items: list[dict[str, Any]] = [
            to_data(s) for s in rows if cast(Session, s).start_at.date() == target
        ]
        return ServiceResult(
            ok=True,
            op=op,
            data={"day": target.isoformat(), "count": len(items), "items": items},
        )


def _ensure_open(session: Session, target: SessionStatus) -> None:
    """Reject any transition out of a terminal state."""
    if is_terminal(session.status):
        raise InvalidTransitionError(
            f"Session {session.id} is already {session.status}; cannot move to {target}",
            session_id=session.id,
            current=session.status.value,
            target=target.value,
        )
    if session.status != target and not is_valid_transition(
        session.status, target, SESSION_TRANSITIONS
    ):
        raise InvalidTransitionError(
            f"Invalid status transition: {session.status} -> {target}",
            session_id=session.id,
            current=session.status.value,
            target=target.value,
        )

