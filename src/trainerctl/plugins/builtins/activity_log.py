"""Built-in activity log plugin.

Emits one structured log event per lifecycle hook so a studio's history
can be followed with ``--log-json`` without any third-party plugin.
"""

from __future__ import annotations

from typing import Any

import pluggy
import structlog

hookimpl = pluggy.HookimplMarker("trainerctl")


class ActivityLogPlugin:
    """Logs lifecycle events under the ``trainerctl.activity`` logger."""

    def __init__(self) -> None:
        self._log = structlog.get_logger("trainerctl.activity")

    @hookimpl
    def post_session_schedule(self, session: dict[str, Any]) -> None:
        self._log.info(
            "session.scheduled",
            session_id=session.get("id"),
            client_id=session.get("client_id"),
            start_at=session.get("start_at"),
        )

    @hookimpl
    def post_session_status(self, session_id: int, old_status: str, new_status: str) -> None:
        self._log.info(
            "session.status", session_id=session_id, old_status=old_status, new_status=new_status
        )

    @hookimpl
    def post_session_complete(self, session_id: int, package_id: int | None) -> None:
        self._log.info("session.completed", session_id=session_id, package_id=package_id)

    @hookimpl
    def post_session_reschedule(
        self, session_id: int, old_start_at: str, new_start_at: str
    ) -> None:
        self._log.info(
            "session.rescheduled",
            session_id=session_id,
            old_start_at=old_start_at,
            new_start_at=new_start_at,
        )

    @hookimpl
    def post_payment_record(self, payment: dict[str, Any]) -> None:
        self._log.info(
            "payment.recorded",
            payment_id=payment.get("id"),
            client_id=payment.get("client_id"),
            amount=payment.get("amount"),
            currency=payment.get("currency"),
        )
