"""PaymentService — suggested amounts, recording and finance summaries.

Payments are append-only records. Recording one never creates or mutates
a package, even when ``sessions_purchased`` is set; packages are opened
explicitly through :class:`~trainerctl.services.packages.PackageService`.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Any, cast

from trainerctl.domain.entities import Client, Payment, Session, to_data
from trainerctl.domain.errors import TrainerError, ValidationError
from trainerctl.domain.lifecycle import SessionStatus
from trainerctl.domain.rates import HourlyRate, MonthlyRate, parse_money
from trainerctl.domain.times import parse_instant, utc_now
from trainerctl.infrastructure.store import EntityStore
from trainerctl.services._helpers import month_key
from trainerctl.services.base import BaseService
from trainerctl.services.result import ServiceResult
from trainerctl.services.telemetry import traced

logger = logging.getLogger(__name__)


def suggested_amount(store: EntityStore, client: Client) -> Decimal | None:
    """Amount owed by *client* according to its rate, or None for packages."""
    rate = client.rate
    if isinstance(rate, MonthlyRate):
        return rate.rate
    if isinstance(rate, HourlyRate):
        uncovered = store.list(
            "session",
            {"client_id": client.id, "status": SessionStatus.COMPLETED, "package_id": None},
        )
        return rate.rate * len(uncovered)
    return None


class PaymentService(BaseService):
    """Payment reconciliation against client rates."""

    @traced
    def suggest_amount(self, client_id: int) -> ServiceResult:
        """Suggest what *client_id* owes.

        Monthly clients owe their monthly rate. Hourly clients owe the
        hourly rate times the completed sessions not covered by a package.
        Package clients get no suggestion (``amount`` is None).
        """
        op = "suggest_amount"
        try:
            with self._studio.transaction() as txn:
                client = cast(Client, txn.store.get("client", client_id))
                amount = suggested_amount(txn.store, client)
        except TrainerError as exc:
            return self._failure(op, exc)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "client_id": client_id,
                "rate_type": client.rate.kind,
                "amount": str(amount) if amount is not None else None,
                "currency": self._studio.settings.studio.default_currency,
            },
        )

    @traced
    def record_payment(
        self,
        trainer_id: str,
        client_id: int,
        amount: Decimal | str | float,
        *,
        currency: str | None = None,
        method: str | None = None,
        sessions_purchased: int | None = None,
        linked_session_ids: list[int] | None = None,
        note: str | None = None,
        paid_at: datetime | str | None = None,
    ) -> ServiceResult:
        """Record a payment from *client_id*.

        Every linked session must belong to the client. Currency and method
        fall back to the ``[studio]`` defaults.
        """
        op = "record_payment"
        cfg = self._studio.settings.studio
        warnings: list[str] = []
        linked = list(linked_session_ids or [])

        try:
            value = parse_money(amount)
            fields: dict[str, Any] = {
                "trainer_id": trainer_id,
                "client_id": client_id,
                "amount": value,
                "currency": (currency or cfg.default_currency).upper(),
                "method": method or cfg.default_method,
                "note": note,
                "sessions_purchased": sessions_purchased,
                "related_session_ids": linked,
            }
            if paid_at is not None:
                fields["paid_at"] = parse_instant(paid_at, field_name="paid_at")

            with self._studio.transaction() as txn:
                txn.store.get("client", client_id)
                if linked:
                    _check_linked_sessions(txn.store, client_id, linked)
                payment = txn.store.create("payment", fields)
        except TrainerError as exc:
            return self._failure(op, exc)

        logger.info("Recorded payment %s for client %s: %s", payment.id, client_id, value)
        data = to_data(payment)
        self._dispatch_event("post_payment_record", {"payment": data}, warnings)
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    @traced
    def list_payments(self, trainer_id: str, *, client_id: int | None = None) -> ServiceResult:
        """Payments received by *trainer_id*, newest first."""
        op = "list_payments"
        filters: dict[str, Any] = {"trainer_id": trainer_id}
        if client_id is not None:
            filters["client_id"] = client_id
        try:
            with self._studio.transaction() as txn:
                payments = txn.store.list("payment", filters, order_by="paid_at", descending=True)
        except TrainerError as exc:
            return self._failure(op, exc)

        items = [to_data(p) for p in payments]
        return ServiceResult(ok=True, op=op, data={"count": len(items), "items": items})

    @traced
    def finance_summary(
        self, trainer_id: str, *, now: datetime | str | None = None
    ) -> ServiceResult:
        """Totals for the current month and year plus a per-month breakdown."""
        op = "finance_summary"
        try:
            reference = parse_instant(now, field_name="now") if now is not None else utc_now()
            with self._studio.transaction() as txn:
                payments = txn.store.list("payment", {"trainer_id": trainer_id})
        except TrainerError as exc:
            return self._failure(op, exc)

        by_month: dict[str, Decimal] = defaultdict(Decimal)
        month_total = Decimal(0)
        year_total = Decimal(0)
        for payment in payments:
            paid = cast(Payment, payment)
            by_month[month_key(paid.paid_at)] += paid.amount
            if paid.paid_at.year == reference.year:
                year_total += paid.amount
                if paid.paid_at.month == reference.month:
                    month_total += paid.amount

        months = [
            {"month": key, "total": str(by_month[key])}
            for key in sorted(by_month, reverse=True)
        ]
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "month": month_key(reference),
                "month_total": str(month_total),
                "year_total": str(year_total),
                "count": len(payments),
                "currency": self._studio.settings.studio.default_currency,
                "months": months,
            },
        )


def _check_linked_sessions(store: EntityStore, client_id: int, session_ids: list[int]) -> None:
    found = {
        s.id: cast(Session, s) for s in store.list("session", {"id": session_ids})
    }
    for session_id in session_ids:
        session = found.get(session_id)
        if session is None:
            raise ValidationError(
                f"Linked session {session_id} does not exist",
                field="related_session_ids",
                session_id=session_id,
            )
        if session.client_id != client_id:
            raise ValidationError(
                f"Linked session {session_id} belongs to another client",
                field="related_session_ids",
                session_id=session_id,
            )
