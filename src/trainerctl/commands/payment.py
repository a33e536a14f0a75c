"""Command group: payments and finances."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

import click

from trainerctl.commands._base import INSTANT, MONEY, TrainerGroup
from trainerctl.domain.lifecycle import PaymentMethod
from trainerctl.services.payments import PaymentService

if TYPE_CHECKING:
    from trainerctl.commands._context import AppContext


@click.group(
    cls=TrainerGroup,
    examples="""\
  trainerctl payment suggest 3
  trainerctl payment record 3 120 --method card --session 12 --session 13
  trainerctl payment list --client 3
  trainerctl payment summary""",
)
@click.pass_obj
def payment(app: AppContext) -> None:
    """Record payments and review finances."""


@payment.command(examples="  trainerctl payment suggest 3")
@click.argument("client_id", type=int)
@click.pass_obj
def suggest(app: AppContext, client_id: int) -> None:
    """Suggest the amount a client owes from their rate."""
    app.emit(PaymentService(app.studio).suggest_amount(client_id))


@payment.command(
    examples="""\
  trainerctl payment record 3 40
  trainerctl payment record 3 350 --purchased 10 --note "10 x PT"
  trainerctl payment record 3 80 --session 12 --session 13 --currency usd"""
)
@click.argument("client_id", type=int)
@click.argument("amount", type=MONEY)
@click.option("--currency", default=None, help="Currency code (default from [studio]).")
@click.option(
    "--method",
    type=click.Choice([m.value for m in PaymentMethod]),
    default=None,
    help="Payment method (default from [studio]).",
)
@click.option(
    "--purchased",
    "sessions_purchased",
    type=click.IntRange(min=0),
    default=None,
    help="Sessions bought with this payment (informational).",
)
@click.option(
    "--session", "session_ids", type=int, multiple=True, help="Session paid for (repeatable)."
)
@click.option("--note", default=None, help="Free-form note.")
@click.option("--paid-at", type=INSTANT, default=None, help="Payment time (default now).")
@click.pass_obj
def record(
    app: AppContext,
    client_id: int,
    amount: Decimal,
    currency: str | None,
    method: str | None,
    sessions_purchased: int | None,
    session_ids: tuple[int, ...],
    note: str | None,
    paid_at: datetime | None,
) -> None:
    """Record a payment of AMOUNT from CLIENT_ID."""
    app.emit(
        PaymentService(app.studio).record_payment(
            app.trainer_id,
            client_id,
            amount,
            currency=currency,
            method=method,
            sessions_purchased=sessions_purchased,
            linked_session_ids=list(session_ids),
            note=note,
            paid_at=paid_at,
        )
    )


@payment.command("list", examples="  trainerctl payment list --client 3")
@click.option("--client", "client_id", type=int, default=None, help="Only this client.")
@click.pass_obj
def list_cmd(app: AppContext, client_id: int | None) -> None:
    """List payments, newest first."""
    app.emit(PaymentService(app.studio).list_payments(app.trainer_id, client_id=client_id))


@payment.command(examples="  trainerctl --json payment summary")
@click.pass_obj
def summary(app: AppContext) -> None:
    """Month and year totals with a per-month breakdown."""
    app.emit(PaymentService(app.studio).finance_summary(app.trainer_id))
