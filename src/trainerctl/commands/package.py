"""Command group: prepaid packages."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import click

from trainerctl.commands._base import MONEY, TrainerGroup
from trainerctl.services.packages import PackageService

if TYPE_CHECKING:
    from trainerctl.commands._context import AppContext


@click.group(
    cls=TrainerGroup,
    examples="""\
  trainerctl package open 3 10 --name "10 x PT" --price 350
  trainerctl package balance 3""",
)
@click.pass_obj
def package(app: AppContext) -> None:
    """Open packages and check credit balances."""


@package.command(
    "open",
    examples="""\
  trainerctl package open 3 10
  trainerctl package open 3 5 --expires 2026-12-31""",
)
@click.argument("client_id", type=int)
@click.argument("sessions_total", type=click.IntRange(min=0))
@click.option("--name", default=None, help="Package label.")
@click.option("--price", type=MONEY, default=None, help="Price paid for the package.")
@click.option("--starts", "starts_on", default=None, help="First valid day (YYYY-MM-DD).")
@click.option("--expires", "expires_on", default=None, help="Last valid day (YYYY-MM-DD).")
@click.pass_obj
def open_cmd(
    app: AppContext,
    client_id: int,
    sessions_total: int,
    name: str | None,
    price: Decimal | None,
    starts_on: str | None,
    expires_on: str | None,
) -> None:
    """Open a package of SESSIONS_TOTAL credits for CLIENT_ID."""
    app.emit(
        PackageService(app.studio).open_package(
            client_id,
            sessions_total,
            name=name,
            price=price,
            starts_on=starts_on,
            expires_on=expires_on,
        )
    )


@package.command(examples="  trainerctl package balance 3")
@click.argument("client_id", type=int)
@click.pass_obj
def balance(app: AppContext, client_id: int) -> None:
    """Show a client's packages and remaining credits."""
    app.emit(PackageService(app.studio).balance(client_id))
