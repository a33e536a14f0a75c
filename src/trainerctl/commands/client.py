"""Command group: client records and account links."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import click

from trainerctl.commands._base import MONEY, TrainerGroup, rate_from_options
from trainerctl.services.clients import ClientService

if TYPE_CHECKING:
    from trainerctl.commands._context import AppContext


_CLIENT_EXAMPLES = """\
  trainerctl client add "Ana Novak" --email ana@example.com --hourly 40
  trainerctl client edit 3 --monthly 180
  trainerctl client link 3 user-42
  trainerctl client link --self user-42 --email ana@example.com
  trainerctl client show 3
  trainerctl client list --query ana"""


def _rate_options(func):  # type: ignore[no-untyped-def]
    func = click.option("--package", "package_rate", is_flag=True, help="Bill through packages.")(
        func
    )
    func = click.option("--monthly", type=MONEY, default=None, help="Flat monthly fee.")(func)
    func = click.option("--hourly", type=MONEY, default=None, help="Rate per uncovered session.")(
        func
    )
    return func


@click.group(cls=TrainerGroup, examples=_CLIENT_EXAMPLES)
@click.pass_obj
def client(app: AppContext) -> None:
    """Manage clients."""


@client.command(
    examples="""\
  trainerctl client add "Ana Novak"
  trainerctl client add "Ben Ito" --email ben@example.com --monthly 180"""
)
@click.argument("name")
@click.option("--email", default=None, help="Contact email, also used for self-linking.")
@_rate_options
@click.pass_obj
def add(
    app: AppContext,
    name: str,
    email: str | None,
    hourly: Decimal | None,
    monthly: Decimal | None,
    package_rate: bool,
) -> None:
    """Create a client (package-billed unless a rate is given)."""
    rate = rate_from_options(hourly, monthly, package_rate)
    app.emit(ClientService(app.studio).create_client(app.trainer_id, name, email=email, rate=rate))


@client.command(
    examples="""\
  trainerctl client edit 3 --name "Ana Novak-Ito"
  trainerctl client edit 3 --package"""
)
@click.argument("client_id", type=int)
@click.option("--name", default=None, help="New display name.")
@click.option("--email", default=None, help="New email.")
@_rate_options
@click.pass_obj
def edit(
    app: AppContext,
    client_id: int,
    name: str | None,
    email: str | None,
    hourly: Decimal | None,
    monthly: Decimal | None,
    package_rate: bool,
) -> None:
    """Change a client's name, email or rate."""
    rate = rate_from_options(hourly, monthly, package_rate)
    app.emit(
        ClientService(app.studio).update_client(client_id, name=name, email=email, rate=rate)
    )


@client.command(
    examples="""\
  trainerctl client link 3 user-42
  trainerctl client link --self user-42 --email ana@example.com"""
)
@click.argument("target")
@click.argument("user_id", required=False)
@click.option(
    "--self",
    "self_link",
    is_flag=True,
    help="TARGET is your account id; claim every client with a matching --email.",
)
@click.option("--email", default=None, help="Email to store (or to match with --self).")
@click.pass_obj
def link(
    app: AppContext,
    target: str,
    user_id: str | None,
    self_link: bool,
    email: str | None,
) -> None:
    """Link a client row to an end-user account."""
    svc = ClientService(app.studio)
    if self_link:
        if user_id is not None:
            raise click.UsageError("With --self pass only your account id")
        if not email:
            raise click.UsageError("--self requires --email")
        app.emit(svc.self_link(target, email))
        return

    if user_id is None:
        raise click.UsageError("Missing USER_ID")
    try:
        client_id = int(target)
    except ValueError:
        raise click.BadParameter(f"{target!r} is not a client id", param_hint="TARGET") from None
    app.emit(svc.link_account(client_id, user_id, email=email))


@client.command(
    examples="""\
  trainerctl client show 3
  trainerctl client show --account user-42"""
)
@click.argument("client_id", type=int, required=False)
@click.option("--account", default=None, help="Show the client view for a linked account.")
@click.pass_obj
def show(app: AppContext, client_id: int | None, account: str | None) -> None:
    """Show a client with sessions, packages and payments."""
    svc = ClientService(app.studio)
    if account is not None:
        app.emit(svc.for_account(account))
    elif client_id is not None:
        app.emit(svc.overview(client_id))
    else:
        raise click.UsageError("Pass CLIENT_ID or --account")


@client.command("list", examples="  trainerctl client list --query ana")
@click.option("--query", default=None, help="Case-insensitive name filter.")
@click.pass_obj
def list_cmd(app: AppContext, query: str | None) -> None:
    """List the trainer's clients."""
    app.emit(ClientService(app.studio).list_clients(app.trainer_id, query=query))
