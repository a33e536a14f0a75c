"""Subcommand modules for trainerctl.

Provides register_commands() which uses deferred imports to keep
``trainerctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from trainerctl.commands.client import client
    from trainerctl.commands.package import package
    from trainerctl.commands.payment import payment
    from trainerctl.commands.session import session

    cli.add_command(client)
    cli.add_command(package)
    cli.add_command(session)
    cli.add_command(payment)

    # --- Standalone commands ---
    from trainerctl.commands.reminders import reminders
    from trainerctl.commands.upgrade import upgrade

    cli.add_command(reminders)
    cli.add_command(upgrade)
