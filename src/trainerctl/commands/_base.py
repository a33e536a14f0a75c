"""Shared Click building blocks for trainerctl commands.

``TrainerCommand``/``TrainerGroup`` accept an ``examples`` string exposed
through an eager ``--examples`` flag, which keeps ``--help`` short.
``MONEY`` and ``INSTANT`` parameter types reuse the domain parsers so
bad input is rejected by Click before any service runs.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

import click

from trainerctl.domain.errors import ValidationError
from trainerctl.domain.rates import HourlyRate, MonthlyRate, PackageRate, make_rate, parse_money
from trainerctl.domain.times import parse_instant


def _add_examples_option(cmd: click.Command, examples: str) -> None:
    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class TrainerCommand(click.Command):
    """Click Command with an optional ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class TrainerGroup(click.Group):
    """Click Group with an optional ``--examples`` flag.

    Subcommands default to :class:`TrainerCommand`.
    """

    command_class = TrainerCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class MoneyType(click.ParamType):
    """Non-negative decimal amount."""

    name = "amount"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> Any:
        if isinstance(value, Decimal):
            return value
        try:
            return parse_money(value, field_name=param.name if param and param.name else "amount")
        except ValidationError as exc:
            self.fail(exc.message, param, ctx)


class InstantType(click.ParamType):
    """ISO 8601 timestamp; naive values are read as UTC."""

    name = "timestamp"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> Any:
        if isinstance(value, datetime):
            return value
        try:
            return parse_instant(value, field_name=param.name if param and param.name else "at")
        except ValidationError as exc:
            self.fail(exc.message, param, ctx)


MONEY = MoneyType()
INSTANT = InstantType()


def rate_from_options(
    hourly: Decimal | None,
    monthly: Decimal | None,
    package: bool,
) -> HourlyRate | MonthlyRate | PackageRate | None:
    """Build a rate from the mutually exclusive ``--hourly/--monthly/--package`` flags."""
    flags = {"--hourly": hourly is not None, "--monthly": monthly is not None, "--package": package}
    chosen = [flag for flag, given in flags.items() if given]
    if len(chosen) > 1:
        raise click.UsageError(f"Choose one rate: {' / '.join(chosen)}")
    if hourly is not None:
        return make_rate("hourly", hourly)
    if monthly is not None:
        return make_rate("monthly", monthly)
    if package:
        return make_rate("package")
    return None
