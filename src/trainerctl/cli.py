"""Root CLI group for trainerctl with global flags and command registration."""

from __future__ import annotations

import click

from trainerctl import __version__
from trainerctl.commands import register_commands
from trainerctl.commands._context import AppContext
from trainerctl.config.settings import TrainerSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="trainerctl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output (ids only).")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--trainer", "trainer_id", default=None, help="Acting trainer id.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    trainer_id: str | None,
) -> None:
    """trainerctl — sessions, packages and payments for personal trainers."""
    ctx.ensure_object(dict)
    flags: dict[str, object] = {
        "json_output": json_output,
        "quiet": quiet,
        "verbose": verbose,
        "log_json": log_json,
    }
    if trainer_id is not None:
        flags["trainer_id"] = trainer_id
    settings = TrainerSettings.from_cli(config_path=config_path, **flags)
    ctx.obj = AppContext(settings)
    ctx.call_on_close(ctx.obj.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
