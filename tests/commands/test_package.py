"""Tests for the package command group."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from trainerctl.cli import cli


def _add_client(cli_runner: CliRunner) -> str:
    result = cli_runner.invoke(cli, ["-q", "client", "add", "Ana"])
    assert result.exit_code == 0, result.output
    return result.stdout.strip()


@pytest.mark.usefixtures("_isolated_studio")
class TestPackageCommands:
    def test_open(self, cli_runner: CliRunner) -> None:
        client_id = _add_client(cli_runner)
        result = cli_runner.invoke(
            cli,
            ["--json", "package", "open", client_id, "10", "--price", "350", "--name", "10 x PT"],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)["data"]
        assert data["sessions_total"] == 10
        assert data["remaining"] == 10
        assert data["price"] == "350"

    def test_open_bad_dates(self, cli_runner: CliRunner) -> None:
        client_id = _add_client(cli_runner)
        result = cli_runner.invoke(cli, ["package", "open", client_id, "5", "--expires", "soon"])
        assert result.exit_code == 1
        assert "YYYY-MM-DD" in result.stderr

    def test_negative_total_rejected(self, cli_runner: CliRunner) -> None:
        client_id = _add_client(cli_runner)
        result = cli_runner.invoke(cli, ["package", "open", client_id, "-3"])
        assert result.exit_code == 2

    def test_balance(self, cli_runner: CliRunner) -> None:
        client_id = _add_client(cli_runner)
        cli_runner.invoke(cli, ["package", "open", client_id, "4"])
        result = cli_runner.invoke(cli, ["package", "balance", client_id])
        assert result.exit_code == 0
        assert "active_remaining: 4" in result.output
        assert "next_package_id: 1" in result.output

    def test_balance_unknown_client(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["package", "balance", "42"])
        assert result.exit_code == 1
