"""Tests for the reminders command."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from trainerctl.cli import cli


@pytest.mark.usefixtures("_isolated_studio")
class TestRemindersCommand:
    def test_lists_future_sessions(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["client", "add", "Ana"])
        cli_runner.invoke(cli, ["session", "schedule", "1", "2030-05-06T09:00:00Z"])

        result = cli_runner.invoke(cli, ["--json", "reminders", "--minutes-before", "60"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)["data"]
        assert data["count"] == 1
        assert data["items"][0]["trigger_at"].startswith("2030-05-06T08:00:00")

    def test_human_output(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["reminders"])
        assert result.exit_code == 0
        assert "0 reminders (120 minutes before)" in result.output

    def test_negative_lead_rejected(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["reminders", "--minutes-before", "-1"])
        assert result.exit_code == 2
