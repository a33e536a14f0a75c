"""Tests for the client command group."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from trainerctl.cli import cli


def _json(cli_runner: CliRunner, *args: str) -> dict[str, Any]:
    result = cli_runner.invoke(cli, ["--json", *args])
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


@pytest.mark.usefixtures("_isolated_studio")
class TestClientAdd:
    def test_add_defaults_to_package_billing(self, cli_runner: CliRunner) -> None:
        payload = _json(cli_runner, "client", "add", "Ana Novak", "--email", "Ana@Example.com")
        assert payload["op"] == "create_client"
        assert payload["data"]["trainer_id"] == "trainer-1"
        assert payload["data"]["email"] == "ana@example.com"
        assert payload["data"]["rate"] == {"kind": "package"}

    def test_add_hourly_human_output(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["client", "add", "Ben", "--hourly", "40"])
        assert result.exit_code == 0
        assert "rate: hourly 40" in result.output

    def test_two_rates_rejected(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["client", "add", "Ben", "--hourly", "40", "--package"])
        assert result.exit_code == 2
        assert "Choose one rate" in result.output

    def test_bad_amount_rejected_by_click(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["client", "add", "Ben", "--monthly", "lots"])
        assert result.exit_code == 2
        assert "must be a number" in result.output

    def test_trainer_flag_overrides_config(self, cli_runner: CliRunner) -> None:
        payload = _json(cli_runner, "--trainer", "luka", "client", "add", "Ana")
        assert payload["data"]["trainer_id"] == "luka"


@pytest.mark.usefixtures("_isolated_studio")
class TestClientEditAndList:
    def test_edit_rate(self, cli_runner: CliRunner) -> None:
        client_id = _json(cli_runner, "client", "add", "Ana")["data"]["id"]
        payload = _json(cli_runner, "client", "edit", str(client_id), "--monthly", "180")
        assert payload["data"]["rate"] == {"kind": "monthly", "rate": "180"}

    def test_edit_nothing_fails(self, cli_runner: CliRunner) -> None:
        client_id = _json(cli_runner, "client", "add", "Ana")["data"]["id"]
        result = cli_runner.invoke(cli, ["client", "edit", str(client_id)])
        assert result.exit_code == 1
        assert "No changes given" in result.stderr

    def test_list_with_query(self, cli_runner: CliRunner) -> None:
        for name in ("Ana", "Bojan", "Zala"):
            cli_runner.invoke(cli, ["client", "add", name])
        result = cli_runner.invoke(cli, ["-q", "client", "list", "--query", "an"])
        assert result.exit_code == 0
        assert result.stdout.split() == ["1", "2"]


@pytest.mark.usefixtures("_isolated_studio")
class TestClientLink:
    def test_trainer_links_account(self, cli_runner: CliRunner) -> None:
        client_id = _json(cli_runner, "client", "add", "Ana")["data"]["id"]
        payload = _json(cli_runner, "client", "link", str(client_id), "user-42")
        assert payload["data"]["client_user_id"] == "user-42"

    def test_self_link(self, cli_runner: CliRunner) -> None:
        _json(cli_runner, "client", "add", "Ana", "--email", "ana@example.com")
        payload = _json(
            cli_runner, "client", "link", "--self", "user-42", "--email", "ana@example.com"
        )
        assert payload["op"] == "self_link"
        assert payload["data"]["count"] == 1

    def test_self_requires_email(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["client", "link", "--self", "user-42"])
        assert result.exit_code == 2
        assert "--self requires --email" in result.output

    def test_non_numeric_client_id(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["client", "link", "ana", "user-42"])
        assert result.exit_code == 2


@pytest.mark.usefixtures("_isolated_studio")
class TestClientShow:
    def test_show_overview(self, cli_runner: CliRunner) -> None:
        client_id = _json(cli_runner, "client", "add", "Ana")["data"]["id"]
        result = cli_runner.invoke(cli, ["client", "show", str(client_id)])
        assert result.exit_code == 0
        assert "Ana" in result.output

    def test_show_account(self, cli_runner: CliRunner) -> None:
        client_id = _json(cli_runner, "client", "add", "Ana")["data"]["id"]
        _json(cli_runner, "client", "link", str(client_id), "user-42")
        payload = _json(cli_runner, "client", "show", "--account", "user-42")
        assert payload["data"]["count"] == 1

    def test_show_missing(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["client", "show", "99"])
        assert result.exit_code == 1
        assert "No client found with ID: 99" in result.stderr

    def test_show_needs_target(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["client", "show"])
        assert result.exit_code == 2


class TestTrainerIdentity:
    def test_missing_trainer_is_usage_error(
        self, cli_runner: CliRunner, studio_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(studio_root)
        monkeypatch.delenv("TRAINERCTL_TRAINER_ID", raising=False)
        result = cli_runner.invoke(cli, ["client", "add", "Ana"])
        assert result.exit_code == 2
        assert "No trainer id" in result.output
