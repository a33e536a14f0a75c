"""Shared pytest fixtures and test helpers for trainerctl tests."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest
import structlog
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from trainerctl.config.settings import TrainerSettings
from trainerctl.domain.rates import HourlyRate, MonthlyRate, PackageRate
from trainerctl.infrastructure.database.engine import init_database
from trainerctl.infrastructure.studio import Studio

TRAINER = "trainer-1"

# Fixed reference instant for tests that pass ``now`` explicitly.
NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _reset_process_state() -> Iterator[None]:
    """Undo the process-wide state a CLI invocation leaves behind."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    from trainerctl.services.telemetry import disable_telemetry

    disable_telemetry()
    root.handlers = handlers
    root.setLevel(level)
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def studio_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Temporary studio directory, isolated from any user config."""
    monkeypatch.delenv("TRAINERCTL_CONFIG", raising=False)
    return tmp_path


@pytest.fixture
def studio(studio_root: Path) -> Iterator[Studio]:
    """Initialized studio on a temp directory, plugins enabled."""
    settings = TrainerSettings.from_cli(studio_root=studio_root)
    s = Studio(settings)
    s.init_plugins()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def _isolated_studio(studio_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run the CLI inside a temp studio with ``[identity] trainer_id`` set.

    Use via ``@pytest.mark.usefixtures("_isolated_studio")`` on command
    test classes.
    """
    (studio_root / "trainerctl.toml").write_text(f'[identity]\ntrainer_id = "{TRAINER}"\n')
    monkeypatch.chdir(studio_root)


# ---------------------------------------------------------------------------
# Shared test helpers (used across service test modules)
# ---------------------------------------------------------------------------


def create_client(
    studio: Studio,
    name: str = "Ana Novak",
    *,
    rate: HourlyRate | MonthlyRate | PackageRate | None = None,
    **kwargs: Any,
) -> dict[str, Any]:
    """Create a client via ClientService, asserting success."""
    from trainerctl.services.clients import ClientService

    result = ClientService(studio).create_client(TRAINER, name, rate=rate, **kwargs)
    assert result.ok, result.error
    return result.data


def open_package(
    studio: Studio, client_id: int, sessions_total: int = 10, **kwargs: Any
) -> dict[str, Any]:
    """Open a package via PackageService, asserting success."""
    from trainerctl.services.packages import PackageService

    result = PackageService(studio).open_package(client_id, sessions_total, **kwargs)
    assert result.ok, result.error
    return result.data


def schedule_session(
    studio: Studio,
    client_id: int,
    start_at: str = "2026-03-12T09:00:00Z",
    **kwargs: Any,
) -> dict[str, Any]:
    """Schedule a session via LifecycleService, asserting success."""
    from trainerctl.services.lifecycle import LifecycleService

    result = LifecycleService(studio).schedule(TRAINER, client_id, start_at, **kwargs)
    assert result.ok, result.error
    return result.data


def get_package(studio: Studio, package_id: int) -> Any:
    with studio.transaction() as txn:
        return txn.store.get("package", package_id)


def get_session(studio: Studio, session_id: int) -> Any:
    with studio.transaction() as txn:
        return txn.store.get("session", session_id)
