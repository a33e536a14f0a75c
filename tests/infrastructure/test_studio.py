"""Tests for Studio — engine ownership, transactions and plugin wiring."""

from __future__ import annotations

from pathlib import Path

import pytest

from trainerctl.config.settings import TrainerSettings
from trainerctl.domain.errors import ValidationError
from trainerctl.infrastructure.studio import Studio


class TestStudioInit:
    def test_creates_database(self, studio_root: Path) -> None:
        studio = Studio(TrainerSettings.from_cli(studio_root=studio_root))
        try:
            assert studio.db_path == studio_root / ".trainerctl" / "trainerctl.db"
            assert studio.db_path.exists()
            assert studio.root == studio_root
        finally:
            studio.close()

    def test_plugins_none_until_initialized(self, studio_root: Path) -> None:
        studio = Studio(TrainerSettings.from_cli(studio_root=studio_root))
        try:
            assert studio.plugins is None
            studio.init_plugins()
            assert studio.plugins is not None
            assert studio.plugins.is_loaded
            assert "activity-builtin" in studio.plugins.list_plugin_names()
        finally:
            studio.close()

    def test_builtin_registered_when_discovery_disabled(self, studio_root: Path) -> None:
        (studio_root / "trainerctl.toml").write_text("[plugins]\nenabled = false\n")
        settings = TrainerSettings.from_cli(config_path=str(studio_root / "trainerctl.toml"))
        studio = Studio(settings)
        try:
            studio.init_plugins()
            assert studio.plugins is not None
            assert not studio.plugins.is_loaded
            assert studio.plugins.list_plugin_names() == ["activity-builtin"]
        finally:
            studio.close()


class TestTransaction:
    def test_commit(self, studio: Studio) -> None:
        with studio.transaction() as txn:
            client = txn.store.create("client", {"trainer_id": "t", "name": "Ana"})
        with studio.transaction() as txn:
            assert txn.store.get("client", client.id).name == "Ana"  # type: ignore[union-attr]

    def test_rollback_on_error(self, studio: Studio) -> None:
        with pytest.raises(ValidationError), studio.transaction() as txn:
            txn.store.create("client", {"trainer_id": "t", "name": "Ana"})
            txn.store.create("client", {"trainer_id": "t", "name": ""})
        with studio.transaction() as txn:
            assert txn.store.list("client") == []
