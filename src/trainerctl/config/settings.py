"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``TRAINERCTL_*`` prefix
  3. TOML file    — ``trainerctl.toml`` discovered via walk-up
  4. Code defaults — baked into the section models
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from trainerctl.config.discovery import ConfigFileError, find_config, read_config_file
from trainerctl.config.models import (
    IdentityConfig,
    PluginsConfig,
    RemindersConfig,
    SessionsConfig,
    StudioConfig,
)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``trainerctl.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            try:
                self._data = read_config_file(toml_path)
            except ConfigFileError as exc:
                raise click.ClickException(str(exc)) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for the TOML path during construction.
_tls = threading.local()


class TrainerSettings(BaseSettings):
    """Unified settings for the trainerctl CLI.

    Attributes:
        studio_root: Directory holding ``.trainerctl/`` (parent of
            ``trainerctl.toml``, or CWD if no config was found).
        config_path: The TOML file in effect, if any.
        trainer_id: ``--trainer`` override of ``[identity] trainer_id``.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "TRAINERCTL_",
        "env_nested_delimiter": "__",
    }

    studio_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    trainer_id: str | None = None

    # --- TOML sections ---
    studio: StudioConfig = Field(default_factory=StudioConfig)
    identity: IdentityConfig = Field(default_factory=IdentityConfig)
    sessions: SessionsConfig = Field(default_factory=SessionsConfig)
    reminders: RemindersConfig = Field(default_factory=RemindersConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    @property
    def acting_trainer(self) -> str | None:
        """``--trainer`` if given, else ``[identity] trainer_id``."""
        return self.trainer_id or self.identity.trainer_id

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, getattr(_tls, "toml_path", None)),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        studio_root: Path | None = None,
        **cli_flags: Any,
    ) -> TrainerSettings:
        """Construct settings from a CLI invocation.

        Discovers ``trainerctl.toml`` via walk-up (or explicit
        *config_path*), resolves *studio_root* from the config file's
        parent directory, and merges CLI flags as overrides.
        """
        toml_path: Path | None
        if config_path:
            p = Path(config_path)
            if not p.is_file():
                raise click.ClickException(f"Config file not found: {config_path}")
            toml_path = p
        else:
            toml_path = find_config(studio_root)

        resolved_root = studio_root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(studio_root=resolved_root, config_path=toml_path, **cli_flags)
        finally:
            _tls.toml_path = None
