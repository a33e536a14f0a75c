"""Locating and reading ``trainerctl.toml``.

The studio is the directory holding ``trainerctl.toml``; commands run
from any subdirectory find it by walking up, the way git finds ``.git/``.
``TRAINERCTL_CONFIG`` names a file explicitly and disables the walk.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from trainerctl.config.models import TrainerConfig

CONFIG_FILENAME = "trainerctl.toml"
CONFIG_ENV_VAR = "TRAINERCTL_CONFIG"


class ConfigFileError(ValueError):
    """A config file exists but is not valid TOML."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Invalid TOML in {path}: {reason}")
        self.path = path


def _ancestors(start: Path) -> Iterator[Path]:
    current = start.resolve()
    yield current
    yield from current.parents


def find_config(start: Path | None = None) -> Path | None:
    """Path of the config file in effect for *start* (default: cwd), if any."""
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        path = Path(explicit)
        return path if path.is_file() else None

    for directory in _ancestors(start or Path.cwd()):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse *path* as TOML.

    Raises:
        ConfigFileError: If the file is not valid TOML.
    """
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigFileError(path, str(exc)) from exc


def load_config(path: Path | None = None, cwd: Path | None = None) -> TrainerConfig:
    """Validated config sections from *path*, or the discovered file.

    Falls back to the built-in defaults when there is no file.
    """
    path = path or find_config(cwd)
    if path is None:
        return TrainerConfig()
    return TrainerConfig.model_validate(read_config_file(path))
