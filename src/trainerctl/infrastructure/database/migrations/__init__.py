"""Alembic migrations for the trainerctl store.

Configured in code; there is no alembic.ini. Revisions live in
``versions/`` next to ``env.py``.
"""

from __future__ import annotations

from pathlib import Path

from alembic.config import Config

SCRIPT_DIR = Path(__file__).parent


def build_config(db_path: Path) -> Config:
    """Alembic config for the database at *db_path*.

    ``env.py`` opens its own engine from ``sqlalchemy.url`` with the
    same pragmas the studio engine uses.
    """
    cfg = Config()
    cfg.set_main_option("script_location", str(SCRIPT_DIR))
    cfg.set_main_option("sqlalchemy.url", f"sqlite:///{db_path}")
    cfg.attributes["db_path"] = db_path
    return cfg
