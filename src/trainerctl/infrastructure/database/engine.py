"""Database engine setup for SQLite with WAL mode.

SQLite is the shared store: WAL mode so readers never block the single
writer, a busy timeout so concurrent writers queue instead of failing,
and foreign keys enforced. The DB is stored at
{studio_root}/.trainerctl/trainerctl.db.

SQLAlchemy Core (not ORM) is used because every operation is a short,
explicit request/response against the store.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from trainerctl.infrastructure.database.schema import metadata

DATA_DIRNAME = ".trainerctl"
DB_FILENAME = "trainerctl.db"
BUSY_TIMEOUT_MS = 5000


def db_path_for(studio_root: Path) -> Path:
    """Location of the database file for *studio_root*."""
    return studio_root / DATA_DIRNAME / DB_FILENAME


def set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
    cursor.close()


def create_db_engine(db_path: Path, **engine_kwargs: Any) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled."""
    engine = create_engine(f"sqlite:///{db_path}", echo=False, **engine_kwargs)
    event.listen(engine, "connect", set_sqlite_pragma)
    return engine


def init_database(studio_root: Path) -> Engine:
    """Initialize the database at ``{studio_root}/.trainerctl/trainerctl.db``.

    Creates the ``.trainerctl/`` directory structure and all tables from
    :data:`schema.metadata`.

    Idempotent — safe to call on an existing studio.

    Returns the engine ready for use.
    """
    data_dir = studio_root / DATA_DIRNAME
    data_dir.mkdir(parents=True, exist_ok=True)
    (data_dir / "backups").mkdir(exist_ok=True)

    engine = create_db_engine(db_path_for(studio_root))
    metadata.create_all(engine)
    return engine
