"""Alembic environment for the trainerctl store."""

from __future__ import annotations

from pathlib import Path

from alembic import context
from sqlalchemy import pool

from trainerctl.infrastructure.database.engine import create_db_engine
from trainerctl.infrastructure.database.schema import metadata

config = context.config


def run_offline() -> None:
    """Emit the migration SQL without a database."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=metadata,
        literal_binds=True,
        render_as_batch=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    """Migrate the studio database in place."""
    db_path = config.attributes.get("db_path")
    if db_path is None:
        url = config.get_main_option("sqlalchemy.url")
        if not url or not url.startswith("sqlite:///"):
            raise RuntimeError("trainerctl migrations need a sqlite:/// URL")
        db_path = Path(url.removeprefix("sqlite:///"))

    engine = create_db_engine(Path(db_path), poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            context.configure(
                connection=connection,
                target_metadata=metadata,
                # SQLite cannot ALTER most constraints; batch mode rebuilds the table.
                render_as_batch=True,
            )
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
