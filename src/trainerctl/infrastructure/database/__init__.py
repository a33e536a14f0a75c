"""SQLite database engine and schema via SQLAlchemy Core."""

from trainerctl.infrastructure.database.engine import create_db_engine, db_path_for, init_database
from trainerctl.infrastructure.database.schema import (
    TABLES,
    clients,
    metadata,
    packages,
    payments,
    sessions,
)

__all__ = [
    "TABLES",
    "clients",
    "create_db_engine",
    "db_path_for",
    "init_database",
    "metadata",
    "packages",
    "payments",
    "sessions",
]
