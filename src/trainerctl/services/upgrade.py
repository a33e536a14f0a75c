"""UpgradeService — database migration with Alembic.

Pipeline: BACKUP → MIGRATE → REPORT
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any

from alembic import command
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import inspect

from trainerctl.infrastructure.database.migrations import build_config
from trainerctl.infrastructure.database.schema import TABLES
from trainerctl.services._helpers import now_compact
from trainerctl.services.base import BaseService
from trainerctl.services.result import ServiceError, ServiceResult
from trainerctl.services.telemetry import traced

logger = logging.getLogger(__name__)

BACKUP_MAX_COUNT = 10


class UpgradeService(BaseService):
    """Handles database schema migrations via Alembic."""

    def _tables_exist(self) -> bool:
        """True when the store tables exist without Alembic version tracking."""
        names = set(inspect(self._studio.engine).get_table_names())
        return all(table.name in names for table in TABLES.values())

    @traced
    def check_pending(self) -> ServiceResult:
        """List pending migrations without applying."""
        op = "upgrade"

        try:
            cfg = build_config(self._studio.db_path)
            script = ScriptDirectory.from_config(cfg)
            head = script.get_current_head()

            with self._studio.engine.connect() as conn:
                current = MigrationContext.configure(conn).get_current_revision()

            # Walk from head down to the current revision
            pending: list[dict[str, Any]] = []
            if current != head and head is not None:
                rev_obj = script.get_revision(head)
                while rev_obj is not None and rev_obj.revision != current:
                    pending.append({"revision": rev_obj.revision, "description": rev_obj.doc or ""})
                    down = rev_obj.down_revision
                    if down is None:
                        break
                    rev_obj = script.get_revision(str(down))
        except Exception as exc:
            logger.debug("Migration check failed", exc_info=True)
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="CHECK_FAILED", message=f"Failed to check migrations: {exc}"
                ),
            )

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "pending_count": len(pending),
                "pending": pending,
                "current": current,
                "head": head,
            },
        )

    @traced
    def apply(self) -> ServiceResult:
        """BACKUP → MIGRATE → REPORT pipeline."""
        op = "upgrade"

        check_result = self.check_pending()
        if not check_result.ok:
            return check_result

        pending_count = check_result.data["pending_count"]
        if pending_count == 0:
            return ServiceResult(
                ok=True,
                op=op,
                data={
                    "applied_count": 0,
                    "current": check_result.data["head"],
                    "message": "Database is already up to date",
                },
            )

        try:
            backup_path = self._backup_db()
        except OSError as exc:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(code="BACKUP_FAILED", message=f"Backup failed: {exc}"),
            )

        try:
            cfg = build_config(self._studio.db_path)
            if check_result.data.get("current") is None and self._tables_exist():
                # Tables created by create_all but never versioned: stamp instead
                # of replaying CREATE TABLE migrations.
                command.stamp(cfg, "head")
            else:
                command.upgrade(cfg, "head")
        except Exception as exc:
            logger.debug("Migration failed", exc_info=True)
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="MIGRATION_FAILED",
                    message=f"Migration failed: {exc}. Backup at: {backup_path}",
                    detail={"backup_path": str(backup_path)},
                ),
            )

        logger.info("Applied %d migration(s); backup at %s", pending_count, backup_path)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "applied_count": pending_count,
                "current": check_result.data["head"],
                "backup_path": str(backup_path),
            },
        )

    @traced
    def stamp_current(self) -> ServiceResult:
        """Stamp DB as at current head (for freshly created DBs)."""
        op = "upgrade"

        try:
            cfg = build_config(self._studio.db_path)
            command.stamp(cfg, "head")
            head = ScriptDirectory.from_config(cfg).get_current_head()
        except Exception as exc:
            logger.debug("Stamp failed", exc_info=True)
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(code="STAMP_FAILED", message=f"Failed to stamp database: {exc}"),
            )

        return ServiceResult(ok=True, op=op, data={"stamped": True, "current": head})

    def _backup_db(self) -> Path:
        """Checkpoint the WAL and copy the database into ``backups/``."""
        db_path = self._studio.db_path
        backup_dir = db_path.parent / "backups"
        backup_dir.mkdir(parents=True, exist_ok=True)

        with self._studio.engine.connect() as conn:
            conn.exec_driver_sql("PRAGMA wal_checkpoint(TRUNCATE)")

        backup_path = backup_dir / f"trainerctl-{now_compact()}.db"
        shutil.copy2(db_path, backup_path)

        backups = sorted(backup_dir.glob("trainerctl-*.db"))
        for old in backups[: max(0, len(backups) - BACKUP_MAX_COUNT)]:
            old.unlink(missing_ok=True)
        return backup_path
