"""Studio — repository owning the store engine and transaction boundary.

The Studio is the single dependency injected into every service. It owns
the database engine and the plugin manager. :meth:`Studio.transaction`
yields a :class:`StudioTransaction` whose :class:`EntityStore` is bound to
one connection, so every write inside the block commits together or rolls
back together.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

from trainerctl.infrastructure.database.engine import db_path_for, init_database
from trainerctl.infrastructure.store import EntityStore

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from trainerctl.config.settings import TrainerSettings
    from trainerctl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


@dataclass
class StudioTransaction:
    """Active unit of work: one connection and the store bound to it."""

    conn: Connection
    store: EntityStore


class Studio:
    """Repository encapsulating database access and plugin hooks.

    Constructed once at CLI startup from :class:`TrainerSettings` and stored
    on the click context object. Services receive the Studio via their
    :class:`BaseService` constructor.
    """

    def __init__(self, settings: TrainerSettings) -> None:
        self._settings = settings
        self._engine: Engine = init_database(self.root)
        self._plugins: PluginManager | None = None

    @property
    def root(self) -> Path:
        """The studio root directory."""
        return self._settings.studio_root

    @property
    def db_path(self) -> Path:
        return db_path_for(self.root)

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def settings(self) -> TrainerSettings:
        """The resolved settings for this studio."""
        return self._settings

    @property
    def plugins(self) -> PluginManager | None:
        """The plugin manager (None if plugins are not initialized)."""
        return self._plugins

    def init_plugins(self) -> None:
        """Create the plugin manager and enable hook dispatch.

        Registers the built-in activity log and, unless ``[plugins]
        enabled`` is false, discovers entry-point plugins. Called by
        AppContext when the studio is first accessed.
        """
        from trainerctl.plugins.builtins.activity_log import ActivityLogPlugin
        from trainerctl.plugins.manager import PluginManager

        pm = PluginManager()
        if self._settings.plugins.enabled:
            pm.discover_and_load()
        pm.register_plugin(ActivityLogPlugin(), name="activity-builtin")
        self._plugins = pm

    @contextmanager
    def transaction(self) -> Iterator[StudioTransaction]:
        """One atomic unit of work against the store.

        Commits when the block exits normally; any exception rolls back
        every write made through the yielded store, leaving entities in
        their last-committed state.

        Usage::

            with studio.transaction() as txn:
                session = txn.store.get("session", session_id)
                txn.store.update("session", session_id, {"status": "cancelled"})
        """
        with self._engine.begin() as conn:
            yield StudioTransaction(conn=conn, store=EntityStore(conn))

    def close(self) -> None:
        """Release pooled connections."""
        self._engine.dispose()
