"""EntityStore — CRUD for clients, packages, sessions, and payments.

The store is bound to a single connection inside an open transaction, so
every read and write it performs commits or rolls back with the caller's
unit of work. It performs no cascading business logic: multi-entity
transitions are orchestrated by the services.

Optimistic concurrency: :meth:`EntityStore.update` accepts a
``precondition`` mapping that is folded into the ``UPDATE ... WHERE``
clause. A zero rowcount on an existing row raises :class:`ConflictError`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError

from trainerctl.domain.errors import ConflictError, NotFoundError, ValidationError
from trainerctl.domain.times import utc_now
from trainerctl.infrastructure.database.schema import TABLES
from trainerctl.infrastructure.records import (
    check_entity_type,
    prepare_filter_value,
    prepare_values,
    row_to_entity,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy import ColumnElement, Connection, Table

    from trainerctl.domain.entities import Entity

logger = logging.getLogger(__name__)


class EntityStore:
    """Entity-level access to the shared store over one connection."""

    def __init__(self, conn: Connection, *, clock: Callable[[], datetime] = utc_now) -> None:
        self._conn = conn
        self._clock = clock

    @property
    def conn(self) -> Connection:
        return self._conn

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, entity_type: str, entity_id: int) -> Entity:
        """Fetch one entity by id.

        Raises:
            NotFoundError: If no row has *entity_id*.
        """
        table = _table(entity_type)
        row = self._conn.execute(select(table).where(table.c.id == entity_id)).mappings().first()
        if row is None:
            raise NotFoundError.for_entity(entity_type, entity_id)
        return row_to_entity(entity_type, row)

    def list(
        self,
        entity_type: str,
        filters: Mapping[str, Any] | None = None,
        *,
        order_by: str = "id",
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Entity]:
        """Fetch entities matching *filters*, ordered by *order_by* then id.

        Filter values match by equality; ``None`` matches NULL and a
        list/tuple/set matches any of its members.
        """
        table = _table(entity_type)
        stmt = select(table).where(*_conditions(table, filters or {}))

        if order_by not in table.c:
            raise ValidationError(f"Unknown {entity_type} column: {order_by}", field=order_by)
        primary = table.c[order_by]
        if descending:
            stmt = stmt.order_by(primary.desc(), table.c.id.desc())
        else:
            stmt = stmt.order_by(primary.asc(), table.c.id.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        rows = self._conn.execute(stmt).mappings().all()
        return [row_to_entity(entity_type, row) for row in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, entity_type: str, fields: Mapping[str, Any]) -> Entity:
        """Insert a new entity and return its stored snapshot.

        Raises:
            ValidationError: If required fields are missing or malformed,
                or the row violates a database constraint.
        """
        table = _table(entity_type)
        values = prepare_values(entity_type, fields, now=self._clock())
        try:
            result = self._conn.execute(insert(table).values(**values))
        except IntegrityError as exc:
            raise ValidationError(
                f"Cannot create {entity_type}: {exc.orig}", entity_type=entity_type
            ) from exc
        new_id = result.inserted_primary_key[0]
        logger.debug("Created %s %s", entity_type, new_id)
        return self.get(entity_type, new_id)

    def update(
        self,
        entity_type: str,
        entity_id: int,
        patch: Mapping[str, Any],
        *,
        precondition: Mapping[str, Any] | None = None,
    ) -> Entity:
        """Apply a partial update, optionally guarded by *precondition*.

        Raises:
            NotFoundError: If no row has *entity_id*.
            ConflictError: If the row exists but no longer matches *precondition*.
            ValidationError: If the patch is malformed or violates a constraint.
        """
        if entity_type == "payment":
            raise ValidationError("Payments are immutable once recorded", entity_type=entity_type)
        for key in ("id", "created_at"):
            if key in patch:
                raise ValidationError(f"Cannot change immutable field: {key}", field=key)

        table = _table(entity_type)
        values = prepare_values(entity_type, patch, now=self._clock(), partial=True)
        stmt = (
            update(table)
            .where(table.c.id == entity_id, *_conditions(table, precondition or {}))
            .values(**values)
        )
        try:
            rowcount = self._conn.execute(stmt).rowcount
        except IntegrityError as exc:
            raise ValidationError(
                f"Cannot update {entity_type} {entity_id}: {exc.orig}",
                entity_type=entity_type,
                id=entity_id,
            ) from exc

        if rowcount == 0:
            exists = self._conn.execute(select(table.c.id).where(table.c.id == entity_id)).first()
            if exists is None:
                raise NotFoundError.for_entity(entity_type, entity_id)
            raise ConflictError(
                f"{entity_type.capitalize()} {entity_id} was modified concurrently",
                entity_type=entity_type,
                id=entity_id,
                precondition={k: prepare_filter_value(v) for k, v in (precondition or {}).items()},
            )
        return self.get(entity_type, entity_id)


def _table(entity_type: str) -> Table:
    check_entity_type(entity_type)
    return TABLES[entity_type]


def _conditions(table: Table, filters: Mapping[str, Any]) -> list[ColumnElement[bool]]:
    conditions: list[ColumnElement[bool]] = []
    for key, value in filters.items():
        if key not in table.c:
            raise ValidationError(f"Unknown {table.name} column: {key}", field=key)
        column = table.c[key]
        if value is None:
            conditions.append(column.is_(None))
        elif isinstance(value, Sequence | set | frozenset) and not isinstance(value, str):
            conditions.append(column.in_([prepare_filter_value(v) for v in value]))
        else:
            conditions.append(column == prepare_filter_value(value))
    return conditions
