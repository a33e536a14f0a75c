"""PackageLedger — credit selection and compare-and-set debit.

The ledger works on an :class:`EntityStore` bound to the caller's open
transaction, so a debit commits or rolls back together with whatever the
caller writes next (see ``LifecycleService.complete``).

Selection policy: among the client's ``active`` packages with remaining
capacity, the highest id (most recently purchased) is consumed first.
A client with no such package is billed per session; that is a valid
outcome, not an error.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, cast

from trainerctl.domain.entities import Package
from trainerctl.domain.errors import CapacityExceededError, ConflictError
from trainerctl.domain.lifecycle import PackageStatus

if TYPE_CHECKING:
    from trainerctl.infrastructure.store import EntityStore

logger = logging.getLogger(__name__)


def remaining_credits(package: Package) -> int:
    """Credits left on *package*, never negative."""
    return max(0, package.sessions_total - package.sessions_used)


class PackageLedger:
    """Decides which package absorbs a completion and applies the debit."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    def select_active_package(self, client_id: int) -> Package | None:
        """Return the client's newest active package with credit left, if any."""
        candidates = self._store.list(
            "package",
            {"client_id": client_id, "status": PackageStatus.ACTIVE},
            order_by="id",
            descending=True,
        )
        for package in candidates:
            if remaining_credits(cast(Package, package)) > 0:
                return cast(Package, package)
        return None

    def consume_credit(self, package_id: int, *, expected_used: int | None = None) -> Package:
        """Increment ``sessions_used`` by exactly one.

        The write is conditional on the package still being active and
        ``sessions_used`` still equal to *expected_used* (or the value read
        here when *expected_used* is None).

        Raises:
            NotFoundError: If the package does not exist.
            CapacityExceededError: If no credit is left at debit time.
            ConflictError: If credit is left but another writer changed
                ``sessions_used`` since *expected_used* was read.
        """
        current = cast(Package, self._store.get("package", package_id))
        if current.status != PackageStatus.ACTIVE or remaining_credits(current) == 0:
            raise _exhausted(current)

        used = current.sessions_used if expected_used is None else expected_used
        if used >= current.sessions_total:
            raise _exhausted(current)

        try:
            debited = self._store.update(
                "package",
                package_id,
                {"sessions_used": used + 1},
                precondition={"sessions_used": used, "status": PackageStatus.ACTIVE},
            )
        except ConflictError:
            latest = cast(Package, self._store.get("package", package_id))
            if latest.status != PackageStatus.ACTIVE or remaining_credits(latest) == 0:
                raise _exhausted(latest) from None
            raise

        logger.debug(
            "Debited package %s: %s/%s used",
            package_id,
            used + 1,
            current.sessions_total,
        )
        return cast(Package, debited)


def _exhausted(package: Package) -> CapacityExceededError:
    return CapacityExceededError(
        f"Package {package.id} has no credit left "
        f"({package.sessions_used}/{package.sessions_total} used, {package.status})",
        package_id=package.id,
        sessions_used=package.sessions_used,
        sessions_total=package.sessions_total,
    )
