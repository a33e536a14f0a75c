"""PackageService — opening packages and reporting balances."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import cast

from trainerctl.domain.entities import Package, to_data
from trainerctl.domain.errors import TrainerError
from trainerctl.domain.lifecycle import PackageStatus
from trainerctl.services.base import BaseService
from trainerctl.services.ledger import PackageLedger, remaining_credits
from trainerctl.services.result import ServiceResult
from trainerctl.services.telemetry import traced

logger = logging.getLogger(__name__)


class PackageService(BaseService):
    """Explicit package creation and credit balances."""

    @traced
    def open_package(
        self,
        client_id: int,
        sessions_total: int,
        *,
        name: str | None = None,
        price: Decimal | str | None = None,
        starts_on: date | str | None = None,
        expires_on: date | str | None = None,
    ) -> ServiceResult:
        """Open an ``active`` package of *sessions_total* credits for *client_id*."""
        op = "open_package"
        try:
            with self._studio.transaction() as txn:
                txn.store.get("client", client_id)
                package = txn.store.create(
                    "package",
                    {
                        "client_id": client_id,
                        "sessions_total": sessions_total,
                        "sessions_used": 0,
                        "status": PackageStatus.ACTIVE,
                        "name": name,
                        "price": price,
                        "starts_on": starts_on,
                        "expires_on": expires_on,
                    },
                )
        except TrainerError as exc:
            return self._failure(op, exc)

        logger.info("Opened package %s for client %s", package.id, client_id)
        return ServiceResult(
            ok=True,
            op=op,
            data=to_data(package, remaining=remaining_credits(cast(Package, package))),
        )

    @traced
    def balance(self, client_id: int) -> ServiceResult:
        """All packages of *client_id* (newest first) with remaining credits.

        ``next_package_id`` is the package the next completion would debit.
        """
        op = "package_balance"
        try:
            with self._studio.transaction() as txn:
                txn.store.get("client", client_id)
                packages = [
                    cast(Package, p)
                    for p in txn.store.list(
                        "package", {"client_id": client_id}, order_by="id", descending=True
                    )
                ]
                upcoming = PackageLedger(txn.store).select_active_package(client_id)
        except TrainerError as exc:
            return self._failure(op, exc)

        active_remaining = sum(
            remaining_credits(p) for p in packages if p.status == PackageStatus.ACTIVE
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "client_id": client_id,
                "packages": [to_data(p, remaining=remaining_credits(p)) for p in packages],
                "active_remaining": active_remaining,
                "next_package_id": upcoming.id if upcoming else None,
            },
        )
