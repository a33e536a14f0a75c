"""ClientService — client records, account links and client overviews."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from trainerctl.domain.entities import Client, Package, to_data
from trainerctl.domain.errors import TrainerError, ValidationError
from trainerctl.domain.lifecycle import PackageStatus
from trainerctl.domain.rates import HourlyRate, MonthlyRate, PackageRate
from trainerctl.infrastructure.store import EntityStore
from trainerctl.services.base import BaseService
from trainerctl.services.ledger import PackageLedger, remaining_credits
from trainerctl.services.result import ServiceResult
from trainerctl.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from trainerctl.infrastructure.studio import StudioTransaction

logger = logging.getLogger(__name__)

Rate = HourlyRate | MonthlyRate | PackageRate


class ClientService(BaseService):
    """Create, edit, link and inspect clients."""

    @traced
    def create_client(
        self,
        trainer_id: str,
        name: str,
        *,
        email: str | None = None,
        rate: Rate | None = None,
    ) -> ServiceResult:
        """Create a client. Without *rate* the client is package-billed."""
        op = "create_client"
        try:
            with self._studio.transaction() as txn:
                client = txn.store.create(
                    "client",
                    {
                        "trainer_id": trainer_id,
                        "name": name,
                        "email": email,
                        "rate": rate or PackageRate(),
                    },
                )
        except TrainerError as exc:
            return self._failure(op, exc)

        logger.info("Created client %s for trainer %s", client.id, trainer_id)
        return ServiceResult(ok=True, op=op, data=to_data(client))

    @traced
    def update_client(
        self,
        client_id: int,
        *,
        name: str | None = None,
        email: str | None = None,
        rate: Rate | None = None,
    ) -> ServiceResult:
        """Apply the given field changes; omitted fields stay as they are."""
        op = "update_client"
        patch: dict[str, Any] = {}
        if name is not None:
            patch["name"] = name
        if email is not None:
            patch["email"] = email
        if rate is not None:
            patch["rate"] = rate

        try:
            if not patch:
                raise ValidationError("No changes given", client_id=client_id)
            with self._studio.transaction() as txn:
                txn.store.get("client", client_id)
                client = txn.store.update("client", client_id, patch)
        except TrainerError as exc:
            return self._failure(op, exc)

        return ServiceResult(
            ok=True, op=op, data=to_data(client, fields_changed=sorted(patch))
        )

    @traced
    def link_account(
        self, client_id: int, user_id: str, *, email: str | None = None
    ) -> ServiceResult:
        """Attach an end-user account to a client row (trainer side)."""
        op = "link_account"
        patch: dict[str, Any] = {"client_user_id": user_id}
        if email is not None:
            patch["email"] = email
        try:
            if not user_id or not user_id.strip():
                raise ValidationError("user_id is required", field="user_id")
            with self._studio.transaction() as txn:
                txn.store.get("client", client_id)
                client = txn.store.update("client", client_id, patch)
        except TrainerError as exc:
            return self._failure(op, exc)

        return ServiceResult(ok=True, op=op, data=to_data(client))

    @traced
    def self_link(self, user_id: str, email: str) -> ServiceResult:
        """Claim every unlinked client row whose email matches *email*.

        Rows already linked to a different account are left alone and
        reported as warnings.
        """
        op = "self_link"

        def work(txn: StudioTransaction) -> tuple[list[int], list[str]]:
            linked: list[int] = []
            foreign: list[str] = []
            for match in txn.store.list("client", {"email": email.strip().lower()}):
                client = cast(Client, match)
                if client.client_user_id == user_id:
                    linked.append(client.id)
                    continue
                if client.client_user_id is not None:
                    foreign.append(f"Client {client.id} is linked to another account")
                    continue
                txn.store.update(
                    "client",
                    client.id,
                    {"client_user_id": user_id},
                    precondition={"client_user_id": None},
                )
                linked.append(client.id)
            return linked, foreign

        try:
            if not email or not email.strip():
                raise ValidationError("email is required", field="email")
            linked, warnings = self._run_with_conflict_retry(work)
        except TrainerError as exc:
            return self._failure(op, exc)

        return ServiceResult(
            ok=True,
            op=op,
            data={"user_id": user_id, "linked_client_ids": linked, "count": len(linked)},
            warnings=warnings,
        )

    @traced
    def list_clients(self, trainer_id: str, *, query: str | None = None) -> ServiceResult:
        """Clients of *trainer_id* ordered by name, optionally filtered by substring."""
        op = "list_clients"
        try:
            with self._studio.transaction() as txn:
                clients = txn.store.list("client", {"trainer_id": trainer_id}, order_by="name")
        except TrainerError as exc:
            return self._failure(op, exc)

        needle = (query or "").strip().lower()
        items = [
            to_data(c)
            for c in clients
            if not needle or needle in cast(Client, c).name.lower()
        ]
        return ServiceResult(ok=True, op=op, data={"count": len(items), "items": items})

    @traced
    def overview(self, client_id: int) -> ServiceResult:
        """Client detail: sessions, packages, payments and remaining credits."""
        op = "client_overview"
        try:
            with self._studio.transaction() as txn:
                client = txn.store.get("client", client_id)
                with trace_span("client_history"):
                    data = _client_view(txn.store, cast(Client, client))
        except TrainerError as exc:
            return self._failure(op, exc)

        return ServiceResult(ok=True, op=op, data=data)

    @traced
    def for_account(self, user_id: str) -> ServiceResult:
        """Client-side view: every client row linked to *user_id*."""
        op = "for_account"
        try:
            with self._studio.transaction() as txn:
                clients = txn.store.list("client", {"client_user_id": user_id})
                views = [_client_view(txn.store, cast(Client, c)) for c in clients]
        except TrainerError as exc:
            return self._failure(op, exc)

        return ServiceResult(
            ok=True, op=op, data={"user_id": user_id, "count": len(views), "clients": views}
        )


def _client_view(store: EntityStore, client: Client) -> dict[str, Any]:
    sessions = store.list("session", {"client_id": client.id}, order_by="start_at", descending=True)
    packages = store.list("package", {"client_id": client.id}, order_by="id", descending=True)
    payments = store.list("payment", {"client_id": client.id}, order_by="paid_at", descending=True)

    current = PackageLedger(store).select_active_package(client.id)
    newest_active = next(
        (cast(Package, p) for p in packages if cast(Package, p).status == PackageStatus.ACTIVE),
        None,
    )
    return {
        "client": to_data(client),
        "sessions": [to_data(s) for s in sessions],
        "packages": [
            to_data(p, remaining=remaining_credits(cast(Package, p))) for p in packages
        ],
        "payments": [to_data(p) for p in payments],
        "active_package_id": current.id if current else None,
        "sessions_remaining": remaining_credits(newest_active) if newest_active else None,
    }
