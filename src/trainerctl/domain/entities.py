"""Entity models for the four stored record types.

Entities are frozen snapshots of a row at read time. Mutations always go
through the store, which returns a fresh snapshot.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from trainerctl.domain.lifecycle import (
    PackageStatus,
    PaymentMethod,
    SessionMode,
    SessionStatus,
)
from trainerctl.domain.rates import PackageRate, RateConfig


class Client(BaseModel):
    """A trainer's client, optionally linked to an end-user account."""

    model_config = {"frozen": True}

    id: int
    trainer_id: str
    name: str
    email: str | None = None
    client_user_id: str | None = None
    rate: RateConfig = Field(default_factory=PackageRate)
    created_at: datetime
    modified_at: datetime


class Package(BaseModel):
    """A prepaid bundle of session credits."""

    model_config = {"frozen": True}

    id: int
    client_id: int
    name: str | None = None
    price: Decimal | None = None
    sessions_total: int
    sessions_used: int = 0
    status: PackageStatus = PackageStatus.ACTIVE
    starts_on: date | None = None
    expires_on: date | None = None
    created_at: datetime

    @property
    def remaining(self) -> int:
        return max(0, self.sessions_total - self.sessions_used)


class Session(BaseModel):
    """A single training appointment."""

    model_config = {"frozen": True}

    id: int
    trainer_id: str
    client_id: int
    title: str | None = None
    start_at: datetime
    end_at: datetime | None = None
    mode: SessionMode = SessionMode.IN_PERSON
    status: SessionStatus = SessionStatus.SCHEDULED
    package_id: int | None = None
    notes: str | None = None
    created_at: datetime
    modified_at: datetime

    @property
    def duration(self) -> timedelta | None:
        if self.end_at is None:
            return None
        return self.end_at - self.start_at


class Payment(BaseModel):
    """A recorded payment. Immutable once created."""

    model_config = {"frozen": True}

    id: int
    trainer_id: str
    client_id: int
    amount: Decimal
    currency: str
    method: PaymentMethod = PaymentMethod.CASH
    paid_at: datetime
    note: str | None = None
    sessions_purchased: int | None = None
    related_session_ids: tuple[int, ...] = ()


Entity = Client | Package | Session | Payment


def to_data(entity: BaseModel, **extra: Any) -> dict[str, Any]:
    """JSON-safe dict for a ServiceResult payload."""
    data = entity.model_dump(mode="json")
    data.update(extra)
    return data
