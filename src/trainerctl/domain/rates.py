"""Client billing configuration as a tagged variant.

``RateConfig`` is one of :class:`HourlyRate`, :class:`MonthlyRate` or
:class:`PackageRate`. The store persists it as a ``rate_type`` column plus
at most one numeric rate column; both directions go through this module so
a row can never carry a rate for the wrong kind.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from trainerctl.domain.errors import ValidationError

RATE_TYPES = ("hourly", "monthly", "package")


class HourlyRate(BaseModel):
    """Billed per completed session not covered by a package credit."""

    model_config = {"frozen": True}

    kind: Literal["hourly"] = "hourly"
    rate: Decimal = Field(ge=0)


class MonthlyRate(BaseModel):
    """Flat monthly fee."""

    model_config = {"frozen": True}

    kind: Literal["monthly"] = "monthly"
    rate: Decimal = Field(ge=0)


class PackageRate(BaseModel):
    """Billed through prepaid packages; no automatic amount."""

    model_config = {"frozen": True}

    kind: Literal["package"] = "package"


RateConfig = Annotated[HourlyRate | MonthlyRate | PackageRate, Field(discriminator="kind")]


def parse_money(value: Any, *, field_name: str = "amount") -> Decimal:
    """Parse *value* as a non-negative decimal amount.

    Raises:
        ValidationError: If *value* is missing, non-numeric, or negative.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number", field=field_name)
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(
            f"{field_name} must be a number, got {value!r}", field=field_name
        ) from None
    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be a finite number", field=field_name)
    if amount < 0:
        raise ValidationError(f"{field_name} must not be negative", field=field_name)
    return amount


def make_rate(kind: str, amount: Any = None) -> HourlyRate | MonthlyRate | PackageRate:
    """Build a rate variant from user input.

    Hourly and monthly rates require an amount; package rates reject one.
    """
    if kind == "hourly":
        return HourlyRate(rate=parse_money(amount, field_name="hourly_rate"))
    if kind == "monthly":
        return MonthlyRate(rate=parse_money(amount, field_name="monthly_rate"))
    if kind == "package":
        if amount is not None:
            raise ValidationError("Package-based clients do not carry a rate", field="rate")
        return PackageRate()
    raise ValidationError(
        f"Unknown rate type: {kind!r}. Expected one of {list(RATE_TYPES)}", field="rate_type"
    )


def rate_to_columns(rate: HourlyRate | MonthlyRate | PackageRate) -> dict[str, str | None]:
    """Flatten a rate variant into ``rate_type`` / ``hourly_rate`` / ``monthly_rate``."""
    return {
        "rate_type": rate.kind,
        "hourly_rate": str(rate.rate) if isinstance(rate, HourlyRate) else None,
        "monthly_rate": str(rate.rate) if isinstance(rate, MonthlyRate) else None,
    }


def rate_from_columns(
    rate_type: str,
    hourly_rate: str | None,
    monthly_rate: str | None,
) -> HourlyRate | MonthlyRate | PackageRate:
    """Rebuild a rate variant from stored columns."""
    if rate_type == "hourly":
        if monthly_rate is not None:
            raise ValidationError("Hourly client row carries a monthly rate")
        return make_rate("hourly", hourly_rate)
    if rate_type == "monthly":
        if hourly_rate is not None:
            raise ValidationError("Monthly client row carries an hourly rate")
        return make_rate("monthly", monthly_rate)
    if hourly_rate is not None or monthly_rate is not None:
        raise ValidationError("Package client row carries a numeric rate")
    return make_rate(rate_type)
