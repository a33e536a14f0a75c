"""Row <-> entity mapping and write-side field validation.

Every write goes through :func:`prepare_values`, which converts caller
input into stored column values and raises :class:`ValidationError` for
missing or malformed fields. Reads go through :func:`row_to_entity`.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from datetime import datetime
from enum import Enum, StrEnum
from typing import Any

from trainerctl.domain.entities import Client, Entity, Package, Payment, Session
from trainerctl.domain.errors import ValidationError
from trainerctl.domain.lifecycle import PackageStatus, PaymentMethod, SessionMode, SessionStatus
from trainerctl.domain.rates import (
    HourlyRate,
    MonthlyRate,
    PackageRate,
    parse_money,
    rate_from_columns,
    rate_to_columns,
)
from trainerctl.domain.times import parse_day, parse_instant, to_iso

ENTITY_TYPES = ("client", "package", "session", "payment")

Converter = Callable[[Any], Any]


# ---------------------------------------------------------------------------
# Column converters
# ---------------------------------------------------------------------------


def _text(name: str, *, required: bool = False) -> Converter:
    def convert(value: Any) -> str | None:
        if value is None or (isinstance(value, str) and not value.strip()):
            if required:
                raise ValidationError(f"{name} is required", field=name)
            return None
        return str(value).strip()

    return convert


def _email(value: Any) -> str | None:
    text = _text("email")(value)
    return text.lower() if text else None


def _count(name: str) -> Converter:
    def convert(value: Any) -> int:
        if isinstance(value, bool):
            raise ValidationError(f"{name} must be an integer", field=name)
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{name} must be an integer, got {value!r}", field=name) from None
        if number != value and not isinstance(value, str):
            raise ValidationError(f"{name} must be an integer, got {value!r}", field=name)
        if number < 0:
            raise ValidationError(f"{name} must not be negative", field=name)
        return number

    return convert


def _optional(convert: Converter) -> Converter:
    def wrapper(value: Any) -> Any:
        return None if value is None else convert(value)

    return wrapper


def _ref(name: str) -> Converter:
    def convert(value: Any) -> int:
        number = _count(name)(value)
        if number == 0:
            raise ValidationError(f"{name} must be a positive id", field=name)
        return number

    return convert


def _money(name: str) -> Converter:
    def convert(value: Any) -> str:
        return str(parse_money(value, field_name=name))

    return convert


def _instant(name: str) -> Converter:
    def convert(value: Any) -> str:
        return to_iso(parse_instant(value, field_name=name))

    return convert


def _day(name: str) -> Converter:
    def convert(value: Any) -> str:
        return parse_day(value, field_name=name).isoformat()

    return convert


def _choice(enum_cls: type[StrEnum], name: str) -> Converter:
    def convert(value: Any) -> str:
        try:
            return enum_cls(str(value)).value
        except ValueError:
            choices = [member.value for member in enum_cls]
            raise ValidationError(
                f"Invalid {name}: {value!r}. Expected one of {choices}", field=name
            ) from None

    return convert


def _id_list(value: Any) -> str:
    if value is None:
        return "[]"
    if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
        raise ValidationError(
            "related_session_ids must be a list of ids", field="related_session_ids"
        )
    ids = [_ref("related_session_ids")(item) for item in value]
    return json.dumps(sorted(set(ids)))


# ---------------------------------------------------------------------------
# Field specs per entity type
# ---------------------------------------------------------------------------

_FIELDS: dict[str, dict[str, Converter]] = {
    "client": {
        "trainer_id": _text("trainer_id", required=True),
        "name": _text("name", required=True),
        "email": _email,
        "client_user_id": _text("client_user_id"),
    },
    "package": {
        "client_id": _ref("client_id"),
        "name": _text("name"),
        "price": _optional(_money("price")),
        "sessions_total": _count("sessions_total"),
        "sessions_used": _count("sessions_used"),
        "status": _choice(PackageStatus, "status"),
        "starts_on": _optional(_day("starts_on")),
        "expires_on": _optional(_day("expires_on")),
    },
    "session": {
        "trainer_id": _text("trainer_id", required=True),
        "client_id": _ref("client_id"),
        "title": _text("title"),
        "start_at": _instant("start_at"),
        "end_at": _optional(_instant("end_at")),
        "mode": _choice(SessionMode, "mode"),
        "status": _choice(SessionStatus, "status"),
        "package_id": _optional(_ref("package_id")),
        "notes": _text("notes"),
    },
    "payment": {
        "trainer_id": _text("trainer_id", required=True),
        "client_id": _ref("client_id"),
        "amount": _money("amount"),
        "currency": _text("currency", required=True),
        "method": _choice(PaymentMethod, "method"),
        "paid_at": _instant("paid_at"),
        "note": _text("note"),
        "sessions_purchased": _optional(_count("sessions_purchased")),
        "related_session_ids": _id_list,
    },
}

_REQUIRED: dict[str, tuple[str, ...]] = {
    "client": ("trainer_id", "name"),
    "package": ("client_id", "sessions_total"),
    "session": ("trainer_id", "client_id", "start_at"),
    "payment": ("trainer_id", "client_id", "amount", "currency"),
}

# Columns stamped by the store rather than supplied by callers.
_CREATED_STAMP = {"client": "created_at", "package": "created_at", "session": "created_at"}
_MODIFIED_STAMP = {"client": "modified_at", "session": "modified_at"}


def check_entity_type(entity_type: str) -> None:
    if entity_type not in ENTITY_TYPES:
        raise ValidationError(
            f"Unknown entity type: {entity_type!r}. Expected one of {list(ENTITY_TYPES)}"
        )


def prepare_values(
    entity_type: str,
    fields: Mapping[str, Any],
    *,
    now: datetime,
    partial: bool = False,
) -> dict[str, Any]:
    """Convert caller *fields* into column values for *entity_type*.

    With ``partial=False`` (create), required fields must be present and
    creation/modification stamps are added. With ``partial=True`` (update
    patch), only the supplied fields are converted and the modification
    stamp is refreshed.
    """
    check_entity_type(entity_type)
    spec = _FIELDS[entity_type]
    values: dict[str, Any] = {}

    for key, value in fields.items():
        if entity_type == "client" and key == "rate":
            values.update(_rate_columns(value))
            continue
        convert = spec.get(key)
        if convert is None:
            raise ValidationError(f"Unknown {entity_type} field: {key}", field=key)
        values[key] = convert(value)

    if not partial:
        missing = [name for name in _REQUIRED[entity_type] if values.get(name) is None]
        if missing:
            raise ValidationError(
                f"Missing required {entity_type} fields: {', '.join(missing)}", fields=missing
            )
        if entity_type == "payment":
            values.setdefault("related_session_ids", "[]")
            values.setdefault("paid_at", to_iso(now))
        if entity_type in _CREATED_STAMP:
            values[_CREATED_STAMP[entity_type]] = to_iso(now)
    if entity_type in _MODIFIED_STAMP:
        values[_MODIFIED_STAMP[entity_type]] = to_iso(now)

    _check_cross_fields(entity_type, values)
    return values


def prepare_filter_value(value: Any) -> Any:
    """Normalize a filter/precondition value to its stored representation."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return to_iso(value)
    return value


def _rate_columns(value: Any) -> dict[str, str | None]:
    if not isinstance(value, (HourlyRate, MonthlyRate, PackageRate)):
        raise ValidationError("rate must be an hourly, monthly, or package rate", field="rate")
    return rate_to_columns(value)


def _check_cross_fields(entity_type: str, values: dict[str, Any]) -> None:
    if entity_type == "package":
        total = values.get("sessions_total")
        used = values.get("sessions_used")
        if total is not None and used is not None and used > total:
            raise ValidationError(
                "sessions_used cannot exceed sessions_total", field="sessions_used"
            )
        starts, expires = values.get("starts_on"), values.get("expires_on")
        if starts and expires and expires < starts:
            raise ValidationError("expires_on must not be before starts_on", field="expires_on")
    elif entity_type == "session":
        start, end = values.get("start_at"), values.get("end_at")
        if start and end and end <= start:
            raise ValidationError("end_at must be after start_at", field="end_at")


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def row_to_entity(entity_type: str, row: Mapping[str, Any]) -> Entity:
    """Build the frozen entity for a stored *row*."""
    data = dict(row)
    if entity_type == "client":
        rate = rate_from_columns(
            data.pop("rate_type"), data.pop("hourly_rate"), data.pop("monthly_rate")
        )
        return Client.model_validate({**data, "rate": rate})
    if entity_type == "package":
        return Package.model_validate(data)
    if entity_type == "session":
        return Session.model_validate(data)
    if entity_type == "payment":
        raw_ids = data.get("related_session_ids")
        data["related_session_ids"] = tuple(json.loads(raw_ids)) if raw_ids else ()
        return Payment.model_validate(data)
    check_entity_type(entity_type)
    raise AssertionError(entity_type)
