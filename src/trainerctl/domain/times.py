"""Instant and date parsing.

All instants are timezone-aware UTC. Naive input is interpreted as UTC.
Stored form is second-precision ISO 8601 text, which sorts chronologically
for UTC values.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Any

from trainerctl.domain.errors import ValidationError


def utc_now() -> datetime:
    """The current instant in UTC."""
    return datetime.now(UTC)


def parse_instant(value: Any, *, field_name: str = "start_at") -> datetime:
    """Parse *value* (``datetime`` or ISO 8601 string) into an aware UTC datetime.

    Raises:
        ValidationError: If *value* is not a valid instant.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            raise ValidationError(
                f"{field_name} is not a valid instant: {value!r}", field=field_name
            ) from None
    else:
        raise ValidationError(f"{field_name} is not a valid instant: {value!r}", field=field_name)

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def parse_day(value: Any, *, field_name: str = "date") -> date:
    """Parse *value* (``date`` or ``YYYY-MM-DD``) into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"{field_name} must be a YYYY-MM-DD date: {value!r}", field=field_name)


def to_iso(value: datetime) -> str:
    """Serialize an instant as UTC ISO 8601 text."""
    return parse_instant(value).isoformat(timespec="seconds")
