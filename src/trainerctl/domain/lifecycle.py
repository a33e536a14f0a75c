"""Status enums and transition maps for sessions and packages.

Session lifecycle:
- ``scheduled`` and ``pending`` are open states; either may move to the
  other or to a terminal state.
- ``completed`` and ``cancelled`` are terminal: no further transition.

Package status changes (expiry, cancellation) are driven by policy outside
the consumption engine; only ``active`` packages can absorb credits.
"""

from __future__ import annotations

from enum import StrEnum


class SessionStatus(StrEnum):
    """Status of a single training session."""

    SCHEDULED = "scheduled"
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SessionMode(StrEnum):
    """Where a session takes place."""

    IN_PERSON = "in_person"
    ONLINE = "online"


class PackageStatus(StrEnum):
    """Status of a prepaid session package."""

    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class PaymentMethod(StrEnum):
    """How a payment was made."""

    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"
    OTHER = "other"


# --- Transition maps ---

SESSION_TRANSITIONS: dict[str, list[str]] = {
    "scheduled": ["pending", "completed", "cancelled"],
    "pending": ["scheduled", "completed", "cancelled"],
    "completed": [],
    "cancelled": [],
}

TERMINAL_SESSION_STATUSES = frozenset({SessionStatus.COMPLETED, SessionStatus.CANCELLED})


def is_valid_transition(
    current: str,
    target: str,
    transitions: dict[str, list[str]],
) -> bool:
    """Check if transitioning from *current* to *target* is allowed."""
    allowed = transitions.get(current, [])
    return target in allowed


def is_terminal(status: str) -> bool:
    """Return True for statuses that permit no further transition."""
    return status in TERMINAL_SESSION_STATUSES
