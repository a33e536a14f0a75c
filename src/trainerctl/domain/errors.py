"""Typed error taxonomy for the session/package engine.

Infrastructure and the package ledger raise these exceptions. Services
catch them at their boundary and translate them into a
:class:`~trainerctl.services.result.ServiceError` with the same ``code``.
"""

from __future__ import annotations

from typing import Any


class TrainerError(Exception):
    """Base class for all domain errors.

    Attributes:
        code: Stable machine-readable error code.
        message: Human-readable description.
        detail: Extra structured context (ids, offending values).
    """

    code = "ERROR"

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationError(TrainerError):
    """Malformed or missing input (non-numeric amount, invalid instant, ...)."""

    code = "VALIDATION_ERROR"


class NotFoundError(TrainerError):
    """A referenced entity does not exist."""

    code = "NOT_FOUND"

    @classmethod
    def for_entity(cls, entity_type: str, entity_id: Any) -> NotFoundError:
        return cls(
            f"No {entity_type} found with ID: {entity_id}",
            entity_type=entity_type,
            id=entity_id,
        )


class InvalidTransitionError(TrainerError):
    """A session status transition is not allowed."""

    code = "INVALID_TRANSITION"


class CapacityExceededError(TrainerError):
    """A package has no credit left at the time of the debit."""

    code = "CAPACITY_EXCEEDED"


class PastTimeError(TrainerError):
    """A reschedule target is not strictly in the future."""

    code = "PAST_TIME"


class ConflictError(TrainerError):
    """An optimistic-concurrency precondition failed on a store write."""

    code = "CONFLICT"
