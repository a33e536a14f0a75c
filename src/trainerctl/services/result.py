"""Return types shared by every service call.

Services never raise domain errors to their callers: a
:class:`~trainerctl.domain.errors.TrainerError` is turned into a failed
:class:`ServiceResult` carrying the same ``code`` and ``detail``. The CLI
and the JSON output consume these models as they are.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from trainerctl.domain.errors import TrainerError


class ServiceError(BaseModel):
    """Why an operation failed: a stable code, a message and context."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: TrainerError) -> ServiceError:
        return cls(code=exc.code, message=exc.message, detail=dict(exc.detail))


class ServiceResult(BaseModel):
    """Outcome of one service operation.

    Attributes:
        ok: Whether the operation succeeded.
        op: Operation name, e.g. ``"complete_session"``; picks the renderer.
        data: Entity fields or listing payload on success.
        warnings: Non-fatal problems, such as a plugin hook that failed.
        error: Set when ``ok`` is False.
        meta: Extra diagnostics; ``telemetry`` holds the span tree.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(cls, op: str, exc: TrainerError) -> ServiceResult:
        """A failed result for *op* carrying *exc*'s code, message and detail."""
        return cls(ok=False, op=op, error=ServiceError.from_exception(exc))
