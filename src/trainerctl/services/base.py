"""BaseService — abstract foundation for all trainerctl services.

Every service receives a :class:`Studio` at construction time. The Studio
provides transactional access to the store. Services own their
transaction boundaries via ``self._studio.transaction()``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

from trainerctl.domain.errors import ConflictError, TrainerError
from trainerctl.services.result import ServiceResult
from trainerctl.services.telemetry import annotate

if TYPE_CHECKING:
    from collections.abc import Callable

    from trainerctl.infrastructure.studio import Studio, StudioTransaction

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class PackageService(BaseService):
            def balance(self, client_id: int) -> ServiceResult:
                with self._studio.transaction() as txn:
                    ...
    """

    def __init__(self, studio: Studio) -> None:
        self._studio = studio

    def _run_with_conflict_retry(self, work: Callable[[StudioTransaction], T]) -> T:
        """Run *work* in a transaction, retrying once on :class:`ConflictError`.

        The retry starts a fresh transaction, so *work* re-reads current
        state. A second conflict propagates to the caller.
        """
        try:
            with self._studio.transaction() as txn:
                return work(txn)
        except ConflictError as exc:
            logger.info("Conflict on first attempt, retrying with a fresh read: %s", exc.message)
            annotate("conflict_retry", exc.code)
        with self._studio.transaction() as txn:
            return work(txn)

    @staticmethod
    def _failure(op: str, exc: TrainerError) -> ServiceResult:
        """Translate a domain error into a failed ServiceResult."""
        return ServiceResult.failure(op, exc)

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str],
    ) -> None:
        """Dispatch a lifecycle hook after commit. No-op if plugins are not initialized.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        pm = self._studio.plugins
        if pm is None:
            return
        for plugin_name in pm.dispatch(hook_name, payload):
            warnings.append(f"Hook dispatch failed for {hook_name} ({plugin_name})")
