"""Pluggy hook specifications for trainerctl lifecycle events.

Hooks fire synchronously after the originating transaction commits.
Payload values are JSON-safe (ids, ISO timestamps, plain dicts).
"""

from __future__ import annotations

from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("trainerctl")


class TrainerctlHookSpec:
    """Hook specifications for the trainerctl plugin system."""

    @hookspec
    def post_session_schedule(self, session: dict[str, Any]) -> None:
        """Called after a session is created."""

    @hookspec
    def post_session_status(self, session_id: int, old_status: str, new_status: str) -> None:
        """Called after a session moves between scheduled, pending and cancelled."""

    @hookspec
    def post_session_complete(self, session_id: int, package_id: int | None) -> None:
        """Called after a session completes; *package_id* is the debited package."""

    @hookspec
    def post_session_reschedule(
        self,
        session_id: int,
        old_start_at: str,
        new_start_at: str,
    ) -> None:
        """Called after a session is moved in time."""

    @hookspec
    def post_payment_record(self, payment: dict[str, Any]) -> None:
        """Called after a payment is recorded."""
