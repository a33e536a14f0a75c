"""Tests for LifecycleService — scheduling, status transitions and completion."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Any

import pluggy
import pytest

from trainerctl.domain.entities import Package
from trainerctl.domain.lifecycle import SessionStatus
from trainerctl.domain.rates import HourlyRate
from trainerctl.infrastructure.studio import Studio
from trainerctl.services.ledger import PackageLedger
from trainerctl.services.lifecycle import LifecycleService
from trainerctl.services.payments import PaymentService
from tests.conftest import (
    TRAINER,
    create_client,
    get_package,
    get_session,
    open_package,
    schedule_session,
)

hookimpl = pluggy.HookimplMarker("trainerctl")


class _Recorder:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    @hookimpl
    def post_session_schedule(self, session: dict[str, Any]) -> None:
        self.calls.append(("schedule", {"id": session["id"]}))

    @hookimpl
    def post_session_status(self, session_id: int, old_status: str, new_status: str) -> None:
        self.calls.append(("status", {"old": old_status, "new": new_status}))

    @hookimpl
    def post_session_complete(self, session_id: int, package_id: int | None) -> None:
        self.calls.append(("complete", {"package_id": package_id}))


@pytest.fixture
def recorder(studio: Studio) -> _Recorder:
    rec = _Recorder()
    assert studio.plugins is not None
    studio.plugins.register_plugin(rec, name="recorder")
    return rec


class TestSchedule:
    def test_defaults(self, studio: Studio) -> None:
        client = create_client(studio)
        data = schedule_session(studio, client["id"], "2026-03-12T09:00:00Z")
        assert data["status"] == "scheduled"
        assert data["mode"] == "in_person"
        assert data["package_id"] is None
        assert data["trainer_id"] == TRAINER
        assert data["end_at"].startswith("2026-03-12T10:00:00")

    def test_explicit_end_and_mode(self, studio: Studio) -> None:
        client = create_client(studio)
        data = schedule_session(
            studio,
            client["id"],
            "2026-03-12T09:00:00Z",
            end_at="2026-03-12T09:45:00Z",
            mode="online",
            title="Mobility",
        )
        assert data["end_at"].startswith("2026-03-12T09:45:00")
        assert data["mode"] == "online"
        assert data["title"] == "Mobility"

    def test_duration_minutes(self, studio: Studio) -> None:
        client = create_client(studio)
        data = schedule_session(studio, client["id"], "2026-03-12T09:00:00Z", duration_minutes=30)
        assert data["end_at"].startswith("2026-03-12T09:30:00")

    def test_naive_start_is_utc(self, studio: Studio) -> None:
        client = create_client(studio)
        data = schedule_session(studio, client["id"], "2026-03-12T09:00:00")
        assert data["start_at"].startswith("2026-03-12T09:00:00")

    def test_end_before_start(self, studio: Studio) -> None:
        client = create_client(studio)
        result = LifecycleService(studio).schedule(
            TRAINER, client["id"], "2026-03-12T09:00:00Z", end_at="2026-03-12T08:00:00Z"
        )
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "VALIDATION_ERROR"

    def test_invalid_instant(self, studio: Studio) -> None:
        client = create_client(studio)
        result = LifecycleService(studio).schedule(TRAINER, client["id"], "next tuesday")
        assert result.error is not None
        assert result.error.code == "VALIDATION_ERROR"

    def test_unknown_client(self, studio: Studio) -> None:
        result = LifecycleService(studio).schedule(TRAINER, 99, "2026-03-12T09:00:00Z")
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"

    def test_dispatches_hook(self, studio: Studio, recorder: _Recorder) -> None:
        client = create_client(studio)
        data = schedule_session(studio, client["id"])
        assert recorder.calls == [("schedule", {"id": data["id"]})]


class TestStatusOverwrites:
    def test_pending_and_back(self, studio: Studio, recorder: _Recorder) -> None:
        client = create_client(studio)
        session = schedule_session(studio, client["id"])
        svc = LifecycleService(studio)

        pending = svc.mark_pending(session["id"])
        assert pending.ok
        assert pending.data["status"] == "pending"
        assert pending.data["previous_status"] == "scheduled"

        back = svc.mark_scheduled(session["id"])
        assert back.data["status"] == "scheduled"
        assert recorder.calls[-2:] == [
            ("status", {"old": "scheduled", "new": "pending"}),
            ("status", {"old": "pending", "new": "scheduled"}),
        ]

    def test_same_status_is_noop(self, studio: Studio, recorder: _Recorder) -> None:
        client = create_client(studio)
        session = schedule_session(studio, client["id"])
        result = LifecycleService(studio).mark_scheduled(session["id"])
        assert result.ok
        assert not any(name == "status" for name, _ in recorder.calls)

    def test_cancel_keeps_credits(self, studio: Studio) -> None:
        client = create_client(studio)
        package = open_package(studio, client["id"], 5)
        session = schedule_session(studio, client["id"])

        result = LifecycleService(studio).cancel(session["id"])

        assert result.ok
        assert result.data["status"] == "cancelled"
        assert get_package(studio, package["id"]).sessions_used == 0

    @pytest.mark.parametrize("terminal", ["cancel", "complete"])
    @pytest.mark.parametrize("action", ["mark_pending", "mark_scheduled", "cancel"])
    def test_terminal_sessions_rejected(self, studio: Studio, terminal: str, action: str) -> None:
        client = create_client(studio)
        session = schedule_session(studio, client["id"])
        svc = LifecycleService(studio)
        assert getattr(svc, terminal)(session["id"]).ok

        result = getattr(svc, action)(session["id"])

        assert not result.ok
        assert result.error is not None
        assert result.error.code == "INVALID_TRANSITION"

    def test_missing_session(self, studio: Studio) -> None:
        result = LifecycleService(studio).cancel(404)
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"


class TestComplete:
    def test_consumes_newest_package(self, studio: Studio, recorder: _Recorder) -> None:
        client = create_client(studio)
        older = open_package(studio, client["id"], 10)
        newer = open_package(studio, client["id"], 5)
        session = schedule_session(studio, client["id"])

        result = LifecycleService(studio).complete(session["id"])

        assert result.ok
        assert result.data["status"] == "completed"
        assert result.data["package_id"] == newer["id"]
        assert result.data["credit_consumed"] is True
        assert result.data["package"]["remaining"] == 4
        assert get_package(studio, older["id"]).sessions_used == 0
        assert recorder.calls[-1] == ("complete", {"package_id": newer["id"]})

    def test_without_package_bills_per_session(self, studio: Studio) -> None:
        client = create_client(studio)
        session = schedule_session(studio, client["id"])

        result = LifecycleService(studio).complete(session["id"])

        assert result.ok
        assert result.data["package_id"] is None
        assert result.data["credit_consumed"] is False
        assert result.data["package"] is None

    def test_from_pending(self, studio: Studio) -> None:
        client = create_client(studio)
        session = schedule_session(studio, client["id"])
        svc = LifecycleService(studio)
        svc.mark_pending(session["id"])
        assert svc.complete(session["id"]).data["status"] == "completed"

    def test_complete_twice_debits_once(self, studio: Studio) -> None:
        client = create_client(studio)
        package = open_package(studio, client["id"], 10)
        session = schedule_session(studio, client["id"])
        svc = LifecycleService(studio)

        assert svc.complete(session["id"]).ok
        second = svc.complete(session["id"])

        assert not second.ok
        assert second.error is not None
        assert second.error.code == "INVALID_TRANSITION"
        assert get_package(studio, package["id"]).sessions_used == 1

    def test_rollback_when_session_write_fails(
        self, studio: Studio, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        from trainerctl.domain.errors import ValidationError
        from trainerctl.infrastructure.store import EntityStore

        client = create_client(studio)
        package = open_package(studio, client["id"], 10)
        session = schedule_session(studio, client["id"])
        original_update = EntityStore.update

        def failing_update(self: EntityStore, entity_type: str, *args: Any, **kw: Any) -> Any:
            if entity_type == "session":
                raise ValidationError("disk on fire")
            return original_update(self, entity_type, *args, **kw)

        monkeypatch.setattr(EntityStore, "update", failing_update)
        result = LifecycleService(studio).complete(session["id"])

        assert not result.ok
        assert get_package(studio, package["id"]).sessions_used == 0
        assert get_session(studio, session["id"]).status == SessionStatus.SCHEDULED


class TestScenarios:
    def test_a_hourly_client_without_packages(self, studio: Studio) -> None:
        client = create_client(studio, rate=HourlyRate(rate=Decimal("50")))
        svc = LifecycleService(studio)
        for start in ("2026-03-12T09:00:00Z", "2026-03-13T09:00:00Z"):
            session = schedule_session(studio, client["id"], start)
            assert svc.complete(session["id"]).data["package_id"] is None

        suggestion = PaymentService(studio).suggest_amount(client["id"])

        assert Decimal(suggestion.data["amount"]) == Decimal("100")

    def test_b_last_credit_is_consumed(self, studio: Studio) -> None:
        client = create_client(studio)
        package = open_package(studio, client["id"], 10)
        _set_used(studio, package["id"], 9)
        session = schedule_session(studio, client["id"])

        result = LifecycleService(studio).complete(session["id"])

        assert result.data["package_id"] == package["id"]
        assert get_package(studio, package["id"]).sessions_used == 10

    def test_c_exhausted_package_untouched(self, studio: Studio) -> None:
        client = create_client(studio)
        package = open_package(studio, client["id"], 10)
        _set_used(studio, package["id"], 10)
        session = schedule_session(studio, client["id"])

        result = LifecycleService(studio).complete(session["id"])

        assert result.ok
        assert result.data["package_id"] is None
        assert get_package(studio, package["id"]).sessions_used == 10

    def test_e_cancelled_session_cannot_complete(self, studio: Studio) -> None:
        client = create_client(studio)
        package = open_package(studio, client["id"], 10)
        session = schedule_session(studio, client["id"])
        svc = LifecycleService(studio)
        svc.cancel(session["id"])

        result = svc.complete(session["id"])

        assert result.error is not None
        assert result.error.code == "INVALID_TRANSITION"
        assert get_package(studio, package["id"]).sessions_used == 0
        assert get_session(studio, session["id"]).package_id is None


class TestCreditRace:
    """Two completions racing for the last credit of one package."""

    def test_loser_falls_back_to_no_package(
        self, studio: Studio, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        client = create_client(studio)
        package = open_package(studio, client["id"], 10)
        _set_used(studio, package["id"], 9)
        first = schedule_session(studio, client["id"], "2026-03-12T09:00:00Z")
        second = schedule_session(studio, client["id"], "2026-03-13T09:00:00Z")
        svc = LifecycleService(studio)

        # Snapshot taken by the second completion before the first commits.
        stale: Package = get_package(studio, package["id"])
        assert svc.complete(first["id"]).data["package_id"] == package["id"]

        original = PackageLedger.select_active_package
        selections: list[int] = []

        def racing_select(self: PackageLedger, client_id: int) -> Package | None:
            selections.append(client_id)
            if len(selections) == 1:
                return stale
            return original(self, client_id)

        monkeypatch.setattr(PackageLedger, "select_active_package", racing_select)
        result = svc.complete(second["id"])

        assert result.ok
        assert result.data["package_id"] is None
        assert len(selections) == 2
        assert get_package(studio, package["id"]).sessions_used == 10
        winners = [
            s for s in (get_session(studio, first["id"]), get_session(studio, second["id"]))
            if s.package_id == package["id"]
        ]
        assert len(winners) == 1

    def test_reselection_finds_other_package(
        self, studio: Studio, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        client = create_client(studio)
        spare = open_package(studio, client["id"], 3)
        contested = open_package(studio, client["id"], 1)
        stale: Package = get_package(studio, contested["id"])
        _set_used(studio, contested["id"], 1)
        session = schedule_session(studio, client["id"])

        original = PackageLedger.select_active_package
        calls = 0

        def racing_select(self: PackageLedger, client_id: int) -> Package | None:
            nonlocal calls
            calls += 1
            return stale if calls == 1 else original(self, client_id)

        monkeypatch.setattr(PackageLedger, "select_active_package", racing_select)
        result = LifecycleService(studio).complete(session["id"])

        assert result.data["package_id"] == spare["id"]
        assert get_package(studio, spare["id"]).sessions_used == 1
        assert get_package(studio, contested["id"]).sessions_used == 1

    def test_two_studios_race_for_last_credit(self, studio: Studio) -> None:
        client = create_client(studio)
        package = open_package(studio, client["id"], 1)
        sessions = [
            schedule_session(studio, client["id"], "2026-03-12T09:00:00Z"),
            schedule_session(studio, client["id"], "2026-03-13T09:00:00Z"),
        ]
        # A second process on the same database file: its own engine and connections.
        rival = Studio(studio.settings)
        barrier = threading.Barrier(2)

        def complete(on: Studio, session_id: int) -> Any:
            barrier.wait(timeout=5)
            return LifecycleService(on).complete(session_id)

        try:
            with ThreadPoolExecutor(max_workers=2) as pool:
                futures = [
                    pool.submit(complete, studio, sessions[0]["id"]),
                    pool.submit(complete, rival, sessions[1]["id"]),
                ]
                results = [f.result(timeout=30) for f in futures]
        finally:
            rival.close()

        assert all(r.ok for r in results), [r.error for r in results]
        assert sorted(r.data["credit_consumed"] for r in results) == [False, True]
        assert get_package(studio, package["id"]).sessions_used == 1
        stored = [get_session(studio, s["id"]) for s in sessions]
        assert all(s.status == SessionStatus.COMPLETED for s in stored)
        assert [s.package_id for s in stored].count(package["id"]) == 1


class TestAgenda:
    def test_sessions_for_day(self, studio: Studio) -> None:
        client = create_client(studio)
        late = schedule_session(studio, client["id"], "2026-03-12T17:00:00Z")
        early = schedule_session(studio, client["id"], "2026-03-12T07:00:00Z")
        schedule_session(studio, client["id"], "2026-03-13T07:00:00Z")

        result = LifecycleService(studio).agenda(TRAINER, day="2026-03-12")

        assert result.data["day"] == "2026-03-12"
        assert [s["id"] for s in result.data["items"]] == [early["id"], late["id"]]
        assert result.data["count"] == 2

    def test_other_trainers_excluded(self, studio: Studio) -> None:
        client = create_client(studio)
        LifecycleService(studio).schedule("trainer-2", client["id"], "2026-03-12T09:00:00Z")
        result = LifecycleService(studio).agenda(TRAINER, day="2026-03-12")
        assert result.data["count"] == 0

    def test_bad_day(self, studio: Studio) -> None:
        result = LifecycleService(studio).agenda(TRAINER, day="12/03/2026")
        assert result.error is not None
        assert result.error.code == "VALIDATION_ERROR"


def _set_used(studio: Studio, package_id: int, used: int) -> None:
    with studio.transaction() as txn:
        txn.store.update("package", package_id, {"sessions_used": used})
