"""Tests for the built-in activity log plugin."""

from __future__ import annotations

from decimal import Decimal

from structlog.testing import capture_logs

from trainerctl.domain.rates import HourlyRate
from trainerctl.infrastructure.studio import Studio
from trainerctl.plugins.builtins.activity_log import ActivityLogPlugin
from trainerctl.plugins.manager import PluginManager
from trainerctl.services.lifecycle import LifecycleService
from trainerctl.services.payments import PaymentService
from trainerctl.services.scheduling import ScheduleService
from tests.conftest import NOW, TRAINER, create_client, open_package, schedule_session


class TestActivityLogPlugin:
    def test_registers_all_hooks(self) -> None:
        pm = PluginManager()
        pm.register_plugin(ActivityLogPlugin(), name="activity-builtin")
        assert "activity-builtin" in pm.list_plugin_names()
        with capture_logs() as logs:
            pm.hook.post_session_status(session_id=1, old_status="scheduled", new_status="pending")
        assert logs == [
            {
                "event": "session.status",
                "log_level": "info",
                "session_id": 1,
                "old_status": "scheduled",
                "new_status": "pending",
            }
        ]

    def test_session_lifecycle_trail(self, studio: Studio) -> None:
        client = create_client(studio)
        package = open_package(studio, client["id"], 5)
        with capture_logs() as logs:
            session = schedule_session(studio, client["id"], "2026-03-12T09:00:00Z")
            ScheduleService(studio).reschedule(session["id"], "2026-03-13T09:00:00Z", now=NOW)
            LifecycleService(studio).complete(session["id"])

        events = [entry["event"] for entry in logs if "event" in entry]
        assert events[:3] == ["session.scheduled", "session.rescheduled", "session.completed"]
        completed = next(e for e in logs if e.get("event") == "session.completed")
        assert completed["package_id"] == package["id"]

    def test_payment_recorded(self, studio: Studio) -> None:
        client = create_client(studio, rate=HourlyRate(rate=Decimal("40")))
        with capture_logs() as logs:
            PaymentService(studio).record_payment(TRAINER, client["id"], "40")
        recorded = [e for e in logs if e.get("event") == "payment.recorded"]
        assert len(recorded) == 1
        assert recorded[0]["amount"] == "40"
        assert recorded[0]["currency"] == "EUR"
