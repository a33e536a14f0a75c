"""Tests for the operation-specific Rich renderers."""

from __future__ import annotations

from typing import Any

import pytest

from trainerctl.output.renderers import _OP_RENDERERS, render_result
from trainerctl.services.result import ServiceError, ServiceResult


def _ok(op: str, data: dict[str, Any], **kw: Any) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=data, **kw)


SESSION = {
    "id": 3,
    "trainer_id": "trainer-1",
    "client_id": 1,
    "title": "Legs",
    "start_at": "2026-03-12T09:00:00Z",
    "end_at": "2026-03-12T10:00:00Z",
    "mode": "in_person",
    "status": "completed",
    "package_id": 2,
}

PACKAGE = {
    "id": 2,
    "client_id": 1,
    "name": "Spring block",
    "sessions_total": 10,
    "sessions_used": 4,
    "remaining": 6,
    "status": "active",
    "expires_on": None,
}

PAYMENT = {
    "id": 9,
    "client_id": 1,
    "amount": "120.00",
    "currency": "EUR",
    "method": "card",
    "paid_at": "2026-03-01T10:00:00Z",
    "note": "March",
}


class TestMutationRenderers:
    def test_client_with_rate(self) -> None:
        out = render_result(
            _ok("create_client", {"id": 1, "name": "Ana", "rate": {"kind": "hourly", "rate": "40"}})
        )
        assert "OK" in out
        assert "name: Ana" in out
        assert "rate: hourly 40" in out

    def test_complete_with_credit(self) -> None:
        out = render_result(_ok("complete_session", {**SESSION, "package": PACKAGE}))
        assert "status: completed" in out
        assert "credit: package 2: 6 of 10 left" in out

    def test_complete_without_credit(self) -> None:
        data = {**SESSION, "package_id": None, "package": None}
        out = render_result(_ok("complete_session", data))
        assert "credit: none (billed per session)" in out

    def test_reschedule_shows_previous_start(self) -> None:
        data = {**SESSION, "previous_start_at": "2026-03-11T09:00:00Z"}
        out = render_result(_ok("reschedule_session", data))
        assert "previous_start_at: 2026-03-11T09:00:00Z" in out

    def test_update_lists_changed_fields(self) -> None:
        data = {"id": 1, "name": "Ana", "fields_changed": ["email", "name"]}
        out = render_result(_ok("update_client", data))
        assert "fields_changed: email, name" in out

    def test_self_link(self) -> None:
        out = render_result(
            _ok("self_link", {"user_id": "u-1", "linked_client_ids": [], "count": 0})
        )
        assert "linked: none" in out


class TestListingRenderers:
    def test_client_table(self) -> None:
        items = [{"id": 1, "name": "Ana", "email": "a@x.si", "rate": {"kind": "package"}}]
        out = render_result(_ok("list_clients", {"count": 1, "items": items}))
        assert "Ana" in out
        assert "package" in out
        assert "1 clients" in out

    def test_agenda(self) -> None:
        out = render_result(_ok("agenda", {"day": "2026-03-12", "count": 1, "items": [SESSION]}))
        assert "Agenda for 2026-03-12" in out
        assert "2026-03-12T09:00:00Z" in out
        assert "1 sessions" in out

    def test_empty_agenda(self) -> None:
        out = render_result(_ok("agenda", {"day": "2026-03-12", "count": 0, "items": []}))
        assert "0 sessions" in out

    def test_balance(self) -> None:
        data = {
            "client_id": 1,
            "packages": [PACKAGE],
            "active_remaining": 6,
            "next_package_id": None,
        }
        out = render_result(_ok("package_balance", data))
        assert "active_remaining: 6" in out
        assert "next_package_id: none" in out
        assert "Spring block" in out

    def test_payments(self) -> None:
        out = render_result(_ok("list_payments", {"count": 1, "items": [PAYMENT]}))
        assert "120.00 EUR" in out
        assert "1 payments" in out

    def test_finance(self) -> None:
        data = {
            "month": "2026-03",
            "month_total": "120.00",
            "year_total": "480.00",
            "count": 4,
            "currency": "EUR",
            "months": [{"month": "2026-03", "total": "120.00"}],
        }
        out = render_result(_ok("finance_summary", data))
        assert "month_total: 120.00 EUR" in out
        assert "year_total: 480.00 EUR" in out

    @pytest.mark.parametrize(
        ("amount", "expected"),
        [("80", "amount: 80 EUR"), (None, "no suggestion (package billing)")],
    )
    def test_suggestion(self, amount: str | None, expected: str) -> None:
        data = {"client_id": 1, "rate_type": "hourly", "amount": amount, "currency": "EUR"}
        assert expected in render_result(_ok("suggest_amount", data))

    def test_reminders(self) -> None:
        item = {
            "session_id": 3,
            "trigger_at": "2026-03-12T07:00:00Z",
            "start_at": "2026-03-12T09:00:00Z",
            "notes": "09:00 • in person",
        }
        data = {"count": 1, "items": [item], "minutes_before": 120}
        out = render_result(_ok("plan_reminders", data))
        assert "2026-03-12T07:00:00Z" in out
        assert "1 reminders (120 minutes before)" in out


class TestDetailRenderers:
    def _view(self) -> dict[str, Any]:
        return {
            "client": {
                "id": 1,
                "name": "Ana",
                "email": None,
                "rate": {"kind": "package"},
                "client_user_id": None,
            },
            "sessions": [SESSION],
            "packages": [PACKAGE],
            "payments": [PAYMENT],
            "active_package_id": 2,
            "sessions_remaining": 6,
        }

    def test_overview(self) -> None:
        out = render_result(_ok("client_overview", self._view()))
        assert "Ana" in out
        assert "sessions remaining: 6" in out
        assert "Sessions" in out
        assert "Payments" in out

    def test_account_without_links(self) -> None:
        out = render_result(_ok("for_account", {"user_id": "u-1", "count": 0, "clients": []}))
        assert "No clients linked to u-1" in out

    def test_account_with_links(self) -> None:
        data = {"user_id": "u-1", "count": 1, "clients": [self._view()]}
        assert "Spring block" in render_result(_ok("for_account", data))


class TestUpgradeRenderer:
    def test_pending_verbose(self) -> None:
        data = {
            "pending_count": 1,
            "pending": [{"revision": "001_baseline", "description": "Baseline"}],
            "current": None,
            "head": "001_baseline",
        }
        out = render_result(_ok("upgrade", data), verbose=True)
        assert "pending_count: 1" in out
        assert "001_baseline: Baseline" in out


class TestErrorAndFallback:
    def test_error_line(self) -> None:
        result = ServiceResult(
            ok=False,
            op="complete_session",
            error=ServiceError(
                code="INVALID_TRANSITION", message="Session 3 is already cancelled"
            ),
        )
        out = render_result(result)
        assert out.startswith("ERROR")
        assert "Session 3 is already cancelled" in out

    def test_error_detail_verbose(self) -> None:
        result = ServiceResult(
            ok=False,
            op="record_payment",
            error=ServiceError(code="VALIDATION_ERROR", message="bad", detail={"field": "amount"}),
        )
        assert "field: amount" in render_result(result, verbose=True)

    def test_unknown_op_generic(self) -> None:
        out = render_result(_ok("something_else", {"key": "value", "nested": {"a": 1}}))
        assert "key: value" in out
        assert 'nested: {"a":1}' in out

    def test_verbose_meta_tree(self) -> None:
        meta = {
            "telemetry": {
                "name": "LifecycleService.complete",
                "duration_ms": 3.5,
                "children": [
                    {
                        "name": "package_debit",
                        "duration_ms": 1.2,
                        "annotations": {"package_id": 2},
                    }
                ],
            }
        }
        out = render_result(_ok("schedule_session", SESSION, meta=meta), verbose=True)
        assert "LifecycleService.complete" in out
        assert "package_debit" in out
        assert "package_id=2" in out


def test_every_service_op_has_a_renderer() -> None:
    ops = {
        "create_client",
        "update_client",
        "link_account",
        "self_link",
        "list_clients",
        "client_overview",
        "for_account",
        "open_package",
        "package_balance",
        "schedule_session",
        "mark_pending",
        "mark_scheduled",
        "cancel_session",
        "complete_session",
        "reschedule_session",
        "agenda",
        "suggest_amount",
        "record_payment",
        "list_payments",
        "finance_summary",
        "plan_reminders",
        "upgrade",
    }
    assert ops <= set(_OP_RENDERERS)
