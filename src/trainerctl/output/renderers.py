"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from trainerctl.output.console import create_console, get_output, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from trainerctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode: ids only."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    items = result.data.get("items")
    if isinstance(items, list):
        return "\n".join(_extract_id(item) for item in items if _extract_id(item))
    if "linked_client_ids" in result.data:
        return "\n".join(str(i) for i in result.data["linked_client_ids"])
    if result.data.get("id") is not None:
        return str(result.data["id"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _extract_id(item: Any) -> str:
    if isinstance(item, dict):
        for key in ("id", "session_id"):
            val = item.get(key)
            if val is not None:
                return str(val)
    return ""


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK/ERROR status line."""
    label = Text("OK", style="tc.ok")
    op = Text(f"  {result.op}", style="tc.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}:", style="tc.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="tc.id")
    elif key == "name":
        v = Text(str(value), style="tc.name")
    elif key == "status":
        v = Text(str(value), style=style_for_status(str(value)))
    elif key in ("amount", "price", "month_total", "year_total"):
        v = Text(str(value), style="tc.money")
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _status_text(value: Any) -> Text:
    return Text(str(value or ""), style=style_for_status(str(value or "")))


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


def _rate_label(rate: dict[str, Any] | None) -> str:
    if not rate:
        return ""
    if rate.get("kind") == "package":
        return "package"
    return f"{rate.get('kind')} {rate.get('rate')}"


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{ak}={av}" for ak, av in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _session_table(items: list[dict[str, Any]], *, verbose: bool = False) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="tc.id", no_wrap=True)
    table.add_column("Start", no_wrap=True)
    table.add_column("End", no_wrap=True)
    table.add_column("Client", style="tc.id")
    table.add_column("Mode")
    table.add_column("Status")
    table.add_column("Package", style="tc.id")
    if verbose:
        table.add_column("Title")
    for item in items:
        row: list[Any] = [
            _cell(item.get("id")),
            _cell(item.get("start_at")),
            _cell(item.get("end_at")),
            _cell(item.get("client_id")),
            _cell(item.get("mode")),
            _status_text(item.get("status")),
            _cell(item.get("package_id")),
        ]
        if verbose:
            row.append(_cell(item.get("title")))
        table.add_row(*row)
    return table


def _package_table(items: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="tc.id", no_wrap=True)
    table.add_column("Name")
    table.add_column("Used", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Remaining", justify="right")
    table.add_column("Status")
    table.add_column("Expires")
    for item in items:
        table.add_row(
            _cell(item.get("id")),
            _cell(item.get("name")),
            _cell(item.get("sessions_used")),
            _cell(item.get("sessions_total")),
            _cell(item.get("remaining")),
            _status_text(item.get("status")),
            _cell(item.get("expires_on")),
        )
    return table


def _payment_table(items: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="tc.id", no_wrap=True)
    table.add_column("Paid at", no_wrap=True)
    table.add_column("Client", style="tc.id")
    table.add_column("Amount", style="tc.money", justify="right")
    table.add_column("Method")
    table.add_column("Note")
    for item in items:
        table.add_row(
            _cell(item.get("id")),
            _cell(item.get("paid_at")),
            _cell(item.get("client_id")),
            f"{_cell(item.get('amount'))} {_cell(item.get('currency'))}",
            _cell(item.get("method")),
            _cell(item.get("note")),
        )
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="tc.error")
    op = Text(f"  {result.op}", style="tc.op")
    sep = Text(" — ")
    console.print(label, op, sep, msg)

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Mutation renderers ────────────────────────────────────────────────

_MUTATION_KEYS = (
    "id",
    "name",
    "email",
    "client_id",
    "client_user_id",
    "start_at",
    "end_at",
    "previous_start_at",
    "mode",
    "status",
    "previous_status",
    "package_id",
    "sessions_total",
    "remaining",
    "amount",
    "currency",
    "method",
    "paid_at",
)


def _render_mutation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render create/update/status results for a single entity."""
    _status_line(console, result)
    d = result.data
    for key in _MUTATION_KEYS:
        if d.get(key) is not None:
            _field(console, key, d[key])
    if "rate" in d:
        _field(console, "rate", _rate_label(d["rate"]))
    if d.get("related_session_ids"):
        _field(console, "sessions", ", ".join(str(i) for i in d["related_session_ids"]))
    if "fields_changed" in d:
        _field(console, "fields_changed", ", ".join(d["fields_changed"]))
    if verbose:
        _render_meta(console, result)


def _render_complete(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a completion with its package debit."""
    _render_mutation(result, console, verbose=False)
    package = result.data.get("package")
    if package:
        _field(
            console,
            "credit",
            f"package {package['id']}: {package['remaining']} of "
            f"{package['sessions_total']} left",
        )
    else:
        _field(console, "credit", "none (billed per session)")
    if verbose:
        _render_meta(console, result)


def _render_self_link(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    ids = result.data.get("linked_client_ids", [])
    _field(console, "user_id", result.data.get("user_id"))
    _field(console, "linked", ", ".join(str(i) for i in ids) if ids else "none")


# ── Listing renderers ─────────────────────────────────────────────────


def _render_client_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="tc.id", no_wrap=True)
    table.add_column("Name", style="tc.name")
    table.add_column("Email")
    table.add_column("Rate")
    table.add_column("Account")
    for item in items:
        table.add_row(
            _cell(item.get("id")),
            _cell(item.get("name")),
            _cell(item.get("email")),
            _rate_label(item.get("rate")),
            _cell(item.get("client_user_id")),
        )
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} clients")


def _render_agenda(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    console.print(Text(f"Agenda for {result.data.get('day')}", style="tc.op"))
    if items:
        console.print(_session_table(items, verbose=verbose))
    console.print(f"\n{result.data.get('count', len(items))} sessions")


def _render_balance(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "client_id", d.get("client_id"))
    _field(console, "active_remaining", d.get("active_remaining"))
    _field(console, "next_package_id", _cell(d.get("next_package_id")) or "none")
    if d.get("packages"):
        console.print()
        console.print(_package_table(d["packages"]))


def _render_payments(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    console.print(_payment_table(items))
    console.print(f"\n{result.data.get('count', len(items))} payments")


def _render_finance(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    currency = d.get("currency", "")
    _status_line(console, result)
    _field(console, "month", d.get("month"))
    _field(console, "month_total", f"{d.get('month_total')} {currency}")
    _field(console, "year_total", f"{d.get('year_total')} {currency}")
    _field(console, "payments", d.get("count"))
    months = d.get("months", [])
    if months:
        table = Table(show_header=True, pad_edge=False, expand=False)
        table.add_column("Month")
        table.add_column("Total", style="tc.money", justify="right")
        for row in months:
            table.add_row(row["month"], f"{row['total']} {currency}")
        console.print()
        console.print(table)


def _render_suggestion(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "client_id", d.get("client_id"))
    _field(console, "rate_type", d.get("rate_type"))
    if d.get("amount") is None:
        _field(console, "amount", "no suggestion (package billing)")
    else:
        _field(console, "amount", f"{d['amount']} {d.get('currency', '')}")


def _render_reminders(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("Session", style="tc.id", no_wrap=True)
    table.add_column("Trigger at", no_wrap=True)
    table.add_column("Start", no_wrap=True)
    table.add_column("Notes")
    for item in items:
        table.add_row(
            _cell(item.get("session_id")),
            _cell(item.get("trigger_at")),
            _cell(item.get("start_at")),
            _cell(item.get("notes")),
        )
    console.print(table)
    console.print(
        f"\n{result.data.get('count', len(items))} reminders "
        f"({result.data.get('minutes_before')} minutes before)"
    )


# ── Detail renderers ──────────────────────────────────────────────────


def _render_client_view(console: Console, view: dict[str, Any], *, verbose: bool) -> None:
    client = view.get("client", {})
    lines = [
        f"email: {_cell(client.get('email')) or '-'}",
        f"rate: {_rate_label(client.get('rate'))}",
        f"account: {_cell(client.get('client_user_id')) or '-'}",
    ]
    remaining = view.get("sessions_remaining")
    if remaining is not None:
        lines.append(f"sessions remaining: {remaining}")
    title = f"{client.get('id', '?')} — {client.get('name', 'Unnamed')}"
    console.print(Panel("\n".join(lines), title=title, border_style="dim", expand=False))

    if view.get("sessions"):
        console.print(Text("Sessions", style="tc.op"))
        console.print(_session_table(view["sessions"], verbose=verbose))
    if view.get("packages"):
        console.print(Text("Packages", style="tc.op"))
        console.print(_package_table(view["packages"]))
    if view.get("payments"):
        console.print(Text("Payments", style="tc.op"))
        console.print(_payment_table(view["payments"]))


def _render_overview(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _render_client_view(console, result.data, verbose=verbose)
    if verbose:
        _render_meta(console, result)


def _render_account(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    views = result.data.get("clients", [])
    if not views:
        console.print(f"No clients linked to {result.data.get('user_id')}")
        return
    for view in views:
        _render_client_view(console, view, verbose=verbose)


# ── Upgrade renderers ────────────────────────────────────────────────


def _render_upgrade(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render upgrade/migration results."""
    _status_line(console, result)
    d = result.data
    for key in (
        "applied_count",
        "pending_count",
        "stamped",
        "current",
        "head",
        "backup_path",
        "message",
    ):
        if key in d:
            _field(console, key, d[key])
    if verbose and d.get("pending"):
        console.print()
        for p in d["pending"]:
            console.print(f"  {p['revision']}: {p['description']}")


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, _json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Clients
    "create_client": _render_mutation,
    "update_client": _render_mutation,
    "link_account": _render_mutation,
    "self_link": _render_self_link,
    "list_clients": _render_client_table,
    "client_overview": _render_overview,
    "for_account": _render_account,
    # Packages
    "open_package": _render_mutation,
    "package_balance": _render_balance,
    # Sessions
    "schedule_session": _render_mutation,
    "mark_pending": _render_mutation,
    "mark_scheduled": _render_mutation,
    "cancel_session": _render_mutation,
    "complete_session": _render_complete,
    "reschedule_session": _render_mutation,
    "agenda": _render_agenda,
    # Payments
    "suggest_amount": _render_suggestion,
    "record_payment": _render_mutation,
    "list_payments": _render_payments,
    "finance_summary": _render_finance,
    # Reminders
    "plan_reminders": _render_reminders,
    # Upgrade
    "upgrade": _render_upgrade,
}
