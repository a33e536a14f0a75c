"""Rich Console factory and theme for trainerctl output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments (tests,
pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

TRAINER_THEME = Theme(
    {
        "tc.ok": "bold green",
        "tc.error": "bold red",
        "tc.warning": "bold yellow",
        "tc.op": "bold cyan",
        "tc.key": "dim",
        "tc.id": "bold blue",
        "tc.name": "bold",
        "tc.money": "magenta",
        "tc.status.scheduled": "cyan",
        "tc.status.pending": "yellow",
        "tc.status.completed": "green",
        "tc.status.cancelled": "dim",
        "tc.status.active": "green",
        "tc.status.expired": "dim",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=TRAINER_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_status(status: str) -> str:
    """Return the Rich style name for a session or package status."""
    style = f"tc.status.{status}"
    return style if style in TRAINER_THEME.styles else ""
