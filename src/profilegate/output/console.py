"""Rich Console factory and theme for profilegate output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments (tests,
pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

PG_THEME = Theme(
    {
        "pg.ok": "bold green",
        "pg.error": "bold red",
        "pg.warning": "bold yellow",
        "pg.op": "bold cyan",
        "pg.key": "dim",
        "pg.id": "bold blue",
        "pg.user": "bold",
        "pg.level.public": "green",
        "pg.level.friends": "yellow",
        "pg.level.only_me": "red",
        "pg.status.pending": "yellow",
        "pg.status.accepted": "green",
        "pg.status.closed": "dim",
    }
)

_LEVEL_STYLES: dict[str, str] = {
    "Public": "pg.level.public",
    "Friends": "pg.level.friends",
    "Only Me": "pg.level.only_me",
}

_STATUS_STYLES: dict[str, str] = {
    "pending": "pg.status.pending",
    "accepted": "pg.status.accepted",
    "declined": "pg.status.closed",
    "cancelled": "pg.status.closed",
    "removed": "pg.status.closed",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=PG_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_level(level: str) -> str:
    return _LEVEL_STYLES.get(level, "")


def style_for_status(status: str) -> str:
    return _STATUS_STYLES.get(status, "")
