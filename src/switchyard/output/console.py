"""Rich Console factory and theme for switchyard output.

Consoles render to a StringIO buffer so renderers keep a plain
``-> str`` contract.  Rich drops color codes when there is no terminal
(tests, pipes).
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

SWITCHYARD_THEME = Theme(
    {
        "sy.ok": "bold green",
        "sy.error": "bold red",
        "sy.warning": "bold yellow",
        "sy.op": "bold cyan",
        "sy.key": "dim",
        "sy.handler": "bold blue",
        "sy.matcher": "magenta",
        "sy.interceptor": "cyan",
        "sy.speech": "bold",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes.
        width: Override terminal width for stable output.
    """
    return Console(
        file=StringIO(),
        theme=SWITCHYARD_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
