"""Console rendering of the effective configuration."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.table import Table
from rich.text import Text


def render_config(settings: dict[str, Any], console: Console | None = None) -> None:
    """Print the configuration as a two-column table."""
    console = console or Console(stderr=True)

    table = Table(show_header=True, header_style="bold", title="linecrypt configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    for name, value in settings.items():
        shown = Text("-", style="dim") if value is None else Text(str(value))
        table.add_row(name, shown)

    console.print(table)
