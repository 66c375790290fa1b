"""Shared helpers for the CLI command modules.

Provides the Rich console instance and the report table used by
more than one command.
"""

from __future__ import annotations

import sys

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .. import CONFIG_ENV
from ..exceptions import ConfigError
from ..models import SyncConfig, SyncReport

console = Console()


def load_config_or_exit(path: str) -> SyncConfig:
    """Load the config file, printing the error and exiting 1 on failure."""
    from ..config import load_config

    try:
        return load_config(path)
    except ConfigError as exc:
        console.print(f"[bold red]Error loading config:[/] {escape(str(exc))}")
        sys.exit(1)


def report_table(report: SyncReport) -> Table:
    """Render a SyncReport as a Rich table, one row per host operation."""
    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("Host", style="cyan")
    table.add_column("Role")
    table.add_column("Operation")
    table.add_column("Result")
    table.add_column("Detail", style="dim", overflow="fold")

    for outcome in report.outcomes:
        result = "[green]OK[/]" if outcome.success else "[red]FAILED[/]"
        table.add_row(
            outcome.host,
            outcome.role.value,
            outcome.operation.value,
            result,
            escape(outcome.error or ""),
        )
    return table
