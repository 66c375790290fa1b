"""Hosts command: show the admin URLs a config resolves to."""

from __future__ import annotations

import json

import click

from ._common import CONFIG_ENV, console, load_config_or_exit

from rich.table import Table


def register_hosts_commands(main: click.Group) -> None:
    """Register the hosts command."""

    @main.command("hosts")
    @click.option(
        "--config", "-c", "config_path",
        envvar=CONFIG_ENV, required=True, type=click.Path(dir_okay=False),
        help="Config file (.json, .yaml).",
    )
    @click.option("--json-out", is_flag=True, help="Output as JSON.")
    def hosts(config_path: str, json_out: bool):
        """List configured hosts and their normalized admin URLs.

        Useful to check how a baseurl with an embedded path is folded
        together with the path setting. Passwords are never shown.
        """
        config = load_config_or_exit(config_path)
        rows = [("primary", config.primary_host)]
        rows.extend(("secondary", h) for h in config.secondary_hosts)

        if json_out:
            click.echo(json.dumps([
                {
                    "role": role,
                    "baseurl": host.base_url,
                    "path": host.path,
                    "full_url": host.full_url,
                    "ssl_secure": host.ssl_secure,
                }
                for role, host in rows
            ], indent=2))
            return

        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
        table.add_column("Role")
        table.add_column("Base URL", style="dim")
        table.add_column("Admin URL", style="cyan")
        table.add_column("TLS verify", justify="center")

        for role, host in rows:
            table.add_row(
                role,
                host.base_url,
                host.full_url,
                "[green]yes[/]" if host.ssl_secure else "[yellow]no[/]",
            )

        console.print(f"\n[bold]{len(rows)}[/] host(s):\n")
        console.print(table)
        console.print()
