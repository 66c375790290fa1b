"""Run command: one sync pass or a repeating loop."""

from __future__ import annotations

import sys
import threading
from typing import Optional

import click

from ._common import CONFIG_ENV, console, load_config_or_exit, report_table

from rich.markup import escape
from rich.panel import Panel


def register_run_commands(main: click.Group) -> None:
    """Register the run command."""

    @main.command("run")
    @click.option(
        "--config", "-c", "config_path",
        envvar=CONFIG_ENV, required=True, type=click.Path(dir_okay=False),
        help=f"Config file (.json, .yaml). Also read from ${CONFIG_ENV}.",
    )
    @click.option(
        "--once/--loop", "run_once", default=None,
        help="Override runOnce from the config file.",
    )
    @click.option("--log-file", default=None, type=click.Path(dir_okay=False), help="Log file (default: logFile from config).")
    @click.option("--verbose", "-v", is_flag=True, help="Log at DEBUG level.")
    def run_cmd(config_path: str, run_once: Optional[bool], log_file: Optional[str], verbose: bool):
        """Sync the primary's backup to every secondary.

        Logs in to the primary, downloads its teleporter backup, uploads
        it to each secondary, and rebuilds gravity when updateGravity is
        set. The session token is encrypted with $ENCRYPTION_KEY while
        held; generate one with `getpi keygen`.

        Examples:

            getpi run --config=config.json

            getpi run -c config.yaml --once -v
        """
        from ..config import load_encryption_key
        from ..crypto import TokenCipher
        from ..exceptions import GetPiError
        from ..runner import install_signal_handlers, run, setup_logging

        config = load_config_or_exit(config_path)
        if run_once is not None:
            config = config.model_copy(update={"run_once": run_once})

        setup_logging(log_file or config.log_file, verbose=verbose)

        cipher = TokenCipher(load_encryption_key())
        if not cipher.has_valid_key:
            console.print(
                "[yellow]ENCRYPTION_KEY is missing or not a base64 256-bit key; "
                "logins will fail.[/] Run [cyan]getpi keygen[/] to create one."
            )

        stop = threading.Event()
        install_signal_handlers(stop)

        mode = "once" if config.run_once else f"every {config.interval_minutes} minute(s)"
        console.print(Panel(
            f"Primary: [cyan]{config.primary_host.full_url}[/]\n"
            f"Secondaries: {len(config.secondary_hosts)}\n"
            f"Gravity update: {'yes' if config.update_gravity else 'no'}\n"
            f"Schedule: {mode}",
            title="getpi sync",
            border_style="cyan",
        ))

        def _show(report):
            console.print(report_table(report))
            failed = len(report.failures())
            if failed:
                console.print(f"[yellow]{failed} operation(s) failed[/]\n")
            else:
                console.print("[green]Sync pass complete[/]\n")

        try:
            run(config, cipher, stop_event=stop, on_report=_show)
        except GetPiError as exc:
            console.print(f"[bold red]Error during sync:[/] {escape(str(exc))}")
            sys.exit(1)
