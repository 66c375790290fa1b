"""
getpi CLI — keep Pi-hole appliances in sync from the command line.

The main Click group is defined here and each command lives in its own
module, registered through a register_* function.

Entry point: getpi.cli:main
"""

from __future__ import annotations

import click

from .. import __version__


@click.group()
@click.version_option(version=__version__, prog_name="getpi")
def main():
    """getpi — Pi-hole backup sync and gravity updates.

    Downloads the primary's teleporter backup, restores it on every
    secondary, and optionally rebuilds gravity everywhere.
    """


# ---------------------------------------------------------------------------
# Register all commands from modular files
# ---------------------------------------------------------------------------

from .run import register_run_commands
from .hosts import register_hosts_commands
from .keygen import register_keygen_commands

register_run_commands(main)
register_hosts_commands(main)
register_keygen_commands(main)
