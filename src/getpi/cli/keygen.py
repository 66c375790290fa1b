"""Keygen command: create a token encryption key."""

from __future__ import annotations

import click

from .. import ENCRYPTION_KEY_ENV


def register_keygen_commands(main: click.Group) -> None:
    """Register the keygen command."""

    @main.command("keygen")
    @click.option("--export", "as_export", is_flag=True, help="Print as a shell export line.")
    def keygen(as_export: bool):
        """Generate a base64 256-bit key for ENCRYPTION_KEY.

        Examples:

            getpi keygen

            eval "$(getpi keygen --export)"
        """
        from ..crypto import generate_key

        key = generate_key()
        if as_export:
            click.echo(f"export {ENCRYPTION_KEY_ENV}={key}")
        else:
            click.echo(key)
