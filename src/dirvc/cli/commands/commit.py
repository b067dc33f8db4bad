"""dirvc commit -- snapshot the tracked directory."""

from __future__ import annotations

import click
from rich.markup import escape


@click.command()
@click.option("-m", "--message", required=True, help="Commit message.")
@click.pass_context
def commit(ctx: click.Context, message: str) -> None:
    """Record the current state of the tracked directory."""
    from dirvc.cli import _manager_session
    from dirvc.cli.formatting import format_error

    with _manager_session(ctx) as (manager, console):
        if not manager.commit(message):
            format_error("Commit failed; HEAD unchanged.", console)
            raise SystemExit(1)
        head = manager.head
        console.print(
            f"[yellow]{head.short_hash(manager.config.abbrev_length)}[/yellow] {escape(message)}",
            highlight=False,
        )
