"""dirvc log -- show commit history."""

from __future__ import annotations

import click


@click.command()
@click.option("-n", "--limit", default=20, type=int, help="Maximum number of commits to show.")
@click.pass_context
def log(ctx: click.Context, limit: int) -> None:
    """Show commit history from HEAD backward."""
    from dirvc.cli import _manager_session
    from dirvc.cli.formatting import format_log

    with _manager_session(ctx) as (manager, console):
        format_log(manager.log(limit=limit), console, manager.config.abbrev_length)
