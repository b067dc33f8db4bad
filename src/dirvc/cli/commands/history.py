"""dirvc history -- show the two-lane history graph."""

from __future__ import annotations

import click


@click.command()
@click.pass_context
def history(ctx: click.Context) -> None:
    """Show history from HEAD, split against the marker label when they diverge."""
    from dirvc.cli import _manager_session
    from dirvc.cli.formatting import format_history

    with _manager_session(ctx) as (manager, console):
        format_history(manager.retrieve_history(), console)
