"""dirvc status -- show HEAD and marker positions."""

from __future__ import annotations

import click


@click.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show where HEAD and the marker label point."""
    from dirvc.cli import _manager_session
    from dirvc.cli.formatting import format_status

    with _manager_session(ctx) as (manager, console):
        format_status(manager.status(), console, manager.config.abbrev_length)
