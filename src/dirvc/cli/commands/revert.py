"""dirvc revert -- restore the tracked directory to a previous commit."""

from __future__ import annotations

import click
from rich.markup import escape


@click.command()
@click.argument("target")
@click.pass_context
def revert(ctx: click.Context, target: str) -> None:
    """Revert the tracked directory to TARGET.

    TARGET is a full commit hash or a unique prefix (min 4 chars).  The
    previous HEAD is kept in the marker label.  Files that TARGET does not
    list are not removed.
    """
    from dirvc.cli import _manager_session
    from dirvc.cli.formatting import format_error

    with _manager_session(ctx) as (manager, console):
        reverted = manager.revert(target)
        if reverted is None:
            format_error(f"No commit matches '{target}'.", console)
            raise SystemExit(1)
        console.print(
            f"HEAD is now at [yellow]{reverted.short_hash(manager.config.abbrev_length)}[/yellow] "
            f"{escape(reverted.message)}",
            highlight=False,
        )
