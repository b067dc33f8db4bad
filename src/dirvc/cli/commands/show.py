"""dirvc show -- display one commit and its files."""

from __future__ import annotations

import click


@click.command()
@click.argument("target", required=False)
@click.pass_context
def show(ctx: click.Context, target: str | None) -> None:
    """Show TARGET (default: HEAD) with the files of its snapshot."""
    from dirvc.cli import _manager_session
    from dirvc.cli.formatting import format_commit, format_error

    with _manager_session(ctx) as (manager, console):
        found = manager.head if target is None else manager.fetch_commit(target)
        if found is None:
            format_error(f"No commit matches '{target}'.", console)
            raise SystemExit(1)
        format_commit(found, manager.get_tree(found), console)
