"""dirvc CLI -- terminal interface for directory version control.

This module is NEVER imported from dirvc/__init__.py.
It is only loaded via the ``dirvc`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

try:
    import click
except ImportError:
    raise ImportError(
        "CLI dependencies not installed. Install with: pip install dirvc[cli]"
    ) from None

from dirvc.cli.formatting import format_error, get_console

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.console import Console

    from dirvc.version import VersionManager


@click.group()
@click.option(
    "--store",
    default="vc",
    envvar="DIRVC_STORE",
    help="Path to the object store directory.",
)
@click.option(
    "--dir",
    "tracked_dir",
    default="data",
    envvar="DIRVC_DIR",
    help="Directory whose files are versioned.",
)
@click.option(
    "--author",
    default=None,
    envvar="DIRVC_AUTHOR",
    help="Author recorded on new commits (defaults to the OS user).",
)
@click.pass_context
def cli(ctx: click.Context, store: str, tracked_dir: str, author: str | None) -> None:
    """dirvc: snapshot, revert and inspect the history of a directory."""
    ctx.ensure_object(dict)
    ctx.obj["store"] = store
    ctx.obj["tracked_dir"] = tracked_dir
    ctx.obj["author"] = author


def _get_manager(ctx: click.Context) -> "VersionManager":
    """Open a VersionManager from Click context (bootstrapping the store if new)."""
    from dirvc.models.config import VersionConfig
    from dirvc.version import VersionManager

    config = VersionConfig(store_dir=ctx.obj["store"], author=ctx.obj["author"])
    return VersionManager.open(ctx.obj["tracked_dir"], config=config)


@contextmanager
def _manager_session(ctx: click.Context) -> Iterator[tuple[VersionManager, Console]]:
    """Context manager that opens a VersionManager and yields (manager, console).

    Formats any exception escaping the ``with`` block as a CLI error and
    exits with status 1.
    """
    console = get_console()
    try:
        yield _get_manager(ctx), console
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None


# Register subcommands after cli group is defined
from dirvc.cli.commands.commit import commit  # noqa: E402
from dirvc.cli.commands.history import history  # noqa: E402
from dirvc.cli.commands.log import log  # noqa: E402
from dirvc.cli.commands.revert import revert  # noqa: E402
from dirvc.cli.commands.show import show  # noqa: E402
from dirvc.cli.commands.status import status  # noqa: E402

cli.add_command(commit)
cli.add_command(history)
cli.add_command(log)
cli.add_command(revert)
cli.add_command(show)
cli.add_command(status)
