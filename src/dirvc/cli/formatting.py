"""Rich formatting helpers for the dirvc CLI.

Provides functions that format SDK data structures for terminal display.
Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from dirvc.operations.history import FORK_SEPARATOR, format_date

if TYPE_CHECKING:
    from dirvc.models.objects import Commit, Tree
    from dirvc.version import StatusInfo


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def format_history(lines: list[str], console: Console) -> None:
    """Display rendered history lines, highlighting lane marks."""
    if not lines:
        console.print("[dim]No commits.[/dim]")
        return

    for line in lines:
        text = Text(line.expandtabs(4))
        if line == FORK_SEPARATOR:
            text.stylize("magenta")
        elif "*" in line[:4]:
            star = line.index("*")
            text.stylize("bold yellow", star, star + 1)
        console.print(text)


def format_log(entries: list[Commit], console: Console, abbrev_length: int = 5) -> None:
    """Display commit log in compact table format."""
    if not entries:
        console.print("[dim]No commits.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Hash", style="yellow", width=max(abbrev_length, 8))
    table.add_column("Date", style="dim")
    table.add_column("Author", style="cyan")
    table.add_column("Message")

    for entry in entries:
        table.add_row(
            entry.short_hash(abbrev_length),
            format_date(entry.created_at),
            escape(entry.author),
            escape(entry.message),
        )

    console.print(table)


def format_commit(commit: Commit, tree: Tree | None, console: Console) -> None:
    """Display one commit with its tree listing."""
    console.print(f"[yellow]commit {commit.commit_hash}[/yellow]")
    console.print(f"  Author:  {escape(commit.author)}")
    console.print(f"  Date:    {format_date(commit.created_at)}")
    if commit.parent_hash:
        console.print(f"  Parent:  {commit.parent_hash[:8]}")
    console.print(f"  Message: {escape(commit.message)}")

    if tree is None:
        console.print("  [dim](no tree)[/dim]")
        return
    console.print(f"  Tree:    {tree.tree_hash[:8]} ({len(tree.entries)} files)")
    for entry in tree.entries:
        console.print(f"    [dim]{entry.blob_hash[:8]}[/dim] {escape(entry.path)}")


def format_status(info: StatusInfo, console: Console, abbrev_length: int = 5) -> None:
    """Display HEAD and marker positions."""
    head = info.head
    console.print(
        f"HEAD at [yellow]{head.short_hash(abbrev_length)}[/yellow] "
        f"{escape(head.message)}"
    )
    if info.marker is None:
        console.print(f"  {escape(info.marker_label)}: [dim]not set[/dim]")
    elif info.marker.commit_hash == head.commit_hash:
        console.print(f"  {escape(info.marker_label)}: at HEAD")
    else:
        console.print(
            f"  {escape(info.marker_label)}: [yellow]{info.marker.short_hash(abbrev_length)}[/yellow] "
            f"{escape(info.marker.message)}"
        )
        if info.commits_behind_marker:
            console.print(f"  HEAD is {info.commits_behind_marker} commit(s) behind {escape(info.marker_label)}")
    console.print(f"  Tracking: {escape(str(info.tracked_dir))}")
    console.print(f"  Store:    {escape(str(info.store_dir))}")


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
