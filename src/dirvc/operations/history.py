r"""History reconstruction and rendering for dirvc.

Reconciles two lineages -- HEAD and a secondary marker label -- around
their lowest common ancestor and renders them as a two-lane text graph::

    | \t\tInitial Commit
    * 1a2b3 - Mon, 19 Oct 2026 08:30:00 +0000
    |/
    | | \t\tmod a
    * | 9f8e7 - Mon, 19 Oct 2026 08:32:10 +0000
    | | \t\tadd a
    | * 4c5d6 - Mon, 19 Oct 2026 08:31:02 +0000

The shared lane comes first, then the fork separator, then both exclusive
lineages merged newest first: marker commits on the left lane, HEAD
commits on the right.  Each commit in the two-lane form is written as its
message line followed by its header line.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from dirvc.exceptions import HistoryInvariantError
from dirvc.operations.dag import (
    ancestor_chain,
    ancestors_between,
    find_lowest_common_ancestor,
)

if TYPE_CHECKING:
    from dirvc.engine.commit import CommitEngine
    from dirvc.models.objects import Commit

FORK_SEPARATOR = "|/"


class Lane(str, enum.Enum):
    """Which lineage a history entry belongs to."""

    MARKER = "marker"
    HEAD = "head"


@dataclass(frozen=True)
class HistoryEntry:
    commit: Commit
    lane: Lane


@dataclass(frozen=True)
class HistoryGraph:
    """Result of reconciling HEAD with the marker.

    ``shared`` and ``branches`` are both ordered newest first.
    """

    shared: list[Commit] = field(default_factory=list)
    branches: list[HistoryEntry] = field(default_factory=list)
    lca: Commit | None = None

    @property
    def diverged(self) -> bool:
        return bool(self.branches)


def sort_newest_first(commits: Iterable[Commit]) -> list[Commit]:
    """Order by timestamp descending, ties broken by hash ascending."""
    by_hash = sorted(commits, key=lambda c: c.commit_hash)
    return sorted(by_hash, key=lambda c: c.created_at, reverse=True)


def reconstruct_history(
    head: Commit,
    marker: Commit | None,
    commit_engine: CommitEngine,
) -> HistoryGraph:
    """Split the history of *head* and *marker* at their LCA.

    Without a marker (or when it equals HEAD) the result is a single
    shared lane.  When one tip is an ancestor of the other, the LCA itself
    is moved into the lane of the tip it equals, so both lineages show.

    Raises:
        HistoryInvariantError: If the two exclusive lineages overlap.
        CycleDetectedError: If either chain loops.
    """
    if marker is None or marker.commit_hash == head.commit_hash:
        return HistoryGraph(shared=sort_newest_first(ancestor_chain(head, commit_engine)))

    lca = find_lowest_common_ancestor(head, marker, commit_engine)
    shared = ancestor_chain(lca, commit_engine)
    marker_only = ancestors_between(marker, lca, commit_engine)
    head_only = ancestors_between(head, lca, commit_engine)

    if not head_only:
        head_only = [shared.pop(0)]
    elif not marker_only:
        marker_only = [shared.pop(0)]

    overlap = {c.commit_hash for c in marker_only} & {c.commit_hash for c in head_only}
    if overlap:
        raise HistoryInvariantError(
            "Lineages still share commits below their LCA: "
            + ", ".join(sorted(h[:12] for h in overlap))
        )

    lanes = {c.commit_hash: Lane.MARKER for c in marker_only}
    lanes.update({c.commit_hash: Lane.HEAD for c in head_only})
    branches = [
        HistoryEntry(commit=c, lane=lanes[c.commit_hash])
        for c in sort_newest_first(marker_only + head_only)
    ]
    return HistoryGraph(shared=sort_newest_first(shared), branches=branches, lca=lca)


def format_date(dt: datetime) -> str:
    """Format as ``EEE, d MMM yyyy HH:mm:ss Z`` (``Mon, 19 Oct 2026 08:30:00 +0000``)."""
    return f"{dt:%a}, {dt.day} {dt:%b %Y %H:%M:%S %z}"


def format_header(commit: Commit, abbrev_length: int = 5) -> str:
    return f"{commit.short_hash(abbrev_length)} - {format_date(commit.created_at)}"


def format_message(commit: Commit) -> str:
    return f"\t\t{commit.message}"


def render_history(graph: HistoryGraph, abbrev_length: int = 5) -> list[str]:
    """Render a history graph as display lines, two per commit.

    A graph that never diverged renders as plain header/message pairs.
    A diverged graph renders message before header for every commit, and
    always carries the fork separator.
    """
    lines: list[str] = []
    if not graph.diverged:
        for commit in graph.shared:
            lines.append(format_header(commit, abbrev_length))
            lines.append(format_message(commit))
        return lines

    for commit in graph.shared:
        lines.append("| " + format_message(commit))
        lines.append("* " + format_header(commit, abbrev_length))
    lines.append(FORK_SEPARATOR)

    for entry in graph.branches:
        lines.append("| | " + format_message(entry.commit))
        if entry.lane is Lane.MARKER:
            lines.append("* | " + format_header(entry.commit, abbrev_length))
        else:
            lines.append("| * " + format_header(entry.commit, abbrev_length))
    return lines
