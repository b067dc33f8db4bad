"""DAG utilities for dirvc -- ancestor chains and lowest common ancestor.

Commits carry a single parent, so every walk follows one chain from a
commit back to its root.  Parents are resolved through the commit engine
by hash; nothing holds object references across commits.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING

from dirvc.exceptions import CycleDetectedError

if TYPE_CHECKING:
    from dirvc.engine.commit import CommitEngine
    from dirvc.models.objects import Commit

logger = logging.getLogger(__name__)


def _walk(start: Commit | None, commit_engine: CommitEngine) -> Iterator[Commit]:
    """Yield *start* and each of its ancestors, newest first.

    Raises:
        CycleDetectedError: If a commit is reached twice.
    """
    visited: set[str] = set()
    current = start
    while current is not None:
        if current.commit_hash in visited:
            raise CycleDetectedError(current.commit_hash)
        visited.add(current.commit_hash)
        yield current
        if current.parent_hash is None:
            return
        parent = commit_engine.get(current.parent_hash)
        if parent is None:
            logger.warning(
                "Commit %s has unreadable parent %s; chain truncated",
                current.commit_hash[:12],
                current.parent_hash[:12],
            )
        current = parent


def ancestor_chain(start: Commit | None, commit_engine: CommitEngine) -> list[Commit]:
    """Get the chain from *start* to its root (inclusive of both).

    Returns an empty list for ``None``.
    """
    return list(_walk(start, commit_engine))


def ancestors_between(
    start: Commit | None,
    until: Commit | None,
    commit_engine: CommitEngine,
) -> list[Commit]:
    """Get commits from *start* (inclusive) up to *until* (exclusive).

    If *until* is not an ancestor of *start*, the whole chain to the root is
    returned.  Newest first.
    """
    stop = until.commit_hash if until is not None else None
    commits: list[Commit] = []
    for commit in _walk(start, commit_engine):
        if commit.commit_hash == stop:
            break
        commits.append(commit)
    return commits


def find_lowest_common_ancestor(
    a: Commit | None,
    b: Commit | None,
    commit_engine: CommitEngine,
) -> Commit | None:
    """Find the lowest common ancestor of two commits.

    Walks *a*'s chain and returns the first commit that is also an ancestor
    of *b*.  Identical inputs return the input itself.

    Returns:
        The LCA, or None if the commits share no ancestor (or either is None).
    """
    if a is None or b is None:
        return None
    if a.commit_hash == b.commit_hash:
        return a

    ancestors_b = {c.commit_hash for c in _walk(b, commit_engine)}
    for commit in _walk(a, commit_engine):
        if commit.commit_hash in ancestors_b:
            return commit
    return None


def is_ancestor(
    potential_ancestor: Commit,
    commit: Commit,
    commit_engine: CommitEngine,
) -> bool:
    """Check if *potential_ancestor* is reachable from *commit* (or is it)."""
    for c in _walk(commit, commit_engine):
        if c.commit_hash == potential_ancestor.commit_hash:
            return True
    return False
