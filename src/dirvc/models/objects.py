"""Object models for dirvc.

Tree, Commit and Label are immutable value objects.  Trees and commits
refer to other objects by hash only; resolving a reference is an explicit
lookup through the engines, so the models never hold each other.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class TreeEntry(BaseModel):
    """One file of a snapshot: relative POSIX path and blob hash."""

    model_config = ConfigDict(frozen=True)

    path: str
    blob_hash: str


class Tree(BaseModel):
    """A full directory snapshot, addressed by the hash of its entry list."""

    model_config = ConfigDict(frozen=True)

    tree_hash: str
    entries: tuple[TreeEntry, ...] = ()

    def to_payload(self) -> dict:
        return tree_payload(self.entries)

    def blob_hashes(self) -> dict[str, str]:
        """Map of path -> blob hash."""
        return {e.path: e.blob_hash for e in self.entries}


def tree_payload(entries: tuple[TreeEntry, ...]) -> dict:
    """Serialized form of a tree, used both for hashing and storage."""
    return {
        "type": "tree",
        "entries": [[e.path, e.blob_hash] for e in entries],
    }


class Commit(BaseModel):
    """An immutable history node.

    ``timestamp`` is the exact string that went into the hash; use
    :attr:`created_at` for a datetime.
    """

    model_config = ConfigDict(frozen=True)

    commit_hash: str
    author: str
    timestamp: str
    message: str
    tree_hash: Optional[str] = None
    parent_hash: Optional[str] = None

    @property
    def created_at(self) -> datetime:
        return datetime.fromisoformat(self.timestamp)

    @property
    def is_root(self) -> bool:
        return self.parent_hash is None

    def to_payload(self) -> dict:
        return commit_payload(
            message=self.message,
            author=self.author,
            timestamp=self.timestamp,
            tree_hash=self.tree_hash,
            parent_hash=self.parent_hash,
        )

    def short_hash(self, length: int = 5) -> str:
        return self.commit_hash[:length]

    def __str__(self) -> str:
        msg = self.message
        if len(msg) > 60:
            msg = msg[:57] + "..."
        return f"{self.commit_hash[:8]} {msg}"

    def __repr__(self) -> str:
        return f"Commit({self.commit_hash[:8]} {self.message!r})"


def commit_payload(
    *,
    message: str,
    author: str,
    timestamp: str,
    tree_hash: str | None,
    parent_hash: str | None,
) -> dict:
    """Serialized form of a commit, used both for hashing and storage."""
    return {
        "type": "commit",
        "message": message,
        "author": author,
        "timestamp": timestamp,
        "tree": tree_hash,
        "parent": parent_hash,
    }


class Label(BaseModel):
    """A named, mutable pointer to a commit hash."""

    model_config = ConfigDict(frozen=True)

    name: str
    commit_hash: str

    def __str__(self) -> str:
        return f"{self.name} -> {self.commit_hash[:8]}"
