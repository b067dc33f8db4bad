"""Commit engine for dirvc.

Creates, persists and looks up commits.  Creation is pure: the hash is
computed over (message, author, timestamp, tree hash, parent hash) and
nothing touches disk until :meth:`CommitEngine.write`.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Callable

from dirvc.engine.hashing import canonical_json, is_hex
from dirvc.exceptions import CorruptObjectError
from dirvc.models.objects import Commit, Tree, commit_payload
from dirvc.storage.objects import ObjectStore

logger = logging.getLogger(__name__)

MIN_PREFIX_LENGTH = 4

_FIELDS = ("type", "message", "author", "timestamp", "tree", "parent")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CommitEngine:
    """Creates and resolves commits in an object store."""

    def __init__(
        self,
        store: ObjectStore,
        author: str,
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._author = author
        self._clock = clock

    @property
    def author(self) -> str:
        return self._author

    def create_commit(
        self,
        message: str,
        tree: Tree | None,
        parent: Commit | None,
    ) -> Commit:
        """Build a new commit stamped with the current author and time.

        Args:
            message: Human-readable commit message.
            tree: Snapshot the commit records, or None for an empty commit.
            parent: Parent commit, or None for a root commit.

        Returns:
            The new, not yet persisted, Commit.
        """
        timestamp = self._clock().astimezone(timezone.utc).isoformat(timespec="microseconds")
        tree_hash = tree.tree_hash if tree is not None else None
        parent_hash = parent.commit_hash if parent is not None else None
        payload = commit_payload(
            message=message,
            author=self._author,
            timestamp=timestamp,
            tree_hash=tree_hash,
            parent_hash=parent_hash,
        )
        return Commit(
            commit_hash=self._store.hasher.hash_payload(payload),
            author=self._author,
            timestamp=timestamp,
            message=message,
            tree_hash=tree_hash,
            parent_hash=parent_hash,
        )

    def write(self, commit: Commit | None) -> bool:
        """Persist *commit* under its hash.  Idempotent; None is a no-op.

        Returns:
            True if a new object was written.
        """
        if commit is None:
            return False
        return self._store.write(commit.commit_hash, canonical_json(commit.to_payload()))

    def get(self, commit_hash: str | None) -> Commit | None:
        """Load a commit by its full hash.  Returns None if absent or corrupt."""
        if commit_hash is None:
            return None
        data = self._store.read(commit_hash)
        if data is None:
            return None
        try:
            return self.decode(commit_hash, data)
        except CorruptObjectError as exc:
            logger.warning("%s", exc)
            return None

    def fetch_by_hash(self, hash_or_prefix: str) -> Commit | None:
        """Find a commit by full hash or by unique prefix.

        A prefix must be at least four hex characters and match exactly one
        commit; trees and blobs sharing the prefix are ignored.  Unknown,
        ambiguous and corrupt targets all return None.
        """
        candidate = hash_or_prefix.strip().lower()
        if self._store.hasher.is_full_hash(candidate):
            return self._load_commit(candidate)
        if len(candidate) < MIN_PREFIX_LENGTH or not is_hex(candidate):
            return None

        matches = []
        for key in self._store.keys_with_prefix(candidate):
            commit = self._load_commit(key)
            if commit is not None:
                matches.append(commit)

        if len(matches) > 1:
            logger.warning(
                "Ambiguous prefix %r matches %d commits: %s",
                candidate,
                len(matches),
                ", ".join(c.commit_hash[:12] for c in matches[:5]),
            )
            return None
        return matches[0] if matches else None

    def _load_commit(self, key: str) -> Commit | None:
        """Like :meth:`get`, but skips trees and blobs without logging."""
        data = self._store.read(key)
        if data is None or _object_type(data) != "commit":
            return None
        try:
            return self.decode(key, data)
        except CorruptObjectError as exc:
            logger.warning("%s", exc)
            return None

    def decode(self, commit_hash: str, data: bytes) -> Commit:
        """Parse stored commit bytes, verifying shape and hash."""
        try:
            payload = json.loads(data)
        except (ValueError, UnicodeDecodeError) as exc:
            raise CorruptObjectError(commit_hash, f"invalid JSON: {exc}") from exc
        if not isinstance(payload, dict) or payload.get("type") != "commit":
            raise CorruptObjectError(commit_hash, "not a commit object")
        if set(payload) != set(_FIELDS):
            raise CorruptObjectError(commit_hash, "unexpected fields")
        for key in ("message", "author", "timestamp"):
            if not isinstance(payload[key], str):
                raise CorruptObjectError(commit_hash, f"field {key!r} is not a string")
        for key in ("tree", "parent"):
            value = payload[key]
            if value is not None and not (isinstance(value, str) and self._store.hasher.is_full_hash(value)):
                raise CorruptObjectError(commit_hash, f"field {key!r} is not a hash")
        try:
            datetime.fromisoformat(payload["timestamp"])
        except ValueError as exc:
            raise CorruptObjectError(commit_hash, f"bad timestamp: {exc}") from exc

        if self._store.hasher.hash(canonical_json(payload)) != commit_hash:
            raise CorruptObjectError(commit_hash, "hash mismatch")
        return Commit(
            commit_hash=commit_hash,
            author=payload["author"],
            timestamp=payload["timestamp"],
            message=payload["message"],
            tree_hash=payload["tree"],
            parent_hash=payload["parent"],
        )


def _object_type(data: bytes) -> str | None:
    """The ``type`` field of a stored JSON object, or None for anything else."""
    if b'"type"' not in data:
        return None
    try:
        payload = json.loads(data)
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(payload, dict):
        return None
    kind = payload.get("type")
    return kind if isinstance(kind, str) else None
