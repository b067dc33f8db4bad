"""VersionManager -- the public entry point for dirvc.

Ties together the object store, tree engine, commit engine and labels into
three user-facing operations: ``commit``, ``retrieve_history`` and
``revert``.  Open a store with :meth:`VersionManager.open`, which loads the
existing HEAD or bootstraps the store with an initial commit.

Not thread-safe.  One VersionManager owns one store directory; callers
must serialize access, and separate processes must not share a store.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dirvc.engine.commit import CommitEngine
from dirvc.engine.tree import TreeEngine
from dirvc.exceptions import CorruptStoreError, DirvcError, InvariantViolationError
from dirvc.models.config import VersionConfig
from dirvc.models.objects import Commit, Label, Tree
from dirvc.operations.dag import ancestor_chain, ancestors_between, is_ancestor
from dirvc.operations.history import HistoryGraph, reconstruct_history, render_history
from dirvc.storage.labels import HEAD, LabelRepository
from dirvc.storage.objects import ObjectStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusInfo:
    """Snapshot of where HEAD and the marker point."""

    head: Commit
    marker: Commit | None
    marker_label: str
    commits_behind_marker: int
    tracked_dir: Path
    store_dir: Path


class VersionManager:
    """Records successive states of a tracked directory.

    Use :meth:`open` rather than the constructor.
    """

    def __init__(
        self,
        *,
        tracked_dir: Path,
        config: VersionConfig,
        store: ObjectStore,
        tree_engine: TreeEngine,
        commit_engine: CommitEngine,
        labels: LabelRepository,
    ) -> None:
        self._tracked_dir = tracked_dir
        self._config = config
        self._store = store
        self._tree_engine = tree_engine
        self._commit_engine = commit_engine
        self._labels = labels
        self._head: Commit | None = None

    @classmethod
    def open(
        cls,
        tracked_dir: str | os.PathLike[str],
        *,
        store_dir: str | os.PathLike[str] | None = None,
        config: VersionConfig | None = None,
        commit_engine: CommitEngine | None = None,
    ) -> VersionManager:
        """Open (or create) a store tracking *tracked_dir*.

        Args:
            tracked_dir: Directory whose files are snapshotted and restored.
            store_dir: Object store directory.  Defaults to ``config.store_dir``
                (relative paths resolve against the current directory).
            config: Store configuration.  Defaults created if *None*.
            commit_engine: Pre-built commit engine (custom clock/author).

        Returns:
            A ready-to-use ``VersionManager`` whose HEAD is loaded, or the
            bootstrap commit if the store had no HEAD.

        Raises:
            StoreConfigError: If the store was created with another hash algorithm.
            CorruptStoreError: If HEAD exists but does not resolve to a commit,
                or the bootstrap commit cannot be written.
        """
        if config is None:
            config = VersionConfig()
        store_path = Path(store_dir if store_dir is not None else config.store_dir)
        tracked = Path(tracked_dir)

        store = ObjectStore.open(store_path, config.hash_algorithm)
        tree_engine = TreeEngine(store, exclude=[store_path])
        if commit_engine is None:
            commit_engine = CommitEngine(store, config.resolve_author())
        labels = LabelRepository(store)

        manager = cls(
            tracked_dir=tracked,
            config=config,
            store=store,
            tree_engine=tree_engine,
            commit_engine=commit_engine,
            labels=labels,
        )
        manager._load_or_bootstrap()
        return manager

    def _load_or_bootstrap(self) -> None:
        if (self._store.root / HEAD).exists():
            label = self._labels.get_head()
            head = self._commit_engine.get(label.commit_hash) if label is not None else None
            if head is None:
                raise CorruptStoreError(f"HEAD in {self._store.root} does not resolve to a commit")
            self._head = head
            logger.debug("Loaded HEAD %s from %s", head.commit_hash[:12], self._store.root)
            return

        logger.info("Bootstrapping store at %s", self._store.root)
        if not self.commit(self._config.initial_message):
            raise CorruptStoreError(f"Could not write the initial commit to {self._store.root}")

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------

    @property
    def head(self) -> Commit:
        """Current HEAD commit.

        Raises:
            CorruptStoreError: If no HEAD was loaded (the manager was not
                created through :meth:`open`).
        """
        if self._head is None:
            raise CorruptStoreError(f"No HEAD loaded for {self._store.root}; use VersionManager.open()")
        return self._head

    @property
    def marker(self) -> Commit | None:
        """Commit the marker label points at, or None."""
        label = self._labels.fetch_by_name(self._config.marker_label)
        if label is None:
            return None
        return self._commit_engine.get(label.commit_hash)

    @property
    def config(self) -> VersionConfig:
        return self._config

    @property
    def tracked_dir(self) -> Path:
        return self._tracked_dir

    @property
    def store(self) -> ObjectStore:
        return self._store

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def commit(self, message: str) -> bool:
        """Snapshot the tracked directory and record it on top of HEAD.

        Tree and commit are written before HEAD moves, so a failure at any
        step leaves HEAD where it was.

        Returns:
            True on success, False if an I/O error aborted the commit.
        """
        parent = self._head
        try:
            tree = self._tree_engine.snapshot(self._tracked_dir)
            new_commit = self._commit_engine.create_commit(message, tree, parent)

            self._tree_engine.write(tree)
            self._commit_engine.write(new_commit)

            self._labels.move_head(new_commit)
        except InvariantViolationError:
            raise
        except (OSError, DirvcError):
            logger.exception("Commit %r failed; HEAD unchanged", message)
            return False
        finally:
            self._tree_engine.discard()

        self._head = new_commit
        logger.info(
            "Committed %s (%s) with %d files",
            new_commit.commit_hash[:12],
            message,
            len(tree.entries),
        )
        return True

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def history_graph(self) -> HistoryGraph:
        """Reconcile HEAD with the marker label into a HistoryGraph."""
        return reconstruct_history(self.head, self.marker, self._commit_engine)

    def retrieve_history(self) -> list[str]:
        """Render the history as display lines.

        Two lanes when the marker has diverged from HEAD, a single lane
        otherwise.
        """
        return render_history(self.history_graph(), self._config.abbrev_length)

    def log(self, limit: int | None = None) -> list[Commit]:
        """HEAD's ancestor chain, newest first."""
        chain = ancestor_chain(self.head, self._commit_engine)
        return chain[:limit] if limit is not None else chain

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def fetch_commit(self, hash_or_prefix: str) -> Commit | None:
        """Resolve a full hash or unique prefix to a commit."""
        return self._commit_engine.fetch_by_hash(hash_or_prefix)

    def get_tree(self, commit: Commit) -> Tree | None:
        return self._tree_engine.get(commit.tree_hash)

    def status(self) -> StatusInfo:
        """Report HEAD, the marker and how far HEAD trails the marker."""
        marker = self.marker
        behind = 0
        if marker is not None and is_ancestor(self.head, marker, self._commit_engine):
            behind = len(ancestors_between(marker, self.head, self._commit_engine))
        return StatusInfo(
            head=self.head,
            marker=marker,
            marker_label=self._config.marker_label,
            commits_behind_marker=behind,
            tracked_dir=self._tracked_dir,
            store_dir=self._store.root,
        )

    # ------------------------------------------------------------------
    # Revert
    # ------------------------------------------------------------------

    def revert(self, abbreviated_hash: str) -> Commit | None:
        """Restore the tracked directory to a previous commit.

        The current HEAD is saved in the marker label, the target's tree is
        written over the tracked directory, and HEAD moves to the target.
        Files in the tracked directory that the target tree does not list
        are left in place.

        Returns:
            The reverted-to Commit, or None if the target is unknown or the
            restore failed (labels are then left as they were).
        """
        target = self._commit_engine.fetch_by_hash(abbreviated_hash)
        if target is None:
            logger.info("Revert target %r not found", abbreviated_hash)
            return None

        marker_name = self._config.marker_label
        previous_marker = self._labels.fetch_by_name(marker_name)
        try:
            tree = self._tree_engine.get(target.tree_hash)
            if target.tree_hash is not None and tree is None:
                raise DirvcError(f"Tree {target.tree_hash[:12]} of {target.commit_hash[:12]} is unreadable")
            self._labels.write(Label(name=marker_name, commit_hash=self.head.commit_hash))
            self._tree_engine.regenerate(tree, self._tracked_dir)
            self._labels.move_head(target)
        except (OSError, DirvcError):
            logger.exception("Revert to %s failed", target.commit_hash[:12])
            self._restore_label(marker_name, previous_marker)
            return None

        self._head = target
        logger.info("Reverted to %s (%s)", target.commit_hash[:12], target.message)
        return target

    def _restore_label(self, name: str, previous: Label | None) -> None:
        try:
            if previous is None:
                self._labels.delete(name)
            else:
                self._labels.write(previous)
        except OSError:
            logger.exception("Could not restore label %s", name)

    def __repr__(self) -> str:
        return (
            f"VersionManager(tracked={str(self._tracked_dir)!r}, "
            f"store={str(self._store.root)!r}, head={self.head.commit_hash[:8]})"
        )
