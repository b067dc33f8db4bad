"""Tree engine for dirvc.

Snapshots a directory into a content-addressed tree of file blobs and
regenerates a directory from a stored tree.

Snapshotting touches nothing on disk: blob bytes read during a snapshot
are held in memory until :meth:`TreeEngine.write` persists them.  Only the
most recent snapshot is held; :meth:`TreeEngine.discard` drops it.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path, PurePosixPath
from typing import Iterable

from dirvc.engine.hashing import canonical_json
from dirvc.exceptions import CorruptObjectError, ObjectNotFoundError
from dirvc.models.objects import Tree, TreeEntry, tree_payload
from dirvc.storage.objects import TEMP_PREFIX, ObjectStore, atomic_write

logger = logging.getLogger(__name__)


class TreeEngine:
    """Builds, persists and restores directory snapshots.

    - Blobs are stored as raw file bytes under ``hash(bytes)``
    - Trees are stored as canonical JSON under ``hash(json)``
    - Identical content is stored once
    """

    def __init__(self, store: ObjectStore, *, exclude: Iterable[Path] = ()) -> None:
        self._store = store
        self._exclude = [Path(p).resolve() for p in exclude]
        self._pending: dict[str, bytes] = {}

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self, directory: str | os.PathLike[str]) -> Tree:
        """Snapshot every file under *directory* into a Tree.

        The object store directory (when nested inside *directory*) and
        temporary files are skipped.  A missing directory snapshots as an
        empty tree.

        Unstored blobs of any earlier snapshot are dropped, so only the
        tree returned by the latest call can be written.
        """
        root = Path(directory)
        entries: list[TreeEntry] = []
        pending: dict[str, bytes] = {}
        hasher = self._store.hasher

        for rel_path, abs_path in self._iter_files(root):
            data = abs_path.read_bytes()
            blob_hash = hasher.hash(data)
            if blob_hash not in pending and not self._store.exists(blob_hash):
                pending[blob_hash] = data
            entries.append(TreeEntry(path=rel_path, blob_hash=blob_hash))

        self._pending = pending

        entries.sort(key=lambda e: e.path)
        frozen = tuple(entries)
        tree = Tree(tree_hash=hasher.hash_payload(tree_payload(frozen)), entries=frozen)
        logger.debug("Snapshot of %s: %d files, tree %s", root, len(frozen), tree.tree_hash[:12])
        return tree

    def _iter_files(self, root: Path) -> Iterable[tuple[str, Path]]:
        if not root.is_dir():
            return
        for dirpath, dirnames, filenames in os.walk(root):
            current = Path(dirpath)
            dirnames[:] = sorted(
                d for d in dirnames if not self._is_excluded(current / d)
            )
            for name in sorted(filenames):
                if name.startswith(TEMP_PREFIX):
                    continue
                abs_path = current / name
                if not abs_path.is_file() or self._is_excluded(abs_path):
                    continue
                rel = abs_path.relative_to(root)
                yield PurePosixPath(*rel.parts).as_posix(), abs_path

    def _is_excluded(self, path: Path) -> bool:
        resolved = path.resolve()
        return any(resolved == ex or ex in resolved.parents for ex in self._exclude)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def write(self, tree: Tree | None) -> None:
        """Persist *tree* and any of its blobs not yet stored.

        Idempotent.  Writing ``None`` is a no-op.

        Raises:
            ObjectNotFoundError: If a blob's bytes are neither pending nor stored.
        """
        if tree is None:
            return
        for entry in tree.entries:
            if self._store.exists(entry.blob_hash):
                self._pending.pop(entry.blob_hash, None)
                continue
            data = self._pending.get(entry.blob_hash)
            if data is None:
                raise ObjectNotFoundError(entry.blob_hash)
            self._store.write(entry.blob_hash, data)
            del self._pending[entry.blob_hash]
        self._store.write(tree.tree_hash, canonical_json(tree.to_payload()))

    def discard(self) -> int:
        """Drop blob bytes held from the last snapshot.  Returns how many were held."""
        dropped = len(self._pending)
        self._pending = {}
        return dropped

    def get(self, tree_hash: str | None) -> Tree | None:
        """Load a tree by hash.  Returns None if absent or corrupt."""
        if tree_hash is None:
            return None
        data = self._store.read(tree_hash)
        if data is None:
            return None
        try:
            return self.decode(tree_hash, data)
        except CorruptObjectError as exc:
            logger.warning("%s", exc)
            return None

    def decode(self, tree_hash: str, data: bytes) -> Tree:
        """Parse stored tree bytes, verifying shape and hash."""
        try:
            payload = json.loads(data)
        except (ValueError, UnicodeDecodeError) as exc:
            raise CorruptObjectError(tree_hash, f"invalid JSON: {exc}") from exc
        if not isinstance(payload, dict) or payload.get("type") != "tree":
            raise CorruptObjectError(tree_hash, "not a tree object")
        raw_entries = payload.get("entries")
        if not isinstance(raw_entries, list):
            raise CorruptObjectError(tree_hash, "missing entry list")
        entries = []
        for item in raw_entries:
            if (
                not isinstance(item, list)
                or len(item) != 2
                or not all(isinstance(v, str) for v in item)
            ):
                raise CorruptObjectError(tree_hash, f"malformed entry {item!r}")
            entries.append(TreeEntry(path=item[0], blob_hash=item[1]))
        tree = Tree(tree_hash=tree_hash, entries=tuple(entries))
        if self._store.hasher.hash_payload(tree.to_payload()) != tree_hash:
            raise CorruptObjectError(tree_hash, "hash mismatch")
        return tree

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    def regenerate(self, tree: Tree | None, target: str | os.PathLike[str]) -> int:
        """Write every file of *tree* into *target*.

        Existing files are overwritten; files in *target* that are not in
        the tree are left in place.  All blobs are read and verified before
        the first file is written.  If a write fails, every file already
        written is put back to its previous content (or removed if it did
        not exist) before the error propagates.  ``None`` is a no-op.

        Returns:
            Number of files written.

        Raises:
            ObjectNotFoundError: If a blob is missing from the store.
            CorruptObjectError: If a blob fails its hash check or an entry
                path escapes *target*.
            OSError: If a file cannot be written.
        """
        if tree is None:
            return 0
        target_root = Path(target)
        staged: list[tuple[Path, bytes]] = []
        for entry in tree.entries:
            data = self._store.read(entry.blob_hash)
            if data is None:
                raise ObjectNotFoundError(entry.blob_hash)
            if self._store.hasher.hash(data) != entry.blob_hash:
                raise CorruptObjectError(entry.blob_hash, "hash mismatch")
            staged.append((self._resolve_entry_path(tree, target_root, entry.path), data))

        previous = {path: (path.read_bytes() if path.is_file() else None) for path, _ in staged}
        written: list[Path] = []
        created_dirs: list[Path] = []
        try:
            for path, data in staged:
                created_dirs.extend(_missing_dirs(path.parent))
                path.parent.mkdir(parents=True, exist_ok=True)
                atomic_write(path, data)
                written.append(path)
        except OSError:
            logger.warning("Regenerate into %s failed after %d files; rolling back", target_root, len(written))
            self._rollback(written, previous, created_dirs)
            raise
        logger.debug("Regenerated %d files from tree %s into %s", len(staged), tree.tree_hash[:12], target_root)
        return len(staged)

    @staticmethod
    def _rollback(written: list[Path], previous: dict[Path, bytes | None], created_dirs: list[Path]) -> None:
        for path in reversed(written):
            try:
                old = previous[path]
                if old is None:
                    path.unlink(missing_ok=True)
                else:
                    atomic_write(path, old)
            except OSError:
                logger.exception("Could not roll back %s", path)
        for directory in reversed(created_dirs):
            try:
                directory.rmdir()
            except OSError as exc:
                logger.debug("Left directory %s in place: %s", directory, exc)

    @staticmethod
    def _resolve_entry_path(tree: Tree, target_root: Path, rel_path: str) -> Path:
        pure = PurePosixPath(rel_path)
        if pure.is_absolute() or not pure.parts or ".." in pure.parts:
            raise CorruptObjectError(tree.tree_hash, f"unsafe path {rel_path!r}")
        return target_root.joinpath(*pure.parts)


def _missing_dirs(directory: Path) -> list[Path]:
    """Ancestors of *directory* (inclusive) that do not exist yet, outermost first."""
    missing: list[Path] = []
    while not directory.exists():
        missing.append(directory)
        if directory.parent == directory:
            break
        directory = directory.parent
    missing.reverse()
    return missing
