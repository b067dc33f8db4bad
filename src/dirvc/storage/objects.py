"""Filesystem object store for dirvc.

One directory holds every object as a file named by its full hex hash,
plus the label files (``HEAD`` and friends) and a small ``config`` file
recording the hash algorithm the store was created with.

Objects are append-only: writing a key that already exists is a no-op.
Every write goes through a temporary file in the same directory followed
by ``os.replace``, so readers never observe a half-written file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from dirvc.engine.hashing import HashGenerator, canonical_json, is_hex
from dirvc.exceptions import StoreConfigError
from dirvc.models.config import HashAlgorithm

logger = logging.getLogger(__name__)

CONFIG_NAME = "config"
TEMP_PREFIX = ".dirvc-tmp-"
FORMAT_VERSION = 1


def atomic_write(path: Path, data: bytes) -> None:
    """Write *data* to *path* via a sibling temp file and ``os.replace``.

    The previous content of *path* (if any) stays intact unless the
    replace succeeds.
    """
    fd, tmp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class ObjectStore:
    """Content-addressed file store rooted at one directory."""

    def __init__(self, root: Path, hasher: HashGenerator) -> None:
        self._root = root
        self._hasher = hasher

    @classmethod
    def open(
        cls,
        root: str | os.PathLike[str],
        algorithm: HashAlgorithm = HashAlgorithm.SHA1,
    ) -> ObjectStore:
        """Open (or create) a store directory.

        The algorithm is recorded on first open.  Reopening with a different
        algorithm raises :class:`StoreConfigError`, since mixing digests in
        one keyspace is unsupported.
        """
        root_path = Path(root)
        root_path.mkdir(parents=True, exist_ok=True)
        config_path = root_path / CONFIG_NAME
        requested = HashAlgorithm(algorithm)

        if config_path.exists():
            try:
                stored = json.loads(config_path.read_bytes())
                stored_algorithm = HashAlgorithm(stored["hash_algorithm"])
            except (ValueError, KeyError, TypeError) as exc:
                raise StoreConfigError(f"Unreadable store config at {config_path}: {exc}") from exc
            if stored_algorithm != requested:
                raise StoreConfigError(
                    f"Store {root_path} uses {stored_algorithm.value}, "
                    f"not {requested.value}"
                )
        else:
            atomic_write(
                config_path,
                canonical_json({"format_version": FORMAT_VERSION, "hash_algorithm": requested.value}),
            )
            logger.debug("Initialized store config at %s (%s)", root_path, requested.value)

        return cls(root_path, HashGenerator(requested))

    @property
    def root(self) -> Path:
        return self._root

    @property
    def hasher(self) -> HashGenerator:
        return self._hasher

    def path_for(self, object_hash: str) -> Path:
        return self._root / object_hash

    def exists(self, object_hash: str) -> bool:
        if not self._hasher.is_full_hash(object_hash):
            return False
        return self.path_for(object_hash).is_file()

    def read(self, object_hash: str) -> bytes | None:
        """Return the raw bytes of an object, or None if it is not stored."""
        if not self._hasher.is_full_hash(object_hash):
            return None
        try:
            return self.path_for(object_hash).read_bytes()
        except FileNotFoundError:
            return None

    def write(self, object_hash: str, data: bytes) -> bool:
        """Store *data* under *object_hash*.

        Returns:
            True if the object was written, False if it already existed.
        """
        if not self._hasher.is_full_hash(object_hash):
            raise ValueError(f"Not a {self._hasher.algorithm.value} hash: {object_hash!r}")
        path = self.path_for(object_hash)
        if path.exists():
            logger.debug("Object %s already stored", object_hash[:12])
            return False
        atomic_write(path, data)
        logger.debug("Wrote object %s (%d bytes)", object_hash[:12], len(data))
        return True

    def put(self, data: bytes) -> str:
        """Hash and store *data*, returning its hash."""
        object_hash = self._hasher.hash(data)
        self.write(object_hash, data)
        return object_hash

    def keys_with_prefix(self, prefix: str) -> list[str]:
        """All stored object hashes starting with *prefix*, sorted."""
        if not is_hex(prefix):
            return []
        return sorted(
            entry.name
            for entry in os.scandir(self._root)
            if entry.is_file()
            and entry.name.startswith(prefix)
            and self._hasher.is_full_hash(entry.name)
        )

    def __repr__(self) -> str:
        return f"ObjectStore({str(self._root)!r}, {self._hasher.algorithm.value})"
