"""Label (ref) storage for dirvc.

A label is a file inside the store directory whose name is the label name
and whose content is ``ref: <full-hex-hash>``.  Labels are the only
mutable records in a store; every update is an atomic replace.
"""

from __future__ import annotations

import logging
import os
import re

from dirvc.exceptions import InvalidLabelNameError
from dirvc.models.objects import Commit, Label
from dirvc.storage.objects import CONFIG_NAME, ObjectStore, atomic_write

logger = logging.getLogger(__name__)

HEAD = "HEAD"
REF_PREFIX = "ref: "

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_.-]*")


class LabelRepository:
    """Reads and writes label files in an object store directory."""

    def __init__(self, store: ObjectStore) -> None:
        self._store = store

    def validate_name(self, name: str) -> None:
        """Raise InvalidLabelNameError if *name* cannot be used as a label."""
        if not _NAME_RE.fullmatch(name):
            raise InvalidLabelNameError(name, "must match [A-Za-z_][A-Za-z0-9_.-]*")
        if name == CONFIG_NAME:
            raise InvalidLabelNameError(name, "reserved for the store config")
        if self._store.hasher.is_full_hash(name):
            raise InvalidLabelNameError(name, "collides with the object keyspace")

    def fetch_by_name(self, name: str) -> Label | None:
        """Return the label called *name*, or None if absent or unreadable."""
        try:
            self.validate_name(name)
        except InvalidLabelNameError:
            return None
        path = self._store.root / name
        try:
            text = path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Unreadable label %s: %s", name, exc)
            return None

        if not text.startswith(REF_PREFIX):
            logger.warning("Malformed label %s: %r", name, text[:60])
            return None
        commit_hash = text[len(REF_PREFIX):].strip()
        if not self._store.hasher.is_full_hash(commit_hash):
            logger.warning("Label %s holds an invalid hash: %r", name, commit_hash)
            return None
        return Label(name=name, commit_hash=commit_hash)

    def write(self, label: Label) -> None:
        """Persist *label*, replacing any previous value atomically."""
        self.validate_name(label.name)
        if not self._store.hasher.is_full_hash(label.commit_hash):
            raise ValueError(f"Not a full commit hash: {label.commit_hash!r}")
        atomic_write(
            self._store.root / label.name,
            f"{REF_PREFIX}{label.commit_hash}".encode("utf-8"),
        )
        logger.debug("Label %s -> %s", label.name, label.commit_hash[:12])

    def delete(self, name: str) -> bool:
        """Remove a label.  Returns True if it existed."""
        self.validate_name(name)
        try:
            os.unlink(self._store.root / name)
        except FileNotFoundError:
            return False
        logger.debug("Deleted label %s", name)
        return True

    def move_head(self, commit: Commit) -> Label:
        """Point HEAD at *commit*."""
        label = Label(name=HEAD, commit_hash=commit.commit_hash)
        self.write(label)
        return label

    def get_head(self) -> Label | None:
        return self.fetch_by_name(HEAD)

    def list_labels(self) -> list[Label]:
        """All readable labels in the store, sorted by name."""
        labels = []
        for entry in sorted(os.scandir(self._store.root), key=lambda e: e.name):
            if not entry.is_file() or not _NAME_RE.fullmatch(entry.name):
                continue
            if entry.name == CONFIG_NAME or self._store.hasher.is_full_hash(entry.name):
                continue
            label = self.fetch_by_name(entry.name)
            if label is not None:
                labels.append(label)
        return labels
