"""Shared test fixtures for dirvc.

Provides a temporary object store, engines wired to it, a deterministic
clock, and helpers for populating a tracked directory.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from dirvc.engine.commit import CommitEngine
from dirvc.engine.tree import TreeEngine
from dirvc.models.config import HashAlgorithm, VersionConfig
from dirvc.storage.labels import LabelRepository
from dirvc.storage.objects import ObjectStore

START = datetime(2026, 10, 19, 8, 30, 0, tzinfo=timezone.utc)


class StepClock:
    """Clock that advances one minute per call."""

    def __init__(self, start: datetime = START, step: timedelta = timedelta(minutes=1)) -> None:
        self.current = start - step
        self.step = step

    def __call__(self) -> datetime:
        self.current += self.step
        return self.current


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def store(tmp_path: Path) -> ObjectStore:
    """Fresh SHA-1 object store in a temp directory."""
    return ObjectStore.open(tmp_path / "vc", HashAlgorithm.SHA1)


@pytest.fixture
def tracked(tmp_path: Path) -> Path:
    """Empty tracked directory."""
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def tree_engine(store: ObjectStore) -> TreeEngine:
    return TreeEngine(store, exclude=[store.root])


@pytest.fixture
def commit_engine(store: ObjectStore, clock: StepClock) -> CommitEngine:
    return CommitEngine(store, "tester", clock=clock)


@pytest.fixture
def labels(store: ObjectStore) -> LabelRepository:
    return LabelRepository(store)


# ------------------------------------------------------------------
# Shared test helpers
# ------------------------------------------------------------------

def write_files(root: Path, files: dict[str, str | bytes]) -> None:
    """Create files under *root* from a path -> content mapping."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode("utf-8")
        path.write_bytes(content)


def make_manager(tmp_path: Path, tracked: Path, clock: StepClock | None = None, **config_kwargs):
    """Open a VersionManager over *tracked* with a deterministic clock."""
    from dirvc.version import VersionManager

    config = VersionConfig(author="tester", **config_kwargs)
    store = ObjectStore.open(tmp_path / "vc", config.hash_algorithm)
    engine = CommitEngine(store, "tester", clock=clock or StepClock())
    return VersionManager.open(
        tracked,
        store_dir=tmp_path / "vc",
        config=config,
        commit_engine=engine,
    )


def chain_commits(commit_engine: CommitEngine, messages: list[str], parent=None):
    """Create and write a linear chain of tree-less commits; returns them oldest first."""
    commits = []
    for message in messages:
        commit = commit_engine.create_commit(message, None, parent)
        commit_engine.write(commit)
        commits.append(commit)
        parent = commit
    return commits
