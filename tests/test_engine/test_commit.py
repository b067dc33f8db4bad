"""Tests for the CommitEngine.

Covers commit creation, persistence, exact and prefix lookup, and the
treatment of corrupt commit files.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

import pytest

from dirvc.engine.commit import CommitEngine
from dirvc.engine.hashing import canonical_json
from dirvc.engine.tree import TreeEngine
from dirvc.exceptions import CorruptObjectError
from dirvc.storage.objects import ObjectStore
from tests.conftest import StepClock, chain_commits, write_files


class TestCreateCommit:
    """Tests for CommitEngine.create_commit."""

    def test_root_commit(self, commit_engine: CommitEngine) -> None:
        commit = commit_engine.create_commit("Initial Commit", None, None)
        assert commit.author == "tester"
        assert commit.message == "Initial Commit"
        assert commit.parent_hash is None
        assert commit.tree_hash is None
        assert commit.is_root

    def test_links_tree_and_parent(self, commit_engine: CommitEngine, tree_engine: TreeEngine, tracked: Path) -> None:
        write_files(tracked, {"a.txt": "x"})
        tree = tree_engine.snapshot(tracked)
        parent = commit_engine.create_commit("first", None, None)
        child = commit_engine.create_commit("second", tree, parent)
        assert child.tree_hash == tree.tree_hash
        assert child.parent_hash == parent.commit_hash

    def test_timestamp_from_clock(self, commit_engine: CommitEngine) -> None:
        commit = commit_engine.create_commit("m", None, None)
        assert commit.created_at == datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc)
        assert commit.timestamp == "2026-10-19T08:30:00.000000+00:00"

    def test_does_not_persist(self, commit_engine: CommitEngine, store: ObjectStore) -> None:
        commit = commit_engine.create_commit("m", None, None)
        assert not store.exists(commit.commit_hash)

    def test_same_inputs_same_hash(self, store: ObjectStore) -> None:
        a = CommitEngine(store, "tester", clock=StepClock()).create_commit("m", None, None)
        b = CommitEngine(store, "tester", clock=StepClock()).create_commit("m", None, None)
        assert a.commit_hash == b.commit_hash

    def test_hash_covers_every_field(self, store: ObjectStore) -> None:
        base = CommitEngine(store, "tester", clock=StepClock()).create_commit("m", None, None)
        other_author = CommitEngine(store, "someone", clock=StepClock()).create_commit("m", None, None)
        other_message = CommitEngine(store, "tester", clock=StepClock()).create_commit("n", None, None)
        with_parent = CommitEngine(store, "tester", clock=StepClock()).create_commit("m", None, base)
        hashes = {base.commit_hash, other_author.commit_hash, other_message.commit_hash, with_parent.commit_hash}
        assert len(hashes) == 4

    def test_hash_matches_payload(self, commit_engine: CommitEngine, store: ObjectStore) -> None:
        commit = commit_engine.create_commit("m", None, None)
        assert store.hasher.hash(canonical_json(commit.to_payload())) == commit.commit_hash


class TestWriteAndGet:
    """Tests for CommitEngine.write / get."""

    def test_round_trip(self, commit_engine: CommitEngine) -> None:
        commit = commit_engine.create_commit("m", None, None)
        assert commit_engine.write(commit) is True
        assert commit_engine.get(commit.commit_hash) == commit

    def test_write_is_idempotent(self, commit_engine: CommitEngine, store: ObjectStore) -> None:
        commit = commit_engine.create_commit("m", None, None)
        commit_engine.write(commit)
        assert commit_engine.write(commit) is False

    def test_write_none(self, commit_engine: CommitEngine) -> None:
        assert commit_engine.write(None) is False

    def test_get_missing(self, commit_engine: CommitEngine, store: ObjectStore) -> None:
        assert commit_engine.get(store.hasher.hash(b"absent")) is None
        assert commit_engine.get(None) is None

    def test_unicode_message(self, commit_engine: CommitEngine) -> None:
        commit = commit_engine.create_commit("añadir régistro ✓", None, None)
        commit_engine.write(commit)
        assert commit_engine.get(commit.commit_hash).message == "añadir régistro ✓"


class TestFetchByHash:
    """Tests for CommitEngine.fetch_by_hash."""

    def test_full_hash_and_prefix_agree(self, commit_engine: CommitEngine) -> None:
        (commit,) = chain_commits(commit_engine, ["only"])
        assert commit_engine.fetch_by_hash(commit.commit_hash) == commit
        assert commit_engine.fetch_by_hash(commit.commit_hash[:5]) == commit

    def test_prefix_is_case_insensitive(self, commit_engine: CommitEngine) -> None:
        (commit,) = chain_commits(commit_engine, ["only"])
        assert commit_engine.fetch_by_hash(commit.commit_hash[:6].upper()) == commit

    def test_unknown_hash(self, commit_engine: CommitEngine) -> None:
        chain_commits(commit_engine, ["only"])
        assert commit_engine.fetch_by_hash("Testing123") is None
        assert commit_engine.fetch_by_hash("doesNotExist") is None

    def test_prefix_too_short(self, commit_engine: CommitEngine) -> None:
        (commit,) = chain_commits(commit_engine, ["only"])
        assert commit_engine.fetch_by_hash(commit.commit_hash[:3]) is None
        assert commit_engine.fetch_by_hash("") is None

    def test_corrupt_twin_ignored(self, commit_engine: CommitEngine, store: ObjectStore) -> None:
        (commit,) = chain_commits(commit_engine, ["only"])
        # Plant a second commit-shaped object under a key sharing the prefix.
        twin_key = commit.commit_hash[:5] + "0" * 35
        if twin_key == commit.commit_hash:
            twin_key = commit.commit_hash[:5] + "1" * 35
        store.write(twin_key, store.read(commit.commit_hash))
        # The twin fails its hash check, so the prefix still resolves uniquely.
        assert commit_engine.fetch_by_hash(commit.commit_hash[:5]) == commit

    def test_ambiguous_prefix(self, commit_engine: CommitEngine) -> None:
        seen: dict = {}
        for i in range(5000):
            sample = commit_engine.create_commit(f"sample {i}", None, None)
            prefix = sample.commit_hash[:4]
            if prefix in seen:
                first = seen[prefix]
                break
            seen[prefix] = sample
        else:
            pytest.fail("no 4-char prefix collision found")

        commit_engine.write(first)
        commit_engine.write(sample)
        assert commit_engine.fetch_by_hash(prefix) is None
        assert commit_engine.fetch_by_hash(first.commit_hash) == first
        assert commit_engine.fetch_by_hash(sample.commit_hash) == sample

    def test_ignores_trees_with_same_prefix(self, commit_engine: CommitEngine, tree_engine: TreeEngine, tracked: Path) -> None:
        write_files(tracked, {"a.txt": "x"})
        tree = tree_engine.snapshot(tracked)
        tree_engine.write(tree)
        assert commit_engine.fetch_by_hash(tree.tree_hash[:5]) is None
        assert commit_engine.fetch_by_hash(tree.tree_hash) is None

    def test_corrupt_commit_is_not_found(self, commit_engine: CommitEngine, store: ObjectStore) -> None:
        (commit,) = chain_commits(commit_engine, ["only"])
        store.path_for(commit.commit_hash).write_bytes(b'{"type":"commit", "truncated')
        assert commit_engine.fetch_by_hash(commit.commit_hash) is None
        assert commit_engine.fetch_by_hash(commit.commit_hash[:5]) is None

    def test_non_commit_objects_skipped_quietly(
        self, commit_engine: CommitEngine, tree_engine: TreeEngine, store: ObjectStore, tracked: Path, caplog
    ) -> None:
        write_files(tracked, {"notes.txt": 'status: "type":"commit" pending'})
        tree = tree_engine.snapshot(tracked)
        tree_engine.write(tree)
        blob_hash = tree.entries[0].blob_hash

        with caplog.at_level(logging.WARNING, logger="dirvc"):
            assert commit_engine.fetch_by_hash(blob_hash) is None
            assert commit_engine.fetch_by_hash(blob_hash[:6]) is None
            assert commit_engine.fetch_by_hash(tree.tree_hash) is None
        assert caplog.records == []

    def test_corrupt_commit_is_reported(self, commit_engine: CommitEngine, store: ObjectStore, caplog) -> None:
        (commit,) = chain_commits(commit_engine, ["only"])
        tampered = canonical_json({**commit.to_payload(), "message": "rewritten"})
        store.path_for(commit.commit_hash).write_bytes(tampered)

        with caplog.at_level(logging.WARNING, logger="dirvc"):
            assert commit_engine.fetch_by_hash(commit.commit_hash) is None
        assert any("hash mismatch" in r.getMessage() for r in caplog.records)


class TestDecode:
    """Tests for CommitEngine.decode validation."""

    def test_rejects_tree_payload(self, commit_engine: CommitEngine, store: ObjectStore) -> None:
        data = b'{"entries":[],"type":"tree"}'
        with pytest.raises(CorruptObjectError, match="not a commit"):
            commit_engine.decode(store.hasher.hash(data), data)

    def test_rejects_bad_parent(self, commit_engine: CommitEngine, store: ObjectStore) -> None:
        payload = {
            "type": "commit",
            "message": "m",
            "author": "a",
            "timestamp": "2026-10-19T08:30:00.000000+00:00",
            "tree": None,
            "parent": 42,
        }
        data = canonical_json(payload)
        with pytest.raises(CorruptObjectError, match="parent"):
            commit_engine.decode(store.hasher.hash(data), data)

    def test_rejects_hash_mismatch(self, commit_engine: CommitEngine, store: ObjectStore) -> None:
        commit = commit_engine.create_commit("m", None, None)
        data = canonical_json(commit.to_payload())
        with pytest.raises(CorruptObjectError, match="hash mismatch"):
            commit_engine.decode(store.hasher.hash(b"elsewhere"), data)
