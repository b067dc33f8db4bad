"""CLI tests for dirvc -- every command via Click's CliRunner.

Each test runs inside runner.isolated_filesystem() so the default
``vc`` store and ``data`` tracked directory land in a scratch directory.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from dirvc.cli import cli
from dirvc.storage.labels import HEAD
from tests.conftest import write_files


@pytest.fixture
def runner():
    """Create a Click test runner."""
    return CliRunner()


def _head_hash(store: str = "vc") -> str:
    return (Path(store) / HEAD).read_text().strip().removeprefix("ref: ")


def _commit(runner: CliRunner, message: str, files: dict[str, str]) -> str:
    """Write *files* into ./data, commit them, and return the new HEAD hash."""
    write_files(Path("data"), files)
    result = runner.invoke(cli, ["commit", "-m", message])
    assert result.exit_code == 0, result.output
    return _head_hash()


# ---------------------------------------------------------------------------
# commit
# ---------------------------------------------------------------------------

class TestCommitCommand:
    def test_bootstraps_and_commits(self, runner):
        with runner.isolated_filesystem():
            head = _commit(runner, "add a", {"a.txt": "x"})
            result = runner.invoke(cli, ["log"])
            assert result.exit_code == 0
            assert head[:5] in result.output
            assert "add a" in result.output
            assert "Initial Commit" in result.output

    def test_prints_short_hash(self, runner):
        with runner.isolated_filesystem():
            Path("data").mkdir()
            result = runner.invoke(cli, ["commit", "-m", "empty"])
            assert result.exit_code == 0
            assert _head_hash()[:5] in result.output
            assert "empty" in result.output

    def test_message_required(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["commit"])
            assert result.exit_code != 0
            assert "--message" in result.output

    def test_author_option(self, runner):
        with runner.isolated_filesystem():
            Path("data").mkdir()
            runner.invoke(cli, ["--author", "alice", "commit", "-m", "by alice"])
            result = runner.invoke(cli, ["show"])
            assert "alice" in result.output


# ---------------------------------------------------------------------------
# history / log
# ---------------------------------------------------------------------------

class TestHistoryCommand:
    def test_single_lane(self, runner):
        with runner.isolated_filesystem():
            _commit(runner, "add a", {"a.txt": "x"})
            result = runner.invoke(cli, ["history"])
            assert result.exit_code == 0
            assert "add a" in result.output
            assert "|/" not in result.output

    def test_two_lanes_after_revert(self, runner):
        with runner.isolated_filesystem():
            c1 = _commit(runner, "add a", {"a.txt": "x"})
            c2 = _commit(runner, "mod a", {"a.txt": "y"})
            runner.invoke(cli, ["revert", c1[:5]])
            result = runner.invoke(cli, ["history"])
            assert result.exit_code == 0
            assert "|/" in result.output
            assert f"* | {c2[:5]}" in result.output
            assert f"| * {c1[:5]}" in result.output


class TestLogCommand:
    def test_limit(self, runner):
        with runner.isolated_filesystem():
            _commit(runner, "first", {"a.txt": "1"})
            _commit(runner, "second", {"a.txt": "2"})
            result = runner.invoke(cli, ["log", "-n", "1"])
            assert result.exit_code == 0
            assert "second" in result.output
            assert "first" not in result.output


# ---------------------------------------------------------------------------
# revert
# ---------------------------------------------------------------------------

class TestRevertCommand:
    def test_restores_file(self, runner):
        with runner.isolated_filesystem():
            c1 = _commit(runner, "add a", {"a.txt": "x"})
            _commit(runner, "mod a", {"a.txt": "y"})
            result = runner.invoke(cli, ["revert", c1[:5]])
            assert result.exit_code == 0
            assert "HEAD is now at" in result.output
            assert Path("data/a.txt").read_text() == "x"
            assert _head_hash() == c1

    def test_unknown_target(self, runner):
        with runner.isolated_filesystem():
            head = _commit(runner, "add a", {"a.txt": "x"})
            result = runner.invoke(cli, ["revert", "doesNotExist"])
            assert result.exit_code == 1
            assert "No commit matches" in result.output
            assert _head_hash() == head
            assert not Path("vc/temp_LATEST").exists()


# ---------------------------------------------------------------------------
# show / status
# ---------------------------------------------------------------------------

class TestShowCommand:
    def test_head_by_default(self, runner):
        with runner.isolated_filesystem():
            head = _commit(runner, "add a", {"a.txt": "x"})
            result = runner.invoke(cli, ["show"])
            assert result.exit_code == 0
            assert f"commit {head}" in result.output
            assert "a.txt" in result.output

    def test_by_prefix(self, runner):
        with runner.isolated_filesystem():
            c1 = _commit(runner, "add a", {"a.txt": "x"})
            _commit(runner, "mod a", {"a.txt": "y"})
            result = runner.invoke(cli, ["show", c1[:6]])
            assert result.exit_code == 0
            assert "Message: add a" in result.output

    def test_unknown(self, runner):
        with runner.isolated_filesystem():
            Path("data").mkdir()
            result = runner.invoke(cli, ["show", "ffffffff"])
            assert result.exit_code == 1
            assert "No commit matches" in result.output


class TestStatusCommand:
    def test_fresh_store(self, runner):
        with runner.isolated_filesystem():
            Path("data").mkdir()
            result = runner.invoke(cli, ["status"])
            assert result.exit_code == 0
            assert "HEAD at" in result.output
            assert "temp_LATEST: not set" in result.output

    def test_behind_marker(self, runner):
        with runner.isolated_filesystem():
            c1 = _commit(runner, "add a", {"a.txt": "x"})
            _commit(runner, "mod a", {"a.txt": "y"})
            runner.invoke(cli, ["revert", c1[:5]])
            result = runner.invoke(cli, ["status"])
            assert result.exit_code == 0
            assert "1 commit(s) behind temp_LATEST" in result.output


# ---------------------------------------------------------------------------
# Options and errors
# ---------------------------------------------------------------------------

class TestOptions:
    def test_env_vars(self, runner):
        with runner.isolated_filesystem():
            env = {"DIRVC_STORE": "store", "DIRVC_DIR": "tracked", "DIRVC_AUTHOR": "bob"}
            write_files(Path("tracked"), {"f.txt": "1"})
            result = runner.invoke(cli, ["commit", "-m", "env"], env=env)
            assert result.exit_code == 0
            assert Path("store/HEAD").exists()
            assert not Path("vc").exists()

            result = runner.invoke(cli, ["show"], env=env)
            assert "bob" in result.output
            assert "f.txt" in result.output

    def test_store_error_is_reported(self, runner):
        with runner.isolated_filesystem():
            Path("vc").mkdir()
            Path("vc/config").write_text("not json")
            result = runner.invoke(cli, ["status"])
            assert result.exit_code == 1
            assert "Error:" in result.output
