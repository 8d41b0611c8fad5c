"""Tests for relkit.git.repository module."""

from __future__ import annotations

from pathlib import Path

import pytest

from relkit.core.result import Err, Ok, Result
from relkit.git import repository as repo_mod
from relkit.git.repository import GitError, LogEntry, Repository
from relkit.platform.process import ProcessError


class FakeGit:
    def __init__(self, result: Result[str, ProcessError]) -> None:
        self.result = result
        self.calls: list[list[str]] = []

    def __call__(
        self, cmd: list[str], cwd: Path, env: object = None, *, timeout: float | None = None
    ) -> Result[str, ProcessError]:
        del cwd, env, timeout
        self.calls.append(cmd)
        return self.result


def _fail(stderr: str, returncode: int = 128) -> Err[ProcessError]:
    return Err(ProcessError(command=("git",), returncode=returncode, stdout="", stderr=stderr))


@pytest.fixture
def fake_git(monkeypatch: pytest.MonkeyPatch):
    def install(result: Result[str, ProcessError]) -> FakeGit:
        fake = FakeGit(result)
        monkeypatch.setattr(repo_mod, "run_process", fake)
        return fake

    return install


class TestLatestTag:
    def test_returns_tag(self, fake_git, tmp_path: Path) -> None:
        fake = fake_git(Ok("v2.0.1\n"))

        assert Repository(tmp_path).latest_tag() == Ok("v2.0.1")
        assert fake.calls[0] == ["git", "-C", str(tmp_path), "describe", "--tags", "--abbrev=0"]

    def test_no_tags_is_none(self, fake_git, tmp_path: Path) -> None:
        fake_git(_fail("fatal: No names found, cannot describe anything."))

        assert Repository(tmp_path).latest_tag() == Ok(None)

    def test_other_failure_is_error(self, fake_git, tmp_path: Path) -> None:
        fake_git(_fail("fatal: not a git repository (or any of the parent directories): .git"))

        result = Repository(tmp_path).latest_tag()

        assert isinstance(result, Err)
        assert result.error.command == "describe"
        assert "not a git repository" in result.error.message


class TestLog:
    def test_range_and_parsing(self, fake_git, tmp_path: Path) -> None:
        fake = fake_git(
            Ok("abc\x1ffeat: one\x1f\x1e\ndef\x1ffix: two\x1fline 1\nline 2\n\x1e\n")
        )

        result = Repository(tmp_path).log("v1.0.0")

        assert result == Ok(
            [
                LogEntry(sha="abc", subject="feat: one", body=""),
                LogEntry(sha="def", subject="fix: two", body="line 1\nline 2"),
            ]
        )
        assert fake.calls[0][-1] == "v1.0.0..HEAD"

    def test_whole_history_without_boundary(self, fake_git, tmp_path: Path) -> None:
        fake = fake_git(Ok(""))

        assert Repository(tmp_path).log(None) == Ok([])
        assert fake.calls[0][-1] == "HEAD"


class TestDiff:
    def test_zero_context_diff(self, fake_git, tmp_path: Path) -> None:
        fake = fake_git(Ok("diff --git a/x b/x\n"))

        assert Repository(tmp_path).diff("v1.0.0") == Ok("diff --git a/x b/x\n")
        assert fake.calls[0][3:] == [
            "diff",
            "--unified=0",
            "--no-color",
            "--no-ext-diff",
            "--src-prefix=a/",
            "--dst-prefix=b/",
            "v1.0.0",
        ]

    def test_bad_revision(self, fake_git, tmp_path: Path) -> None:
        fake_git(_fail("fatal: bad revision 'v9.9.9'"))

        result = Repository(tmp_path).diff("v9.9.9")

        assert isinstance(result, Err)
        assert result.error.is_bad_revision


def test_git_error_bad_revision_markers() -> None:
    assert GitError("log", "fatal: ambiguous argument 'x..HEAD': unknown revision").is_bad_revision
    assert not GitError("log", "fatal: not a git repository").is_bad_revision
