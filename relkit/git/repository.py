"""Read-only git queries.

All operations return Result types; nothing here mutates the repository.

Usage:
    repo = Repository(Path("."))

    match repo.latest_tag():
        case Ok(None):
            print("no tags yet")
        case Ok(tag):
            print(f"latest: {tag}")
        case Err(e):
            print(f"git failed: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from relkit.core.result import Err, Ok, Result
from relkit.platform.process import ProcessError
from relkit.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0

# Field and record separators for `git log --format`; they never occur in
# commit messages.
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"

_NO_TAG_MARKERS = ("no names found", "cannot describe anything", "no tags can describe")
_BAD_REVISION_MARKERS = ("unknown revision", "bad revision", "ambiguous argument")

__all__ = [
    "GitError",
    "LogEntry",
    "Repository",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1

    @property
    def is_bad_revision(self) -> bool:
        text = self.message.lower()
        return any(marker in text for marker in _BAD_REVISION_MARKERS)


@dataclass(frozen=True, slots=True)
class LogEntry:
    """One raw commit from `git log`."""

    sha: str
    subject: str
    body: str


class Repository:
    """Git repository at ``path`` (any directory inside the work tree)."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def latest_tag(self) -> Result[str | None, GitError]:
        """Most recent tag reachable from HEAD, or None if there is none."""
        result = self._run(["describe", "--tags", "--abbrev=0"])
        match result:
            case Ok(stdout):
                tag = stdout.strip()
                return Ok(tag or None)
            case Err(e):
                text = f"{e.stderr}\n{e.stdout}".lower()
                if any(marker in text for marker in _NO_TAG_MARKERS):
                    return Ok(None)
                return Err(self._error("describe", e))

    def log(self, since: str | None) -> Result[list[LogEntry], GitError]:
        """Commits after ``since`` up to HEAD (the whole history when None)."""
        rev = f"{since}..HEAD" if since else "HEAD"
        fmt = f"--format=%H{_FIELD_SEP}%s{_FIELD_SEP}%b{_RECORD_SEP}"
        result = self._run(["log", fmt, rev])
        match result:
            case Err(e):
                return Err(self._error("log", e))
            case Ok(stdout):
                return Ok(_parse_log(stdout))

    def diff(self, since: str) -> Result[str, GitError]:
        """Zero-context unified diff of the working tree against ``since``."""
        result = self._run(
            [
                "diff",
                "--unified=0",
                "--no-color",
                "--no-ext-diff",
                "--src-prefix=a/",
                "--dst-prefix=b/",
                since,
            ]
        )
        match result:
            case Err(e):
                return Err(self._error("diff", e))
            case Ok(stdout):
                return Ok(stdout)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        return run_process(
            ["git", "-C", str(self.path), *args], cwd=self.path, timeout=_GIT_TIMEOUT_SECONDS
        )

    @staticmethod
    def _error(command: str, e: ProcessError) -> GitError:
        return GitError(
            command=command,
            message=e.stderr.strip() or e.stdout.strip() or f"git {command} failed",
            returncode=e.returncode,
        )


def _parse_log(output: str) -> list[LogEntry]:
    entries: list[LogEntry] = []
    for record in output.split(_RECORD_SEP):
        record = record.strip("\n")
        if not record.strip():
            continue
        parts = record.split(_FIELD_SEP)
        if len(parts) < 2:
            continue
        sha = parts[0].strip()
        subject = parts[1].strip()
        body = parts[2].strip() if len(parts) > 2 else ""
        entries.append(LogEntry(sha=sha, subject=subject, body=body))
    return entries
