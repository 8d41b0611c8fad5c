"""Conventional-commit classification over a tag..HEAD range."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from relkit.core.result import Err, Ok, Result
from relkit.git.repository import GitError, Repository
from relkit.services.errors import ReleaseError
from relkit.services.model import COMMIT_TYPES, Commit, CommitSummary

# type(scope)!: subject  |  type!: subject  |  type: subject
_SUBJECT_RE = re.compile(r"^(?P<type>[A-Za-z]+)(?:\((?P<scope>[^)]*)\))?(?P<bang>!)?:\s*(?P<rest>.*)$")
_BREAKING_TOKEN = "BREAKING CHANGE"


@dataclass(frozen=True, slots=True)
class CommitRange:
    """Commits after ``since`` (None: whole history) up to HEAD."""

    since: str | None
    commits: tuple[Commit, ...]

    def to_dict(self) -> dict[str, object]:
        return {
            "lastTag": self.since,
            "commits": [c.to_dict() for c in self.commits],
            "summary": summarize(self.commits).to_dict(),
        }


def classify_subject(subject: str, body: str = "") -> tuple[str, str | None, bool]:
    """Return ``(type, scope, breaking)`` for one commit message."""
    breaking = _BREAKING_TOKEN in body
    m = _SUBJECT_RE.match(subject.strip())
    if m is None:
        return ("other", None, breaking)

    commit_type = m.group("type").lower()
    if commit_type not in COMMIT_TYPES:
        commit_type = "other"
    scope = (m.group("scope") or "").strip() or None
    return (commit_type, scope, breaking or m.group("bang") is not None)


def parse_commit(sha: str, subject: str, body: str = "") -> Commit:
    commit_type, scope, breaking = classify_subject(subject, body)
    return Commit(sha=sha, type=commit_type, scope=scope, message=subject.strip(), breaking=breaking)


def summarize(commits: Iterable[Commit]) -> CommitSummary:
    counts = {t: 0 for t in COMMIT_TYPES}
    total = 0
    breaking = 0
    for c in commits:
        total += 1
        counts[c.type if c.type in counts else "other"] += 1
        if c.breaking:
            breaking += 1
    return CommitSummary(total=total, counts=counts, breaking=breaking)


def _git_error(e: GitError, *, ref: str | None = None) -> ReleaseError:
    if ref is not None and e.is_bad_revision:
        return ReleaseError(kind="not_found", message=f"unknown reference: {ref}", hint=e.message)
    return ReleaseError(kind="transport", message=f"git {e.command} failed", hint=e.message)


def latest_tag(repo: Repository) -> Result[str | None, ReleaseError]:
    result = repo.latest_tag()
    if isinstance(result, Err):
        return Err(_git_error(result.error))
    return result


def resolve_since(repo: Repository, since: str | None) -> Result[str, ReleaseError]:
    """Explicit ``since`` wins; otherwise the latest tag, which must exist."""
    if since:
        return Ok(since)

    tag = latest_tag(repo)
    if isinstance(tag, Err):
        return tag
    if tag.value is None:
        return Err(
            ReleaseError(
                kind="not_found",
                message="no tags found in repository",
                hint="Pass --since <tag-or-commit> or create the first release tag",
            )
        )
    return Ok(tag.value)


def list_commits(repo: Repository, since: str | None) -> Result[CommitRange, ReleaseError]:
    """Classify commits after ``since`` up to HEAD.

    ``since=None`` reads the whole history (first release); callers that need
    a boundary resolve it with :func:`resolve_since` first.
    """
    result = repo.log(since)
    if isinstance(result, Err):
        return Err(_git_error(result.error, ref=since))

    commits = tuple(parse_commit(e.sha, e.subject, e.body) for e in result.value)
    return Ok(CommitRange(since=since, commits=commits))
