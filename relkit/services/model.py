from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

Bump = Literal["major", "minor", "patch"]

# Order matters for reporting: known conventional-commit types first.
COMMIT_TYPES: tuple[str, ...] = (
    "feat",
    "fix",
    "docs",
    "style",
    "refactor",
    "perf",
    "test",
    "build",
    "ci",
    "chore",
    "revert",
    "other",
)


@dataclass(frozen=True, slots=True)
class Commit:
    sha: str
    type: str
    scope: str | None
    message: str
    breaking: bool

    def to_dict(self) -> dict[str, object]:
        return {
            "hash": self.sha,
            "type": self.type,
            "scope": self.scope,
            "message": self.message,
            "breaking": self.breaking,
        }


@dataclass(frozen=True, slots=True)
class CommitSummary:
    """Aggregate over a commit range.

    ``counts`` has one entry per type in :data:`COMMIT_TYPES`, so its values
    always sum to ``total``.
    """

    total: int
    counts: dict[str, int]
    breaking: int

    def count(self, commit_type: str) -> int:
        return self.counts.get(commit_type, 0)

    def to_dict(self) -> dict[str, object]:
        return {"total": self.total, **self.counts, "breaking": self.breaking}


@dataclass(frozen=True, slots=True)
class VersionRecommendation:
    current: str | None
    recommended: str
    bump: Bump
    reason: str
    candidates: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "current": self.current,
            "recommended": self.recommended,
            "bump": self.bump,
            "reason": self.reason,
            "candidates": self.candidates,
        }


@dataclass(frozen=True, slots=True)
class Job:
    name: str
    status: str
    conclusion: str | None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def duration(self) -> int | None:
        """Wall-clock seconds, once the job has both timestamps."""
        if self.started_at is None or self.completed_at is None:
            return None
        return max(0, int((self.completed_at - self.started_at).total_seconds()))

    @property
    def failed(self) -> bool:
        return self.status == "completed" and self.conclusion not in ("success", "skipped", "neutral")

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "status": self.status,
            "conclusion": self.conclusion,
            "duration": self.duration,
        }


@dataclass(frozen=True, slots=True)
class WorkflowRun:
    """A CI run as reported by the host. Only ever observed, never mutated."""

    id: int
    name: str
    status: str
    conclusion: str | None
    head_branch: str | None = None
    event: str | None = None
    created_at: datetime | None = None
    url: str | None = None
    jobs: tuple[Job, ...] = ()

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def succeeded(self) -> bool:
        return self.is_completed and self.conclusion == "success"

    @property
    def failed_jobs(self) -> list[Job]:
        return [j for j in self.jobs if j.failed]


@dataclass(frozen=True, slots=True)
class Asset:
    name: str


@dataclass(frozen=True, slots=True)
class Release:
    tag: str
    assets: tuple[Asset, ...]
    url: str | None = None

    @property
    def asset_names(self) -> list[str]:
        return [a.name for a in self.assets]


@dataclass(frozen=True, slots=True)
class FileCoverage:
    path: str
    changed_lines: int
    covered_lines: int
    uncovered_lines: tuple[int, ...]

    @property
    def coverage(self) -> float:
        return percent(self.covered_lines, self.changed_lines)

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "changedLines": self.changed_lines,
            "coveredLines": self.covered_lines,
            "coverage": self.coverage,
            "uncoveredLines": list(self.uncovered_lines),
        }


@dataclass(frozen=True, slots=True)
class Gap:
    """An uncovered changed line and the heuristic label it got."""

    path: str
    line: int
    text: str
    reason: str

    def to_dict(self) -> dict[str, object]:
        return {"file": self.path, "line": self.line, "code": self.text, "reason": self.reason}


@dataclass(frozen=True, slots=True)
class CoverageReport:
    since: str
    total_lines: int
    covered_lines: int
    files: tuple[FileCoverage, ...]
    addressable_gaps: tuple[Gap, ...]
    non_addressable_gaps: tuple[Gap, ...]
    threshold: float

    @property
    def patch_coverage(self) -> float:
        return percent(self.covered_lines, self.total_lines)

    @property
    def passed(self) -> bool:
        # Compared unrounded; patch_coverage is rounded for display only.
        return self.total_lines <= 0 or self.covered_lines * 100 >= self.threshold * self.total_lines

    def to_dict(self) -> dict[str, object]:
        return {
            "since": self.since,
            "patchCoverage": self.patch_coverage,
            "threshold": self.threshold,
            "passed": self.passed,
            "totalLines": self.total_lines,
            "coveredLines": self.covered_lines,
            "files": [f.to_dict() for f in self.files],
            "addressableGaps": [g.to_dict() for g in self.addressable_gaps],
            "nonAddressableGaps": [g.to_dict() for g in self.non_addressable_gaps],
        }


def percent(part: int, whole: int) -> float:
    """Percentage rounded to one decimal; an empty whole counts as 100%."""
    if whole <= 0:
        return 100.0
    return round(part * 100.0 / whole, 1)
