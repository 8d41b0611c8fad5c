"""Patch coverage: changed lines since a tag joined with line coverage."""

from __future__ import annotations

import re
from collections.abc import Callable
from pathlib import Path

from relkit.core.config import CoverageConfig
from relkit.core.result import Err, Ok, Result
from relkit.git.repository import Repository
from relkit.services.commits import resolve_since
from relkit.services.coverage.diff import ChangedLines, parse_added_lines
from relkit.services.coverage.gaps import classify_gap
from relkit.services.coverage.profile import (
    LineCoverage,
    lines_for,
    load_profile,
    strip_module_prefix,
)
from relkit.services.errors import ReleaseError, ReleaseErrorKind
from relkit.services.model import CoverageReport, FileCoverage, Gap

_MODULE_RE = re.compile(r"^module\s+(\S+)", re.MULTILINE)

SourceReader = Callable[[str], list[str]]


def read_module_path(root: Path) -> str | None:
    """Module path declared in ``go.mod`` at the repository root, if any."""
    try:
        text = (root / "go.mod").read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    m = _MODULE_RE.search(text)
    return m.group(1).strip('"') if m else None


def file_reader(root: Path) -> SourceReader:
    """Return a reader of post-change source lines; unreadable files read as empty."""
    cache: dict[str, list[str]] = {}

    def read(path: str) -> list[str]:
        if path not in cache:
            try:
                cache[path] = (root / path).read_text(encoding="utf-8", errors="replace").splitlines()
            except OSError:
                cache[path] = []
        return cache[path]

    return read


def is_source_path(path: str, cfg: CoverageConfig) -> bool:
    if cfg.source_suffix and not path.endswith(cfg.source_suffix):
        return False
    return not any(path.endswith(s) for s in cfg.exclude_suffixes)


def build_report(
    *,
    since: str,
    coverage: LineCoverage,
    changed: ChangedLines,
    read_source: SourceReader,
    threshold: float,
) -> CoverageReport:
    """Join changed lines with coverage; only instrumented lines count."""
    files: list[FileCoverage] = []
    addressable: list[Gap] = []
    non_addressable: list[Gap] = []
    total = 0
    covered = 0

    for path in sorted(changed):
        lines = lines_for(coverage, path)
        if lines is None:
            continue

        instrumented = [n for n in changed[path] if n in lines]
        if not instrumented:
            continue

        hit = [n for n in instrumented if lines[n]]
        missed = [n for n in instrumented if not lines[n]]
        total += len(instrumented)
        covered += len(hit)
        files.append(
            FileCoverage(
                path=path,
                changed_lines=len(instrumented),
                covered_lines=len(hit),
                uncovered_lines=tuple(missed),
            )
        )

        source = read_source(path) if missed else []
        for n in missed:
            text = source[n - 1].strip() if 0 < n <= len(source) else ""
            is_addressable, reason = classify_gap(text)
            gap = Gap(path=path, line=n, text=text, reason=reason)
            (addressable if is_addressable else non_addressable).append(gap)

    return CoverageReport(
        since=since,
        total_lines=total,
        covered_lines=covered,
        files=tuple(files),
        addressable_gaps=tuple(addressable),
        non_addressable_gaps=tuple(non_addressable),
        threshold=threshold,
    )


def run_coverage_gate(
    *,
    repo_root: Path,
    since: str | None,
    profile_path: Path,
    threshold: float,
    cfg: CoverageConfig,
) -> Result[CoverageReport, ReleaseError]:
    if not 0 <= threshold <= 100:
        return Err(ReleaseError(kind="validation", message=f"threshold must be within 0..100: {threshold}"))

    repo = Repository(repo_root)
    boundary = resolve_since(repo, since)
    if isinstance(boundary, Err):
        return boundary

    profile = load_profile(profile_path)
    if isinstance(profile, Err):
        return profile

    diff = repo.diff(boundary.value)
    if isinstance(diff, Err):
        e = diff.error
        kind: ReleaseErrorKind = "not_found" if e.is_bad_revision else "transport"
        return Err(ReleaseError(kind=kind, message=f"git diff against {boundary.value} failed", hint=e.message))

    changed = parse_added_lines(diff.value)
    if isinstance(changed, Err):
        return changed

    sources = {p: lines for p, lines in changed.value.items() if is_source_path(p, cfg)}
    coverage = strip_module_prefix(profile.value, read_module_path(repo_root))
    return Ok(
        build_report(
            since=boundary.value,
            coverage=coverage,
            changed=sources,
            read_source=file_reader(repo_root),
            threshold=threshold,
        )
    )
