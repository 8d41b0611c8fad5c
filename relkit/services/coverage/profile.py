"""Line coverage from a Go-style coverage profile.

Format (after a ``mode:`` header line)::

    path/to/file.go:START_LINE.START_COL,END_LINE.END_COL STATEMENTS HITS

Every line inside a block is instrumented. A line is covered as soon as any
block touching it has ``HITS > 0``; overlapping zero-hit blocks never
downgrade it.
"""

from __future__ import annotations

import re
from pathlib import Path

from relkit.core.result import Err, Ok, Result
from relkit.services.errors import ReleaseError

# path -> line number -> covered
LineCoverage = dict[str, dict[int, bool]]

_RECORD_RE = re.compile(r"^(?P<path>.+):(?P<start>\d+)\.\d+,(?P<end>\d+)\.\d+ (?P<stmts>\d+) (?P<hits>\d+)$")


def parse_profile(text: str) -> Result[LineCoverage, ReleaseError]:
    coverage: LineCoverage = {}
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("mode:"):
            continue

        m = _RECORD_RE.match(line)
        if m is None:
            return Err(
                ReleaseError(
                    kind="validation",
                    message=f"malformed coverage record at line {lineno}",
                    hint=line[:120],
                )
            )

        start = int(m.group("start"))
        end = int(m.group("end"))
        if end < start:
            return Err(
                ReleaseError(
                    kind="validation",
                    message=f"coverage block ends before it starts at line {lineno}",
                    hint=line[:120],
                )
            )

        hit = int(m.group("hits")) > 0
        lines = coverage.setdefault(m.group("path"), {})
        for n in range(start, end + 1):
            lines[n] = lines.get(n, False) or hit

    return Ok(coverage)


def load_profile(path: Path) -> Result[LineCoverage, ReleaseError]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Err(
            ReleaseError(
                kind="not_found",
                message=f"coverage profile not found: {path}",
                hint="Run: go test -coverprofile=coverage.out ./...",
            )
        )
    except (OSError, UnicodeDecodeError) as e:
        return Err(ReleaseError(kind="validation", message=f"cannot read coverage profile: {e}"))
    return parse_profile(text)


def strip_module_prefix(coverage: LineCoverage, module: str | None) -> LineCoverage:
    """Re-key profile paths (module import paths) to repository-relative paths."""
    if not module:
        return coverage
    prefix = module.rstrip("/") + "/"
    return {(p[len(prefix) :] if p.startswith(prefix) else p): lines for p, lines in coverage.items()}


def lines_for(coverage: LineCoverage, path: str) -> dict[int, bool] | None:
    """Coverage for a repo-relative ``path``; falls back to a path-suffix match."""
    exact = coverage.get(path)
    if exact is not None:
        return exact
    suffix = "/" + path
    for key, lines in coverage.items():
        if key.endswith(suffix):
            return lines
    return None
