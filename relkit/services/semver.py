from __future__ import annotations

import re
from dataclasses import dataclass

from relkit.core.result import Err, Ok, Result
from relkit.services.errors import ReleaseError
from relkit.services.model import Bump, CommitSummary, VersionRecommendation

_VERSION_RE = re.compile(r"^(v?)(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)$")

FIRST_RELEASE = "0.1.0"
_BUMPS: tuple[Bump, ...] = ("patch", "minor", "major")


@dataclass(frozen=True, slots=True, order=True)
class SemVer:
    major: int
    minor: int
    patch: int

    def format(self, prefix: str = "") -> str:
        return f"{prefix}{self.major}.{self.minor}.{self.patch}"

    def bump(self, kind: Bump) -> SemVer:
        match kind:
            case "major":
                return SemVer(self.major + 1, 0, 0)
            case "minor":
                return SemVer(self.major, self.minor + 1, 0)
            case "patch":
                return SemVer(self.major, self.minor, self.patch + 1)
            case _:
                raise AssertionError(f"unexpected bump kind: {kind}")


def parse_version(text: str) -> tuple[SemVer, str] | None:
    """Parse ``X.Y.Z`` or ``vX.Y.Z``; returns the version and its prefix."""
    m = _VERSION_RE.match(text.strip())
    if m is None:
        return None
    return (SemVer(int(m.group(2)), int(m.group(3)), int(m.group(4))), m.group(1))


def _plural(n: int, word: str, plural: str | None = None) -> str:
    return f"{n} {word if n == 1 else (plural or word + 's')}"


def decide_bump(summary: CommitSummary) -> tuple[Bump, str]:
    """First match wins: breaking, then features, then fixes, else patch."""
    if summary.breaking > 0:
        return ("major", _plural(summary.breaking, "breaking change"))
    feats = summary.count("feat")
    if feats > 0:
        return ("minor", _plural(feats, "new feature"))
    fixes = summary.count("fix")
    if fixes > 0:
        return ("patch", _plural(fixes, "bug fix", "bug fixes"))
    if summary.total == 0:
        return ("patch", "no commits since last release; no functional changes")
    return ("patch", f"{_plural(summary.total, 'commit')} with no functional changes (docs/chore/other only)")


def recommend(summary: CommitSummary, current: str | None) -> Result[VersionRecommendation, ReleaseError]:
    if current is None:
        return Ok(
            VersionRecommendation(
                current=None,
                recommended=FIRST_RELEASE,
                bump="minor",
                reason="no previous version found; first release",
            )
        )

    parsed = parse_version(current)
    if parsed is None:
        return Err(
            ReleaseError(
                kind="validation",
                message=f"invalid semantic version: {current}",
                hint="Expected X.Y.Z or vX.Y.Z",
            )
        )

    version, prefix = parsed
    bump, reason = decide_bump(summary)
    candidates: dict[str, str] = {
        kind: version.bump(kind).format(prefix) for kind in _BUMPS
    }
    return Ok(
        VersionRecommendation(
            current=current.strip(),
            recommended=candidates[bump],
            bump=bump,
            reason=reason,
            candidates=candidates,
        )
    )
