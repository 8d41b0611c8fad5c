"""Diff-scoped (patch) coverage gate."""

from relkit.services.coverage.diff import parse_added_lines
from relkit.services.coverage.gaps import classify_gap
from relkit.services.coverage.gate import build_report, run_coverage_gate
from relkit.services.coverage.profile import load_profile, parse_profile

__all__ = [
    "build_report",
    "classify_gap",
    "load_profile",
    "parse_added_lines",
    "parse_profile",
    "run_coverage_gate",
]
