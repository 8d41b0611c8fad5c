"""Heuristic labelling of uncovered lines.

Both tables are evaluated top to bottom and the first match wins. A match in
``NON_ADDRESSABLE`` marks a line that is impractical to reach from a unit
test (the failure branch of an OS or network call, a deferred close). Lines
that fall through are addressable and get a content-based reason. False
positives are expected; extend the tables rather than the code.
"""

from __future__ import annotations

import re
from typing import NamedTuple


class GapRule(NamedTuple):
    pattern: re.Pattern[str]
    reason: str


def _rule(pattern: str, reason: str) -> GapRule:
    return GapRule(re.compile(pattern), reason)


NON_ADDRESSABLE: tuple[GapRule, ...] = (
    _rule(r"^\s*defer\s+.*\.Close\(\)", "deferred close"),
    _rule(
        r"\bos\.(Exit|Getwd|Executable|UserHomeDir|UserConfigDir|Hostname|Chdir|MkdirAll|"
        r"WriteFile|ReadFile|Remove|RemoveAll|Rename|Create|Open|OpenFile|Stat)\(",
        "OS call error path",
    ),
    _rule(
        r"\bhttp\.(Get|Post|NewRequest)\(|\bnet\.Dial|\.Do\(req\b|\bclient\.(Get|Post|Do)\(",
        "network call error path",
    ),
    _rule(r"\bexec\.Command|\.(CombinedOutput|Output)\(\)", "subprocess error path"),
    _rule(r"^\s*panic\(", "panic path"),
    _rule(r"\b(json|yaml)\.(Marshal|MarshalIndent)\(", "encoding error path"),
)

ADDRESSABLE: tuple[GapRule, ...] = (
    _rule(r"\bif\s+.*err\s*!=\s*nil", "error handling"),
    _rule(r"^\s*return\b.*\berr\b", "error return"),
    _rule(r"^\s*case\b|^\s*default:", "switch case"),
    _rule(r"\belse\s*(if\b.*)?\{", "else branch"),
)

FALLBACK_REASON = "new code"


def classify_gap(text: str) -> tuple[bool, str]:
    """Return ``(addressable, reason)`` for one uncovered source line."""
    for rule in NON_ADDRESSABLE:
        if rule.pattern.search(text):
            return (False, rule.reason)
    for rule in ADDRESSABLE:
        if rule.pattern.search(text):
            return (True, rule.reason)
    return (True, FALLBACK_REASON)
