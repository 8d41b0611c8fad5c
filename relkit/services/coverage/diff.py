"""Added-line extraction from a zero-context unified diff."""

from __future__ import annotations

import re

from relkit.core.result import Err, Ok, Result
from relkit.services.errors import ReleaseError

# path -> added line numbers in the post-change file, ascending
ChangedLines = dict[str, list[int]]

_HUNK_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


def parse_added_lines(diff: str) -> Result[ChangedLines, ReleaseError]:
    """Map each file to the line numbers its hunks add.

    Hunk bodies are consumed by their declared old/new line counts, so an
    added line whose own text starts with ``++`` is never mistaken for a
    ``+++`` file header.
    """
    changed: ChangedLines = {}
    current: str | None = None
    cursor = 0
    old_left = 0
    new_left = 0

    for raw in diff.splitlines():
        if old_left > 0 or new_left > 0:
            if raw.startswith("\\"):
                continue
            marker = raw[:1]
            if marker == "+":
                if current is not None:
                    changed.setdefault(current, []).append(cursor)
                cursor += 1
                new_left -= 1
            elif marker == "-":
                old_left -= 1
            else:
                cursor += 1
                old_left -= 1
                new_left -= 1
            continue

        if raw.startswith("diff --git "):
            current = None
        elif raw.startswith("+++ "):
            target = raw[4:].strip()
            if target == "/dev/null":
                current = None
            else:
                current = target[2:] if target.startswith("b/") else target
        elif raw.startswith("@@"):
            m = _HUNK_RE.match(raw)
            if m is None:
                return Err(
                    ReleaseError(
                        kind="validation",
                        message="malformed hunk header in diff",
                        hint=raw[:120],
                    )
                )
            old_left = int(m.group(2)) if m.group(2) is not None else 1
            cursor = int(m.group(3))
            new_left = int(m.group(4)) if m.group(4) is not None else 1

    return Ok({path: sorted(set(lines)) for path, lines in changed.items()})
