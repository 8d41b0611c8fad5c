from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseErrorKind = Literal[
    "not_found",
    "validation",
    "timeout",
    "transport",
    "threshold",
    "gh_missing",
    "gh_auth_required",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical error payload carried in ``Err`` results.

    ``transport``, ``gh_missing`` and ``gh_auth_required`` mean the external
    command itself failed; they are never retried by the poller. ``not_found``
    means the command worked but the data is absent.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    @property
    def is_transport(self) -> bool:
        return self.kind in ("transport", "gh_missing", "gh_auth_required")

    def to_dict(self) -> dict[str, object]:
        return {"kind": self.kind, "message": self.message, "hint": self.hint}
