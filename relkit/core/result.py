"""Result type used at every fallible boundary.

Adapters (git, gh, file parsing) and the monitors built on them never raise
for expected failures. They return ``Ok(value)`` or ``Err(error)`` and the
caller branches with ``isinstance`` or a ``match``:

    match latest_tag(repo):
        case Ok(None):
            print("no tags yet")
        case Ok(tag):
            print(f"since {tag}")
        case Err(error):
            print(f"error: {error.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")

__all__ = ["Err", "Ok", "Result"]


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Union[Ok[T], Err[E]]
