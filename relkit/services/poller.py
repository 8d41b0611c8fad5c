"""Time-bounded polling with capped exponential backoff.

The poller is the only place in relkit that waits. It calls ``check`` until
``is_done`` accepts an observation or the deadline is reached:

    tick:   check() -> Err      => returned as-is (transport errors are fatal)
            is_done(obs)        => Ok(PollOutcome(obs, elapsed))
            next tick too late  => Err(PollTimeout(obs, elapsed))
            otherwise           => on_poll(obs, elapsed); sleep(interval);
                                   interval = min(interval * backoff, max_interval)

Ticks are strictly sequential. A tick is never scheduled past the deadline,
so a poll returns within ``timeout + max_interval`` (plus check latency).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from time import monotonic, sleep
from typing import Generic, TypeVar

from relkit.core.result import Err, Ok, Result

__all__ = ["PollOptions", "PollOutcome", "PollTimeout", "poll"]

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class PollOptions:
    """Timing policy for one poll loop (all values in seconds)."""

    interval: float
    timeout: float
    backoff: float = 1.0
    max_interval: float | None = None

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ValueError(f"interval must be positive, got {self.interval}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.backoff < 1:
            raise ValueError(f"backoff must be >= 1, got {self.backoff}")
        if self.max_interval is not None and self.max_interval < self.interval:
            raise ValueError("max_interval must be >= interval")

    @property
    def cap(self) -> float:
        return self.interval if self.max_interval is None else self.max_interval


@dataclass(frozen=True, slots=True)
class PollOutcome(Generic[T]):
    result: T
    elapsed: float
    attempts: int


@dataclass(frozen=True, slots=True)
class PollTimeout(Generic[T]):
    """No accepted observation before the deadline; ``last`` is for diagnostics."""

    last: T
    elapsed: float
    attempts: int

    @property
    def message(self) -> str:
        return f"timed out after {self.elapsed:.0f}s ({self.attempts} checks)"


def poll(
    check: Callable[[], Result[T, E]],
    is_done: Callable[[T], bool],
    options: PollOptions,
    on_poll: Callable[[T, float], None] | None = None,
) -> Result[PollOutcome[T], PollTimeout[T] | E]:
    start = monotonic()
    interval = options.interval
    attempts = 0

    while True:
        observed = check()
        attempts += 1
        if isinstance(observed, Err):
            return observed

        value = observed.value
        elapsed = monotonic() - start
        if is_done(value):
            return Ok(PollOutcome(result=value, elapsed=elapsed, attempts=attempts))

        if elapsed + interval > options.timeout:
            return Err(PollTimeout(last=value, elapsed=elapsed, attempts=attempts))

        if on_poll is not None:
            on_poll(value, elapsed)

        sleep(interval)
        interval = min(interval * options.backoff, options.cap)
