from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from relkit.services import poller as poller_mod


def _empty_sleeps() -> list[float]:
    return []


@dataclass
class FakeClock:
    """Deterministic replacement for ``monotonic``/``sleep`` in the poller."""

    now: float = 0.0
    sleeps: list[float] = field(default_factory=_empty_sleeps)

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock(monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    clock = FakeClock()
    monkeypatch.setattr(poller_mod, "monotonic", clock.monotonic)
    monkeypatch.setattr(poller_mod, "sleep", clock.sleep)
    return clock
