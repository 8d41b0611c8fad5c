"""Progress output for humans, kept off stdout.

stdout belongs to the single JSON report each command prints. Everything a
person watching a long wait wants to see (phase changes, poll ticks, final
verdicts) goes through :class:`ConsoleProtocol`; :class:`RichConsole` sends it
to stderr.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "OutputRecord",
    "RichConsole",
    "Style",
]


class Style(Enum):
    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    DIM = auto()
    PHASE = auto()

    def __str__(self) -> str:
        return self.name.lower()


def format_elapsed(seconds: float) -> str:
    """``75.2`` -> ``1m15s``; waits are minutes long, sub-second noise is dropped."""
    total = max(0, int(seconds))
    minutes, secs = divmod(total, 60)
    return f"{minutes}m{secs:02d}s" if minutes else f"{secs}s"


class ConsoleProtocol(Protocol):
    """What services and commands may say while they work."""

    def print(self, message: str, style: Style = Style.DEFAULT) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def phase(self, title: str) -> None:
        """Announce the start of a distinct step of a long operation."""
        ...

    def tick(self, elapsed: float, message: str) -> None:
        """One unfinished poll observation."""
        ...


_RICH_STYLES: dict[Style, str] = {
    Style.SUCCESS: "green",
    Style.ERROR: "red bold",
    Style.WARNING: "yellow",
    Style.INFO: "cyan",
    Style.DIM: "dim",
    Style.PHASE: "blue bold",
}


class RichConsole:
    """stderr console backed by Rich; ``quiet`` silences everything."""

    def __init__(self, *, stderr: bool = True, quiet: bool = False) -> None:
        # Rich is only needed once a command actually runs.
        from rich.console import Console

        self._console = Console(stderr=stderr, quiet=quiet, highlight=False)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self._console.print(message, style=_RICH_STYLES.get(style), markup=False)

    def success(self, message: str) -> None:
        self._console.print(f"[green]ok[/green] {message}")

    def error(self, message: str) -> None:
        self._console.print(f"[red bold]error:[/red bold] {message}")

    def warning(self, message: str) -> None:
        self._console.print(f"[yellow]warning:[/yellow] {message}")

    def info(self, message: str) -> None:
        self._console.print(f"[cyan]info:[/cyan] {message}")

    def phase(self, title: str) -> None:
        self._console.rule(title, style=_RICH_STYLES[Style.PHASE], align="left")

    def tick(self, elapsed: float, message: str) -> None:
        self._console.print(f"[{format_elapsed(elapsed):>6}] {message}", style="dim", markup=False)


@dataclass
class OutputRecord:
    message: str
    style: Style


def _empty_outputs() -> list[OutputRecord]:
    return []


@dataclass
class MockConsole:
    """Records output for assertions in tests."""

    outputs: list[OutputRecord] = field(default_factory=_empty_outputs)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"ok {message}", Style.SUCCESS))

    def error(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"error: {message}", Style.ERROR))

    def warning(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"warning: {message}", Style.WARNING))

    def info(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"info: {message}", Style.INFO))

    def phase(self, title: str) -> None:
        self.outputs.append(OutputRecord(title, Style.PHASE))

    def tick(self, elapsed: float, message: str) -> None:
        self.outputs.append(OutputRecord(f"[{format_elapsed(elapsed)}] {message}", Style.DIM))

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def phases(self) -> list[str]:
        return [o.message for o in self.outputs if o.style == Style.PHASE]

    @property
    def ticks(self) -> int:
        return sum(1 for o in self.outputs if o.style == Style.DIM and o.message.startswith("["))

    def has_error(self) -> bool:
        return any(o.style == Style.ERROR for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        return [o for o in self.outputs if substring in o.message]
