"""The one place relkit spawns external commands.

``git`` and ``gh`` are both driven through :func:`run`. It never raises: a
non-zero exit, a timeout or a missing executable all come back as a
:class:`ProcessError` so adapters can classify the failure from its text.

    match run(["gh", "--version"], cwd=root, timeout=10):
        case Ok(stdout):
            ...
        case Err(e) if e.missing_executable:
            ...
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from relkit.core.result import Err, Ok, Result

__all__ = ["NO_EXIT_STATUS", "ProcessError", "run"]

# Exit status reported when the process never produced one.
NO_EXIT_STATUS = -1


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A command that did not exit cleanly.

    ``returncode`` is :data:`NO_EXIT_STATUS` when the command could not be
    started or was killed on timeout; ``stderr`` then describes why.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def missing_executable(self) -> bool:
        if self.returncode != NO_EXIT_STATUS or self.timed_out:
            return False
        text = self.stderr.lower()
        return "no such file" in text or "not found" in text

    @property
    def detail(self) -> str:
        """First non-blank diagnostic line, stderr before stdout."""
        for text in (self.stderr, self.stdout):
            for line in text.splitlines():
                if line.strip():
                    return line.strip()
        return str(self)

    def __str__(self) -> str:
        shown = " ".join(self.command[:3])
        if len(self.command) > 3:
            shown += " ..."
        return f"{shown} failed (exit {self.returncode})"


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Run ``cmd`` to completion and return its stdout.

    Args:
        cmd: Command and arguments.
        cwd: Working directory.
        env: Full environment for the child (inherits ours when None).
        timeout: Seconds before the child is killed (no limit when None).
    """
    argv = tuple(cmd)
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.stdout if isinstance(e.stdout, str) else ""
        return Err(
            ProcessError(
                argv,
                NO_EXIT_STATUS,
                partial,
                f"{argv[0]} timed out after {timeout}s",
                timed_out=True,
            )
        )
    except OSError as e:
        return Err(ProcessError(argv, NO_EXIT_STATUS, "", str(e)))

    if proc.returncode != 0:
        return Err(ProcessError(argv, proc.returncode, proc.stdout, proc.stderr))
    return Ok(proc.stdout)
