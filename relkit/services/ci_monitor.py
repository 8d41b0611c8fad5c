"""Wait for a CI run to reach a terminal state.

    discovering --(run found)--> waiting --(completed)--> success | failure
         |                          |
         +--> error (no run)        +--> timeout (deadline, last state kept)

A failed conclusion is a normal outcome reported in ``status``; only
transport problems and missing data are ``Err`` results.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from relkit.core.result import Err, Ok, Result
from relkit.output.console import ConsoleProtocol
from relkit.services.errors import ReleaseError
from relkit.services.gh import get_run, list_runs
from relkit.services.model import WorkflowRun
from relkit.services.poller import PollOptions, PollTimeout, poll
from relkit.services.timeouts import (
    CI_POLL_BACKOFF,
    CI_POLL_INTERVAL_SECONDS,
    CI_POLL_MAX_INTERVAL_SECONDS,
    CI_WAIT_TIMEOUT_SECONDS,
)

MonitorStatus = Literal["success", "failure", "timeout", "incomplete", "error"]


@dataclass(frozen=True, slots=True)
class WaitOptions:
    timeout: float = CI_WAIT_TIMEOUT_SECONDS
    interval: float = CI_POLL_INTERVAL_SECONDS
    max_interval: float = CI_POLL_MAX_INTERVAL_SECONDS
    backoff: float = CI_POLL_BACKOFF

    def poll_options(self) -> PollOptions:
        # A user-supplied interval above the default cap raises the cap too.
        return PollOptions(
            interval=self.interval,
            timeout=self.timeout,
            backoff=self.backoff,
            max_interval=max(self.max_interval, self.interval),
        )


@dataclass(frozen=True, slots=True)
class WorkflowReport:
    status: MonitorStatus
    run: WorkflowRun
    duration: float
    message: str | None = None

    def to_dict(self) -> dict[str, object]:
        out: dict[str, object] = {
            "status": self.status,
            "workflow": self.run.name,
            "runId": self.run.id,
            "url": self.run.url,
            "runStatus": self.run.status,
            "conclusion": self.run.conclusion,
            "duration": round(self.duration),
            "jobs": [j.to_dict() for j in self.run.jobs],
        }
        if self.status == "failure":
            out["failedJobs"] = [j.name for j in self.run.failed_jobs]
        if self.message:
            out["message"] = self.message
        return out


def _terminal_status(run: WorkflowRun) -> MonitorStatus:
    return "success" if run.succeeded else "failure"


def wait_for_run(
    *,
    workspace_root: Path,
    run: WorkflowRun,
    options: WaitOptions,
    console: ConsoleProtocol,
) -> Result[WorkflowReport, ReleaseError]:
    """Poll ``run`` until it completes, then report its conclusion and jobs."""
    if run.is_completed:
        # Listing payloads carry no jobs; one detail read fills them in.
        detail = get_run(workspace_root=workspace_root, run_id=run.id)
        if isinstance(detail, Err):
            return detail
        return Ok(WorkflowReport(status=_terminal_status(detail.value), run=detail.value, duration=0.0))

    console.info(f"waiting for run {run.id} ({run.name}), currently {run.status}")

    def on_poll(observed: WorkflowRun, elapsed: float) -> None:
        console.tick(elapsed, f"run {observed.id}: {observed.status}")

    outcome = poll(
        lambda: get_run(workspace_root=workspace_root, run_id=run.id),
        lambda observed: observed.is_completed,
        options.poll_options(),
        on_poll=on_poll,
    )
    if isinstance(outcome, Err):
        error = outcome.error
        if isinstance(error, PollTimeout):
            return Ok(
                WorkflowReport(
                    status="timeout",
                    run=error.last,
                    duration=error.elapsed,
                    message=f"run {run.id} still {error.last.status}: {error.message}",
                )
            )
        return Err(error)

    done = outcome.value
    return Ok(WorkflowReport(status=_terminal_status(done.result), run=done.result, duration=done.elapsed))


def latest_run(
    *,
    workspace_root: Path,
    workflow: str | None = None,
    branch: str | None = None,
) -> Result[WorkflowRun, ReleaseError]:
    runs = list_runs(workspace_root=workspace_root, limit=1, workflow=workflow, branch=branch)
    if isinstance(runs, Err):
        return runs
    if not runs.value:
        filters: list[str] = []
        if workflow:
            filters.append(f"workflow={workflow}")
        if branch:
            filters.append(f"branch={branch}")
        return Err(
            ReleaseError(
                kind="not_found",
                message="no workflow runs found",
                hint=" ".join(filters) or None,
            )
        )
    return Ok(runs.value[0])


def wait_for_ci(
    *,
    workspace_root: Path,
    options: WaitOptions,
    console: ConsoleProtocol,
    workflow: str | None = None,
    branch: str | None = None,
) -> Result[WorkflowReport, ReleaseError]:
    """Wait for the most recent run (optionally filtered) to finish."""
    run = latest_run(workspace_root=workspace_root, workflow=workflow, branch=branch)
    if isinstance(run, Err):
        return run
    return wait_for_run(workspace_root=workspace_root, run=run.value, options=options, console=console)
