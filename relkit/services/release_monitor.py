"""Follow a tag-triggered release from CI run to published assets.

Three phases, strictly in order, each with its own bounded wait:

A. locate the run   -- poll recent runs for one triggered by the tag. If none
                       shows up, fall back to an already-existing release
                       (the pipeline may have finished before we started).
B. wait for the run -- same state machine as ``wait-ci``, longer timeout.
C. reconcile assets -- poll until the release is visible, then diff its
                       assets against the expected checklist.

Terminal statuses: success, failure (run concluded non-success), timeout
(some phase ran out of time), incomplete (run succeeded, assets missing).
Discovery failures and transport problems are ``Err`` results.

Run discovery is a heuristic: a run matches when its ref equals the tag or
its workflow name equals the release workflow, and it was created within the
recency window. Two pipelines started inside that window can be confused;
the host offers no "runs for this exact tag" query to do better.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from time import monotonic

from relkit.core.result import Err, Ok, Result
from relkit.output.console import ConsoleProtocol
from relkit.services.ci_monitor import MonitorStatus, WaitOptions, wait_for_run
from relkit.services.errors import ReleaseError
from relkit.services.gh import get_release, list_runs
from relkit.services.model import Release, WorkflowRun
from relkit.services.poller import PollOptions, PollTimeout, poll
from relkit.services.timeouts import (
    RELEASE_VISIBILITY_INTERVAL_SECONDS,
    RELEASE_VISIBILITY_MAX_INTERVAL_SECONDS,
    RELEASE_VISIBILITY_TIMEOUT_SECONDS,
    RELEASE_WAIT_TIMEOUT_SECONDS,
    RUN_DISCOVERY_INTERVAL_SECONDS,
    RUN_DISCOVERY_LOOKBACK,
    RUN_DISCOVERY_MAX_INTERVAL_SECONDS,
    RUN_DISCOVERY_TIMEOUT_SECONDS,
    RUN_RECENCY_WINDOW_SECONDS,
)


def _release_wait_options() -> WaitOptions:
    return WaitOptions(timeout=RELEASE_WAIT_TIMEOUT_SECONDS)


@dataclass(frozen=True, slots=True)
class ReleaseWaitOptions:
    wait: WaitOptions = field(default_factory=_release_wait_options)
    discovery: PollOptions = PollOptions(
        interval=RUN_DISCOVERY_INTERVAL_SECONDS,
        timeout=RUN_DISCOVERY_TIMEOUT_SECONDS,
        backoff=1.5,
        max_interval=RUN_DISCOVERY_MAX_INTERVAL_SECONDS,
    )
    visibility: PollOptions = PollOptions(
        interval=RELEASE_VISIBILITY_INTERVAL_SECONDS,
        timeout=RELEASE_VISIBILITY_TIMEOUT_SECONDS,
        backoff=1.5,
        max_interval=RELEASE_VISIBILITY_MAX_INTERVAL_SECONDS,
    )
    lookback: int = RUN_DISCOVERY_LOOKBACK
    recency_window: float = RUN_RECENCY_WINDOW_SECONDS


@dataclass(frozen=True, slots=True)
class ReleaseReport:
    status: MonitorStatus
    tag: str
    expected: tuple[str, ...]
    run: WorkflowRun | None = None
    release: Release | None = None
    missing: tuple[str, ...] = ()
    duration: float = 0.0
    message: str | None = None

    def to_dict(self) -> dict[str, object]:
        out: dict[str, object] = {"status": self.status, "tag": self.tag}
        if self.run is not None:
            out["workflow"] = self.run.name
            out["runId"] = self.run.id
            out["conclusion"] = self.run.conclusion
            out["jobs"] = [j.to_dict() for j in self.run.jobs]
            if self.status == "failure":
                out["failedJobs"] = [j.name for j in self.run.failed_jobs]
        else:
            out["jobs"] = []
        out["assets"] = self.release.asset_names if self.release is not None else []
        out["expectedAssets"] = list(self.expected)
        if self.release is not None:
            out["missing"] = list(self.missing)
            out["releaseUrl"] = self.release.url
        out["duration"] = round(self.duration)
        if self.message:
            out["message"] = self.message
        return out


def _utcnow() -> datetime:
    return datetime.now(UTC)


def is_tag_run(
    run: WorkflowRun,
    *,
    tag: str,
    workflow_name: str,
    now: datetime,
    window: float,
) -> bool:
    if run.head_branch != tag and run.name != workflow_name:
        return False
    if run.created_at is None:
        return False
    age = (now - run.created_at).total_seconds()
    return age <= window


def find_tag_run(
    runs: Iterable[WorkflowRun],
    *,
    tag: str,
    workflow_name: str,
    now: datetime,
    window: float,
) -> WorkflowRun | None:
    """First (most recent) run matching the tag heuristic; exact ref wins."""
    candidates = [
        r for r in runs if is_tag_run(r, tag=tag, workflow_name=workflow_name, now=now, window=window)
    ]
    for r in candidates:
        if r.head_branch == tag:
            return r
    return candidates[0] if candidates else None


def missing_assets(expected: Sequence[str], actual: Iterable[str]) -> tuple[str, ...]:
    """Checklist entries not contained in any actual asset name."""
    names = list(actual)
    return tuple(e for e in expected if not any(e in name for name in names))


def _discover_run(
    *,
    workspace_root: Path,
    tag: str,
    workflow_name: str,
    options: ReleaseWaitOptions,
    console: ConsoleProtocol,
) -> Result[WorkflowRun | None, ReleaseError]:
    def matching(runs: list[WorkflowRun]) -> WorkflowRun | None:
        return find_tag_run(
            runs, tag=tag, workflow_name=workflow_name, now=_utcnow(), window=options.recency_window
        )

    def on_poll(runs: list[WorkflowRun], elapsed: float) -> None:
        del runs
        console.tick(elapsed, f"no run for {tag} yet")

    outcome = poll(
        lambda: list_runs(workspace_root=workspace_root, limit=options.lookback),
        lambda runs: matching(runs) is not None,
        options.discovery,
        on_poll=on_poll,
    )
    if isinstance(outcome, Err):
        if isinstance(outcome.error, PollTimeout):
            return Ok(None)
        return Err(outcome.error)
    return Ok(matching(outcome.value.result))


def _await_release(
    *,
    workspace_root: Path,
    tag: str,
    options: ReleaseWaitOptions,
    console: ConsoleProtocol,
) -> Result[Release | None, ReleaseError]:
    def on_poll(release: Release | None, elapsed: float) -> None:
        del release
        console.tick(elapsed, f"release {tag} not visible yet")

    outcome = poll(
        lambda: get_release(workspace_root=workspace_root, tag=tag),
        lambda release: release is not None,
        options.visibility,
        on_poll=on_poll,
    )
    if isinstance(outcome, Err):
        if isinstance(outcome.error, PollTimeout):
            return Ok(None)
        return Err(outcome.error)
    return Ok(outcome.value.result)


def reconcile(
    *,
    tag: str,
    release: Release,
    expected: tuple[str, ...],
    run: WorkflowRun | None,
    duration: float,
) -> ReleaseReport:
    missing = missing_assets(expected, release.asset_names)
    if missing:
        return ReleaseReport(
            status="incomplete",
            tag=tag,
            expected=expected,
            run=run,
            release=release,
            missing=missing,
            duration=duration,
            message=f"{len(missing)} of {len(expected)} expected assets missing",
        )
    return ReleaseReport(
        status="success", tag=tag, expected=expected, run=run, release=release, duration=duration
    )


def wait_for_release(
    *,
    workspace_root: Path,
    tag: str,
    expected_assets: tuple[str, ...],
    workflow_name: str,
    options: ReleaseWaitOptions,
    console: ConsoleProtocol,
) -> Result[ReleaseReport, ReleaseError]:
    started = monotonic()

    # Phase A: locate the run triggered by the tag.
    console.phase(f"release {tag}: locating workflow run")
    found = _discover_run(
        workspace_root=workspace_root,
        tag=tag,
        workflow_name=workflow_name,
        options=options,
        console=console,
    )
    if isinstance(found, Err):
        return found

    run = found.value
    if run is None:
        existing = get_release(workspace_root=workspace_root, tag=tag)
        if isinstance(existing, Err):
            return existing
        if existing.value is None:
            return Err(
                ReleaseError(
                    kind="not_found",
                    message=f"no workflow run found for {tag} and no release exists",
                    hint=f"looked at the last {options.lookback} runs created within "
                    f"{options.recency_window:.0f}s",
                )
            )
        console.info(f"no run found, but release {tag} already exists")
        return Ok(
            reconcile(
                tag=tag,
                release=existing.value,
                expected=expected_assets,
                run=None,
                duration=monotonic() - started,
            )
        )

    # Phase B: wait for completion.
    console.phase(f"release {tag}: run {run.id} ({run.name})")
    waited = wait_for_run(workspace_root=workspace_root, run=run, options=options.wait, console=console)
    if isinstance(waited, Err):
        return waited

    report = waited.value
    if report.status != "success":
        return Ok(
            ReleaseReport(
                status=report.status,
                tag=tag,
                expected=expected_assets,
                run=report.run,
                duration=monotonic() - started,
                message=report.message,
            )
        )

    # Phase C: the release can lag behind the successful run.
    console.phase(f"release {tag}: verifying assets")
    visible = _await_release(workspace_root=workspace_root, tag=tag, options=options, console=console)
    if isinstance(visible, Err):
        return visible
    if visible.value is None:
        return Ok(
            ReleaseReport(
                status="timeout",
                tag=tag,
                expected=expected_assets,
                run=report.run,
                duration=monotonic() - started,
                message=f"run succeeded but release {tag} did not become visible "
                f"within {options.visibility.timeout:.0f}s",
            )
        )

    return Ok(
        reconcile(
            tag=tag,
            release=visible.value,
            expected=expected_assets,
            run=report.run,
            duration=monotonic() - started,
        )
    )
