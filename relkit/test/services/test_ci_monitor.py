from __future__ import annotations

from pathlib import Path

import pytest

from relkit.core.result import Err, Ok, Result
from relkit.output.console import MockConsole
from relkit.services import ci_monitor
from relkit.services.ci_monitor import WaitOptions, wait_for_ci
from relkit.services.errors import ReleaseError
from relkit.services.model import Job, WorkflowRun
from relkit.test.conftest import FakeClock


def _run(status: str, conclusion: str | None = None, jobs: tuple[Job, ...] = ()) -> WorkflowRun:
    return WorkflowRun(id=7, name="CI", status=status, conclusion=conclusion, head_branch="main", jobs=jobs)


def _install(
    monkeypatch: pytest.MonkeyPatch,
    *,
    listed: list[WorkflowRun],
    states: list[WorkflowRun],
) -> list[int]:
    views: list[int] = []

    def fake_list_runs(*, workspace_root: Path, limit: int, workflow: str | None = None, branch: str | None = None):
        del workspace_root, limit, workflow, branch
        return Ok(listed)

    def fake_get_run(*, workspace_root: Path, run_id: int) -> Result[WorkflowRun, ReleaseError]:
        del workspace_root
        views.append(run_id)
        return Ok(states[min(len(views), len(states)) - 1])

    monkeypatch.setattr(ci_monitor, "list_runs", fake_list_runs)
    monkeypatch.setattr(ci_monitor, "get_run", fake_get_run)
    return views


def test_waits_until_run_completes(
    monkeypatch: pytest.MonkeyPatch, fake_clock: FakeClock, tmp_path: Path
) -> None:
    done = _run("completed", "success", (Job("build", "completed", "success"),))
    views = _install(
        monkeypatch,
        listed=[_run("in_progress")],
        states=[_run("queued"), _run("in_progress"), done],
    )
    console = MockConsole()

    result = wait_for_ci(
        workspace_root=tmp_path,
        options=WaitOptions(timeout=300, interval=30, max_interval=60, backoff=1.5),
        console=console,
    )

    assert isinstance(result, Ok)
    report = result.value
    assert report.status == "success"
    assert len(views) == 3
    assert fake_clock.sleeps == [30, 45]
    payload = report.to_dict()
    assert payload["runId"] == 7
    assert payload["jobs"] == [{"name": "build", "status": "completed", "conclusion": "success", "duration": None}]
    assert "failedJobs" not in payload
    assert console.find("run 7")
    assert console.ticks == 2


def test_failed_run_lists_failed_jobs(
    monkeypatch: pytest.MonkeyPatch, fake_clock: FakeClock, tmp_path: Path
) -> None:
    jobs = (
        Job("lint", "completed", "success"),
        Job("test", "completed", "failure"),
        Job("e2e", "completed", "cancelled"),
        Job("docs", "completed", "skipped"),
    )
    _install(monkeypatch, listed=[_run("in_progress")], states=[_run("completed", "failure", jobs)])

    result = wait_for_ci(workspace_root=tmp_path, options=WaitOptions(), console=MockConsole())

    assert isinstance(result, Ok)
    assert result.value.status == "failure"
    assert result.value.to_dict()["failedJobs"] == ["test", "e2e"]
    assert fake_clock.sleeps == []


def test_already_completed_run_is_read_once(
    monkeypatch: pytest.MonkeyPatch, fake_clock: FakeClock, tmp_path: Path
) -> None:
    views = _install(
        monkeypatch,
        listed=[_run("completed", "success")],
        states=[_run("completed", "success", (Job("build", "completed", "success"),))],
    )

    result = wait_for_ci(workspace_root=tmp_path, options=WaitOptions(), console=MockConsole())

    assert isinstance(result, Ok)
    assert result.value.status == "success"
    assert len(result.value.run.jobs) == 1
    assert views == [7]
    assert fake_clock.sleeps == []


def test_deadline_reports_timeout_with_last_state(
    monkeypatch: pytest.MonkeyPatch, fake_clock: FakeClock, tmp_path: Path
) -> None:
    _install(monkeypatch, listed=[_run("queued")], states=[_run("in_progress")])

    result = wait_for_ci(
        workspace_root=tmp_path,
        options=WaitOptions(timeout=100, interval=30, max_interval=60, backoff=1.5),
        console=MockConsole(),
    )

    assert isinstance(result, Ok)
    report = result.value
    assert report.status == "timeout"
    assert report.run.status == "in_progress"
    assert report.message is not None
    assert fake_clock.now <= 100


def test_no_runs_is_not_found(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _install(monkeypatch, listed=[], states=[])

    result = wait_for_ci(
        workspace_root=tmp_path, options=WaitOptions(), console=MockConsole(), workflow="CI", branch="main"
    )

    assert isinstance(result, Err)
    assert result.error.kind == "not_found"
    assert result.error.hint == "workflow=CI branch=main"


def test_transport_error_while_polling_is_propagated(
    monkeypatch: pytest.MonkeyPatch, fake_clock: FakeClock, tmp_path: Path
) -> None:
    _install(monkeypatch, listed=[_run("queued")], states=[])

    def broken(*, workspace_root: Path, run_id: int):
        del workspace_root, run_id
        return Err(ReleaseError(kind="transport", message="failed to query workflow run 7"))

    monkeypatch.setattr(ci_monitor, "get_run", broken)

    result = wait_for_ci(workspace_root=tmp_path, options=WaitOptions(), console=MockConsole())

    assert isinstance(result, Err)
    assert result.error.kind == "transport"
    assert fake_clock.sleeps == []


def test_wait_options_raise_cap_for_long_intervals() -> None:
    options = WaitOptions(timeout=600, interval=90, max_interval=60).poll_options()
    assert options.cap == 90
