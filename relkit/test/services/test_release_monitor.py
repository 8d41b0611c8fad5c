from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from relkit.core.config import DEFAULT_EXPECTED_ASSETS
from relkit.core.result import Err, Ok
from relkit.output.console import MockConsole
from relkit.services import ci_monitor, release_monitor
from relkit.services.errors import ReleaseError
from relkit.services.model import Asset, Job, Release, WorkflowRun
from relkit.services.release_monitor import (
    ReleaseWaitOptions,
    find_tag_run,
    missing_assets,
    wait_for_release,
)
from relkit.test.conftest import FakeClock

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)
TAG = "v1.4.0"


def _run(
    *,
    status: str = "completed",
    conclusion: str | None = "success",
    head_branch: str | None = TAG,
    name: str = "Release",
    age: float = 30,
    jobs: tuple[Job, ...] = (),
) -> WorkflowRun:
    return WorkflowRun(
        id=99,
        name=name,
        status=status,
        conclusion=conclusion,
        head_branch=head_branch,
        created_at=NOW - timedelta(seconds=age),
        jobs=jobs,
    )


def _release(*names: str) -> Release:
    return Release(tag=TAG, assets=tuple(Asset(n) for n in names), url="https://example.invalid/r")


class FakeHost:
    def __init__(
        self,
        *,
        runs: list[list[WorkflowRun]],
        run_states: list[WorkflowRun] | None = None,
        releases: list[Release | None] | None = None,
    ) -> None:
        self.runs = runs
        self.run_states = run_states or []
        self.releases = releases or [None]
        self.list_calls = 0
        self.view_calls = 0
        self.release_calls = 0

    def list_runs(self, *, workspace_root: Path, limit: int, workflow: str | None = None, branch: str | None = None):
        del workspace_root, limit, workflow, branch
        self.list_calls += 1
        return Ok(self.runs[min(self.list_calls, len(self.runs)) - 1])

    def get_run(self, *, workspace_root: Path, run_id: int):
        del workspace_root, run_id
        self.view_calls += 1
        return Ok(self.run_states[min(self.view_calls, len(self.run_states)) - 1])

    def get_release(self, *, workspace_root: Path, tag: str):
        del workspace_root, tag
        self.release_calls += 1
        return Ok(self.releases[min(self.release_calls, len(self.releases)) - 1])


@pytest.fixture
def host(monkeypatch: pytest.MonkeyPatch, fake_clock: FakeClock):
    monkeypatch.setattr(release_monitor, "_utcnow", lambda: NOW)
    monkeypatch.setattr(release_monitor, "monotonic", fake_clock.monotonic)

    def install(fake: FakeHost) -> FakeHost:
        monkeypatch.setattr(release_monitor, "list_runs", fake.list_runs)
        monkeypatch.setattr(release_monitor, "get_release", fake.get_release)
        monkeypatch.setattr(ci_monitor, "get_run", fake.get_run)
        return fake

    return install


def _wait(
    tmp_path: Path,
    expected: tuple[str, ...] = DEFAULT_EXPECTED_ASSETS,
    console: MockConsole | None = None,
):
    return wait_for_release(
        workspace_root=tmp_path,
        tag=TAG,
        expected_assets=expected,
        workflow_name="Release",
        options=ReleaseWaitOptions(),
        console=console if console is not None else MockConsole(),
    )


def test_successful_run_with_empty_release_is_incomplete(host, tmp_path: Path) -> None:
    host(FakeHost(runs=[[_run()]], run_states=[_run()], releases=[_release()]))

    result = _wait(tmp_path)

    assert isinstance(result, Ok)
    report = result.value
    assert report.status == "incomplete"
    assert report.missing == DEFAULT_EXPECTED_ASSETS
    payload = report.to_dict()
    assert payload["assets"] == []
    assert payload["missing"] == list(DEFAULT_EXPECTED_ASSETS)
    assert payload["message"] == f"{len(DEFAULT_EXPECTED_ASSETS)} of {len(DEFAULT_EXPECTED_ASSETS)} expected assets missing"


def test_full_pipeline_success(host, fake_clock: FakeClock, tmp_path: Path) -> None:
    console = MockConsole()
    names = [f"tool_1.4.0_{a}.tar.gz" for a in DEFAULT_EXPECTED_ASSETS[:-1]] + ["checksums.txt"]
    fake = host(
        FakeHost(
            runs=[[], [_run(status="in_progress", conclusion=None)]],
            run_states=[_run(status="in_progress", conclusion=None), _run()],
            releases=[None, _release(*names)],
        )
    )

    result = _wait(tmp_path, console=console)

    assert isinstance(result, Ok)
    report = result.value
    assert report.status == "success"
    assert len(console.phases) == 3
    assert console.ticks == 3
    assert report.missing == ()
    assert fake.list_calls == 2
    assert fake.release_calls == 2
    assert report.to_dict()["duration"] == round(fake_clock.now)


def test_failed_run_stops_before_asset_check(host, tmp_path: Path) -> None:
    jobs = (Job("build (linux)", "completed", "success"), Job("build (windows)", "completed", "failure"))
    failed = _run(conclusion="failure", jobs=jobs)
    fake = host(FakeHost(runs=[[failed]], run_states=[failed]))

    result = _wait(tmp_path)

    assert isinstance(result, Ok)
    payload = result.value.to_dict()
    assert payload["status"] == "failure"
    assert payload["failedJobs"] == ["build (windows)"]
    assert "missing" not in payload
    assert fake.release_calls == 0


def test_no_run_falls_back_to_existing_release(host, tmp_path: Path) -> None:
    fake = host(FakeHost(runs=[[]], releases=[_release("checksums.txt", "x_linux-amd64.zip")]))

    result = _wait(tmp_path, expected=("linux-amd64", "checksums.txt"))

    assert isinstance(result, Ok)
    assert result.value.status == "success"
    assert result.value.run is None
    assert fake.view_calls == 0


def test_no_run_and_no_release_is_not_found(host, fake_clock: FakeClock, tmp_path: Path) -> None:
    host(FakeHost(runs=[[_run(age=3600)]], releases=[None]))

    result = _wait(tmp_path)

    assert isinstance(result, Err)
    assert result.error.kind == "not_found"
    assert fake_clock.now <= ReleaseWaitOptions().discovery.timeout


def test_release_never_visible_is_timeout(host, tmp_path: Path) -> None:
    host(FakeHost(runs=[[_run()]], run_states=[_run()], releases=[None]))

    result = _wait(tmp_path)

    assert isinstance(result, Ok)
    assert result.value.status == "timeout"
    assert "did not become visible" in (result.value.message or "")


def test_transport_error_during_discovery_is_propagated(
    host, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    host(FakeHost(runs=[[]]))

    def broken(*, workspace_root: Path, limit: int, workflow: str | None = None, branch: str | None = None):
        del workspace_root, limit, workflow, branch
        return Err(ReleaseError(kind="gh_auth_required", message="gh auth required"))

    monkeypatch.setattr(release_monitor, "list_runs", broken)

    result = _wait(tmp_path)

    assert isinstance(result, Err)
    assert result.error.kind == "gh_auth_required"


def test_find_tag_run_prefers_exact_ref_and_respects_window() -> None:
    by_name = _run(head_branch="main", age=10)
    by_ref = _run(head_branch=TAG, name="Build", age=60)
    stale = _run(head_branch=TAG, age=1000)

    found = find_tag_run([by_name, by_ref], tag=TAG, workflow_name="Release", now=NOW, window=300)
    assert found is by_ref

    assert find_tag_run([by_name], tag=TAG, workflow_name="Release", now=NOW, window=300) is by_name
    assert find_tag_run([stale], tag=TAG, workflow_name="Release", now=NOW, window=300) is None
    assert find_tag_run([_run(head_branch="main", name="CI")], tag=TAG, workflow_name="Release", now=NOW, window=300) is None


@pytest.mark.parametrize(
    ("expected", "actual", "missing"),
    [
        (("linux-amd64", "checksums.txt"), ["tool_linux-amd64.tgz", "checksums.txt"], ()),
        (("linux-amd64", "linux-arm64"), ["tool_linux-amd64.tgz"], ("linux-arm64",)),
        (("checksums.txt",), [], ("checksums.txt",)),
        ((), ["anything"], ()),
    ],
)
def test_missing_assets(expected: tuple[str, ...], actual: list[str], missing: tuple[str, ...]) -> None:
    assert missing_assets(expected, actual) == missing


def test_missing_assets_shrinks_as_assets_appear() -> None:
    expected = DEFAULT_EXPECTED_ASSETS
    smaller = ["x_darwin-amd64.tgz"]
    larger = [*smaller, "x_linux-amd64.tgz", "checksums.txt"]
    assert set(missing_assets(expected, larger)) <= set(missing_assets(expected, smaller))
