"""Read-only queries against the CI/release host through the ``gh`` CLI.

Three questions are asked of the host: "which runs happened recently",
"what is the state of run N (with its jobs)" and "what does release T
contain". Each answer is parsed into :mod:`relkit.services.model` records.

Transport failures (missing ``gh``, auth, network) come back as
``ReleaseError`` values of a transport kind. A bounded retry on transient
markers (HTTP 5xx/429, timeouts, resets) lives here and nowhere else.
"""

from __future__ import annotations

import json
import shutil
from datetime import datetime
from pathlib import Path
from time import sleep

from relkit.core.result import Err, Ok, Result
from relkit.core.structured import StrDict, as_obj_list, as_str_dict, get_int, get_list, get_str
from relkit.platform.process import ProcessError
from relkit.platform.process import run as run_process
from relkit.services.errors import ReleaseError
from relkit.services.model import Asset, Job, Release, WorkflowRun
from relkit.services.timeouts import (
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
    GH_TIMEOUT_SECONDS,
)

_RUN_FIELDS = "databaseId,name,workflowName,status,conclusion,headBranch,event,createdAt,url"

_TRANSIENT_MARKERS = (
    "timed out",
    "timeout",
    "connection reset",
    "connection refused",
    "temporarily unavailable",
    "service unavailable",
    "bad gateway",
    "gateway timeout",
    "tls handshake timeout",
    "network is unreachable",
    "http 429",
    "http 500",
    "http 502",
    "http 503",
    "http 504",
)


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    return any(marker in text for marker in _TRANSIENT_MARKERS)


def _is_not_found(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    return "release not found" in text or "http 404" in text or "could not find" in text


def _transport_error(error: ProcessError, *, message: str) -> ReleaseError:
    text = f"{error.stderr}\n{error.stdout}".lower()
    if error.missing_executable:
        return ReleaseError(
            kind="gh_missing",
            message="gh: missing",
            hint="Install GitHub CLI: https://cli.github.com/",
        )
    if "gh auth login" in text or "authentication" in text:
        return ReleaseError(kind="gh_auth_required", message="gh auth required", hint="Run: gh auth login")
    return ReleaseError(kind="transport", message=message, hint=error.detail)


def _run_gh(
    *,
    workspace_root: Path,
    cmd: list[str],
    timeout: float = GH_TIMEOUT_SECONDS,
    retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
) -> Result[str, ProcessError]:
    attempts = max(1, retry_attempts)
    result = run_process(cmd, cwd=workspace_root, timeout=timeout)
    for attempt in range(1, attempts):
        if isinstance(result, Ok) or not _is_transient_gh_error(result.error):
            break
        sleep(GH_READ_RETRY_DELAY_SECONDS * attempt)
        result = run_process(cmd, cwd=workspace_root, timeout=timeout)
    return result


def run_gh_read(
    *,
    workspace_root: Path,
    cmd: list[str],
    message: str,
) -> Result[object, ReleaseError]:
    """Run an idempotent ``gh`` read and decode its JSON output."""
    result = _run_gh(workspace_root=workspace_root, cmd=cmd)
    if isinstance(result, Err):
        return Err(_transport_error(result.error, message=message))
    return _decode(result.value, what=" ".join(cmd[:3]))


def _decode(payload: str, *, what: str) -> Result[object, ReleaseError]:
    try:
        obj: object = json.loads(payload)
    except json.JSONDecodeError as e:
        return Err(ReleaseError(kind="validation", message=f"invalid JSON from {what}: {e}"))
    return Ok(obj)


def ensure_gh_available() -> Result[None, ReleaseError]:
    if shutil.which("gh") is None:
        return Err(
            ReleaseError(
                kind="gh_missing",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp; gh reports unset times as year 1."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.year <= 1:
        return None
    return parsed


def _parse_job(d: StrDict) -> Job | None:
    name = get_str(d, "name")
    status = get_str(d, "status")
    if name is None or status is None:
        return None
    return Job(
        name=name,
        status=status.lower(),
        conclusion=(get_str(d, "conclusion") or "").lower() or None,
        started_at=parse_timestamp(get_str(d, "startedAt")),
        completed_at=parse_timestamp(get_str(d, "completedAt")),
    )


def parse_run(d: StrDict) -> WorkflowRun | None:
    run_id = get_int(d, "databaseId")
    status = get_str(d, "status")
    if run_id is None or status is None:
        return None

    jobs: list[Job] = []
    for item in get_list(d, "jobs") or []:
        job_d = as_str_dict(item)
        if job_d is None:
            continue
        job = _parse_job(job_d)
        if job is not None:
            jobs.append(job)

    return WorkflowRun(
        id=run_id,
        name=get_str(d, "workflowName") or get_str(d, "name") or "",
        status=status.lower(),
        # gh reports an empty conclusion until the run completes.
        conclusion=(get_str(d, "conclusion") or "").lower() or None,
        head_branch=get_str(d, "headBranch"),
        event=get_str(d, "event"),
        created_at=parse_timestamp(get_str(d, "createdAt")),
        url=get_str(d, "url"),
        jobs=tuple(jobs),
    )


def list_runs(
    *,
    workspace_root: Path,
    limit: int,
    workflow: str | None = None,
    branch: str | None = None,
) -> Result[list[WorkflowRun], ReleaseError]:
    """Most recent runs first, as ordered by the host."""
    cmd = ["gh", "run", "list", "--limit", str(limit), "--json", _RUN_FIELDS]
    if workflow:
        cmd.extend(["--workflow", workflow])
    if branch:
        cmd.extend(["--branch", branch])

    obj = run_gh_read(workspace_root=workspace_root, cmd=cmd, message="failed to list workflow runs")
    if isinstance(obj, Err):
        return obj

    raw = as_obj_list(obj.value)
    if raw is None:
        return Err(ReleaseError(kind="validation", message="unexpected gh run list payload"))

    runs: list[WorkflowRun] = []
    for item in raw:
        d = as_str_dict(item)
        if d is None:
            continue
        run = parse_run(d)
        if run is not None:
            runs.append(run)
    return Ok(runs)


def get_run(*, workspace_root: Path, run_id: int) -> Result[WorkflowRun, ReleaseError]:
    cmd = ["gh", "run", "view", str(run_id), "--json", f"{_RUN_FIELDS},jobs"]
    obj = run_gh_read(
        workspace_root=workspace_root, cmd=cmd, message=f"failed to query workflow run {run_id}"
    )
    if isinstance(obj, Err):
        return obj

    d = as_str_dict(obj.value)
    run = parse_run(d) if d is not None else None
    if run is None:
        return Err(
            ReleaseError(kind="validation", message=f"unexpected gh run view payload: {run_id}")
        )
    return Ok(run)


def get_release(*, workspace_root: Path, tag: str) -> Result[Release | None, ReleaseError]:
    """Release for ``tag``, or None while the host does not expose it yet."""
    cmd = ["gh", "release", "view", tag, "--json", "tagName,url,assets"]
    result = _run_gh(workspace_root=workspace_root, cmd=cmd)
    if isinstance(result, Err):
        if _is_not_found(result.error):
            return Ok(None)
        return Err(_transport_error(result.error, message=f"failed to query release {tag}"))

    obj = _decode(result.value, what="gh release view")
    if isinstance(obj, Err):
        return obj

    d = as_str_dict(obj.value)
    if d is None:
        return Err(ReleaseError(kind="validation", message=f"unexpected release payload: {tag}"))

    assets: list[Asset] = []
    for item in get_list(d, "assets") or []:
        asset_d = as_str_dict(item)
        if asset_d is None:
            continue
        name = get_str(asset_d, "name")
        if name is not None:
            assets.append(Asset(name=name))

    return Ok(Release(tag=get_str(d, "tagName") or tag, assets=tuple(assets), url=get_str(d, "url")))
