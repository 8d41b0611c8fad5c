from __future__ import annotations

import typer

from relkit.cli.commands._helpers import emit_json, exit_on_error, exit_with_code
from relkit.cli.context import build_context
from relkit.core.errors import ExitCode
from relkit.services.ci_monitor import WaitOptions
from relkit.services.gh import ensure_gh_available
from relkit.services.release_monitor import ReleaseWaitOptions, wait_for_release
from relkit.services.semver import parse_version
from relkit.services.timeouts import CI_POLL_INTERVAL_SECONDS, RELEASE_WAIT_TIMEOUT_SECONDS


def wait_release(
    tag: str = typer.Option(..., "--tag", help="Release tag to follow (e.g. v1.4.0)"),
    timeout: float = typer.Option(
        RELEASE_WAIT_TIMEOUT_SECONDS,
        "--timeout",
        min=1,
        help="Give up waiting for the workflow after this many seconds",
    ),
    interval: float = typer.Option(
        CI_POLL_INTERVAL_SECONDS, "--interval", min=1, help="Initial poll interval in seconds"
    ),
    workflow: str | None = typer.Option(
        None, "--workflow", help="Release workflow name (default from relkit.toml)"
    ),
) -> None:
    """Wait for the tag-triggered release workflow and verify published assets."""
    ctx = build_context()
    if parse_version(tag) is None:
        ctx.console.warning(f"{tag} is not a semantic version tag; matching it verbatim")
    exit_on_error(ensure_gh_available())

    expected = ctx.config.release.expected_assets
    report = exit_on_error(
        wait_for_release(
            workspace_root=ctx.root,
            tag=tag,
            expected_assets=expected,
            workflow_name=workflow or ctx.config.ci.release_workflow,
            options=ReleaseWaitOptions(wait=WaitOptions(timeout=timeout, interval=interval)),
            console=ctx.console,
        )
    )

    match report.status:
        case "success":
            ctx.console.success(f"release {tag}: all {len(expected)} expected assets published")
        case "incomplete":
            ctx.console.warning(f"release {tag}: missing {', '.join(report.missing)}")
        case _:
            ctx.console.error(report.message or f"release {tag}: {report.status}")

    emit_json(report.to_dict())
    if report.status != "success":
        exit_with_code(ExitCode.FAILURE)
