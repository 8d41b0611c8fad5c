from __future__ import annotations

import typer

from relkit.cli.commands._helpers import emit_json, exit_on_error, exit_with_code
from relkit.cli.context import build_context
from relkit.core.errors import ExitCode
from relkit.output.console import Style
from relkit.services.ci_monitor import WaitOptions, wait_for_ci
from relkit.services.gh import ensure_gh_available
from relkit.services.timeouts import CI_POLL_INTERVAL_SECONDS, CI_WAIT_TIMEOUT_SECONDS


def wait_ci(
    timeout: float = typer.Option(
        CI_WAIT_TIMEOUT_SECONDS, "--timeout", min=1, help="Give up after this many seconds"
    ),
    interval: float = typer.Option(
        CI_POLL_INTERVAL_SECONDS, "--interval", min=1, help="Initial poll interval in seconds"
    ),
    workflow: str | None = typer.Option(
        None, "--workflow", help="Only consider runs of this workflow (name or file)"
    ),
    branch: str | None = typer.Option(None, "--branch", help="Only consider runs on this branch"),
) -> None:
    """Wait for the most recent CI run to finish and report its jobs."""
    ctx = build_context()
    exit_on_error(ensure_gh_available())

    report = exit_on_error(
        wait_for_ci(
            workspace_root=ctx.root,
            options=WaitOptions(timeout=timeout, interval=interval),
            console=ctx.console,
            workflow=workflow or ctx.config.ci.workflow,
            branch=branch or ctx.config.ci.branch,
        )
    )

    match report.status:
        case "success":
            ctx.console.success(f"run {report.run.id} succeeded")
        case "timeout":
            ctx.console.warning(report.message or "timed out")
        case _:
            ctx.console.error(f"run {report.run.id} concluded {report.run.conclusion}")
            for job in report.run.failed_jobs:
                ctx.console.print(f"  failed: {job.name}", Style.DIM)

    emit_json(report.to_dict())
    if report.status != "success":
        exit_with_code(ExitCode.FAILURE)
