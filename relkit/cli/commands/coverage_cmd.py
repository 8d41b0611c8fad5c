from __future__ import annotations

from pathlib import Path

import typer

from relkit.cli.commands._helpers import emit_json, exit_on_error, exit_with_code
from relkit.cli.context import build_context
from relkit.core.errors import ExitCode
from relkit.services.coverage.gate import run_coverage_gate


def coverage(
    since: str | None = typer.Option(
        None, "--since", help="Tag to diff against (default: latest tag)"
    ),
    threshold: float | None = typer.Option(
        None, "--threshold", min=0, max=100, help="Minimum patch coverage percent (default: 80)"
    ),
    profile: Path | None = typer.Option(
        None, "--profile", help="Coverage profile (default: coverage.out)"
    ),
) -> None:
    """Measure coverage of lines added since a tag and classify the gaps."""
    ctx = build_context()
    cfg = ctx.config.coverage
    profile_path = profile if profile is not None else Path(cfg.profile)
    if not profile_path.is_absolute():
        profile_path = ctx.root / profile_path

    report = exit_on_error(
        run_coverage_gate(
            repo_root=ctx.root,
            since=since,
            profile_path=profile_path,
            threshold=cfg.threshold if threshold is None else threshold,
            cfg=cfg,
        )
    )

    summary = (
        f"patch coverage {report.patch_coverage}% "
        f"({report.covered_lines}/{report.total_lines} lines, threshold {report.threshold}%)"
    )
    if report.passed:
        ctx.console.success(summary)
    else:
        ctx.console.warning(summary)
        ctx.console.print(
            f"{len(report.addressable_gaps)} addressable, "
            f"{len(report.non_addressable_gaps)} non-addressable gaps"
        )

    emit_json(report.to_dict())
    if not report.passed:
        exit_with_code(ExitCode.THRESHOLD)
