from __future__ import annotations

import typer

from relkit.cli.commands._helpers import emit_json, exit_on_error
from relkit.cli.context import build_context
from relkit.git.repository import Repository
from relkit.services.commits import latest_tag, list_commits, resolve_since, summarize
from relkit.services.semver import recommend


def commits(
    since: str | None = typer.Option(
        None, "--since", help="Tag or commit to start after (default: latest tag)"
    ),
) -> None:
    """Classify commits since the last tag."""
    ctx = build_context()
    repo = Repository(ctx.root)

    boundary = exit_on_error(resolve_since(repo, since))
    commit_range = exit_on_error(list_commits(repo, boundary))
    ctx.console.print(f"{len(commit_range.commits)} commits since {boundary}")
    emit_json(commit_range.to_dict())


def recommend_version(
    since: str | None = typer.Option(
        None, "--since", help="Tag to compare against (default: latest tag)"
    ),
    current: str | None = typer.Option(
        None, "--current", help="Current version (default: the --since tag)"
    ),
) -> None:
    """Recommend the next semantic version from commits since the last tag."""
    ctx = build_context()
    repo = Repository(ctx.root)

    boundary = since or exit_on_error(latest_tag(repo))
    if boundary is None and current is None:
        ctx.console.info("no previous version found; recommending the first release")

    commit_range = exit_on_error(list_commits(repo, boundary))
    summary = summarize(commit_range.commits)
    recommendation = exit_on_error(recommend(summary, current or boundary))

    emit_json(
        {
            **recommendation.to_dict(),
            "lastTag": boundary,
            "summary": summary.to_dict(),
        }
    )
