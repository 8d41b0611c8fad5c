from __future__ import annotations

import os
from pathlib import Path

import typer

from relkit import __version__
from relkit.cli.commands._helpers import emit_error
from relkit.cli.commands.ci_cmd import wait_ci
from relkit.cli.commands.commits_cmd import commits, recommend_version
from relkit.cli.commands.coverage_cmd import coverage
from relkit.cli.commands.release_cmd import wait_release
from relkit.cli.context import CONFIG_ENV, QUIET_ENV, REPO_ENV

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Release pipeline helpers. Each command prints one JSON object on stdout.",
)


# Commands
app.command()(commits)
app.command("recommend")(recommend_version)
app.command("wait-ci")(wait_ci)
app.command("wait-release")(wait_release)
app.command()(coverage)


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    repo: Path | None = typer.Option(
        None, "--repo", help="Repository root (default: current directory)"
    ),
    config: Path | None = typer.Option(
        None, "--config", help="Config file (default: <repo>/relkit.toml)"
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress progress output on stderr."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if repo is not None:
        try:
            root = repo.expanduser().resolve()
        except OSError as e:
            emit_error(kind="validation", message=f"invalid --repo: {e}")
        if not root.is_dir():
            emit_error(kind="not_found", message=f"--repo '{root}' is not a directory")
        os.environ[REPO_ENV] = str(root)

    if config is not None:
        os.environ[CONFIG_ENV] = str(config.expanduser())

    if quiet:
        os.environ[QUIET_ENV] = "1"


def main() -> None:
    app()
