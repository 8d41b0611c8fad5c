"""Shared helpers for CLI commands.

Every command ends by printing exactly one JSON object on stdout and exiting
with a code from :class:`ExitCode`.
"""

from __future__ import annotations

import json
from typing import NoReturn, TypeVar

import typer

from relkit.core.errors import ExitCode
from relkit.core.result import Err, Result
from relkit.services.errors import ReleaseError

T = TypeVar("T")


def emit_json(payload: dict[str, object]) -> None:
    typer.echo(json.dumps(payload, indent=2))


def exit_with_code(code: ExitCode) -> NoReturn:
    raise typer.Exit(code=int(code))


def emit_error(*, kind: str, message: str, hint: str | None = None) -> NoReturn:
    """Print the ``status: error`` document and exit 1."""
    emit_json({"status": "error", "error": {"kind": kind, "message": message, "hint": hint}})
    exit_with_code(ExitCode.FAILURE)


def exit_on_error(result: Result[T, ReleaseError]) -> T:
    """Return the Ok value, or emit the error document and exit.

    Replaces the common pattern:
        if isinstance(result, Err):
            emit_json({"status": "error", ...})
            raise typer.Exit(code=1)
        value = result.value
    """
    if isinstance(result, Err):
        error = result.error
        emit_error(kind=error.kind, message=error.message, hint=error.hint)
    return result.value
