"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

import typer

from relsync.core.errors import ErrorCode
from relsync.core.result import Err, Result
from relsync.output.console import Style

if TYPE_CHECKING:
    from relsync.cli.context import CLIContext


T = TypeVar("T")
E = TypeVar("E")


def exit_on_error[T, E](
    result: Result[T, E],
    ctx: CLIContext,
    error_code: ErrorCode = ErrorCode.BUILD_ERROR,
) -> None:
    """Print the error and exit when ``result`` is Err, otherwise return.

    Errors with an ``exit_code`` (ReleaseError) choose their own code;
    ``error_code`` is the fallback. ``message`` and ``hint`` are printed
    when present.
    """
    if isinstance(result, Err):
        error = result.error
        message: str = getattr(error, "message", str(error))
        hint: str | None = getattr(error, "hint", None)
        code = getattr(error, "exit_code", error_code)
        ctx.console.error(message)
        if hint:
            ctx.console.print(f"hint: {hint}", Style.DIM)
        raise typer.Exit(code=int(code))
