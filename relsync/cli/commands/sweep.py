"""Sweep command - retention for unstable releases."""

from __future__ import annotations

import typer

from relsync.cli.commands._helpers import exit_on_error
from relsync.cli.context import build_context
from relsync.core.errors import ErrorCode
from relsync.core.result import Err, Ok
from relsync.release.age import parse_age
from relsync.release.model import Stability


def sweep(
    stability: Stability = typer.Argument(..., help="preview or snapshot"),
    age: str = typer.Argument(..., help="Age threshold, e.g. '2 weeks', '30d', '1 month'"),
) -> None:
    """Delete releases older than AGE, keeping the latest one of the tier."""
    threshold = parse_age(age)
    if isinstance(threshold, Err):
        typer.echo(f"error: {threshold.error}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    ctx = build_context()
    result = ctx.engine.sweep_old_releases(stability, threshold.value)
    exit_on_error(result, ctx)
    if isinstance(result, Ok):
        ctx.console.success(f"{result.value} {stability.value} releases deleted")
