"""Create command - build and publish a preview or snapshot release."""

from __future__ import annotations

import typer

from relsync.cli.commands._helpers import exit_on_error
from relsync.cli.context import build_context
from relsync.core.result import Ok
from relsync.release.model import Stability


def create(
    stability: Stability = typer.Argument(
        ...,
        help="preview (last commit of this week) or snapshot (last commit of last week)",
    ),
) -> None:
    """Create an unstable release from the repository history."""
    ctx = build_context()
    result = ctx.engine.create_unstable_release(stability)
    exit_on_error(result, ctx)
    if isinstance(result, Ok):
        outcome = result.value
        if outcome.created:
            ctx.console.success(f"{outcome.version} published")
        else:
            ctx.console.info(f"{outcome.version} already published")
