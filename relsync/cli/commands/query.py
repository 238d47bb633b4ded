"""Read-only commands backing the download service."""

from __future__ import annotations

import json

import typer

from relsync.cli.context import build_context
from relsync.core.errors import ErrorCode


def versions() -> None:
    """Print the latest version of every tier as JSON."""
    ctx = build_context()
    payload = {
        stability.value: latest.as_dict()
        for stability, latest in ctx.engine.latest_versions().items()
    }
    typer.echo(json.dumps(payload, indent=2))


def url(
    version: str = typer.Argument(..., help="A version, or stable/preview/snapshot for the latest"),
    file: str = typer.Argument(..., help="File name, e.g. svn-buddy.phar or svn-buddy.phar.sig"),
) -> None:
    """Print the download URL of FILE for VERSION."""
    ctx = build_context()
    download_url = ctx.engine.resolve_download_url(version, file)
    if not download_url:
        ctx.console.error(f"no download for {version}/{file}")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))
    typer.echo(download_url)
