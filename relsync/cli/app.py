from __future__ import annotations

import os
from pathlib import Path

import typer

from relsync import __version__
from relsync.cli.commands.create import create
from relsync.cli.commands.query import url, versions
from relsync.cli.commands.sweep import sweep
from relsync.cli.commands.sync import sync
from relsync.core.config import CONFIG_ENV_VAR
from relsync.core.errors import ErrorCode


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    invoke_without_command=True,
    rich_markup_mode="rich",
)


app.command()(sync)
app.command()(create)
app.command()(sweep)
app.command()(versions)
app.command()(url)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    config: Path | None = typer.Option(
        None,
        "--config",
        help=f"Path to relsync.toml (default: ${CONFIG_ENV_VAR} or ./relsync.toml)",
    ),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if config is not None:
        path = config.expanduser().resolve()
        if not path.is_file():
            typer.echo(f"error: --config '{path}' does not exist", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        os.environ[CONFIG_ENV_VAR] = str(path)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


def main() -> None:
    app()
