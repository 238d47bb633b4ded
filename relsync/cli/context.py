from __future__ import annotations

from dataclasses import dataclass

import typer

from relsync.core.config import Config, load_config, resolve_config_path
from relsync.core.errors import ErrorCode
from relsync.core.result import Err
from relsync.output.console import ConsoleProtocol, RichConsole, Style
from relsync.services.lifecycle import ReleaseLifecycleEngine, create_engine


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: Config
    console: ConsoleProtocol
    engine: ReleaseLifecycleEngine


def build_context() -> CLIContext:
    """Load config and wire the engine, exiting on any configuration problem."""
    console = RichConsole()
    config_path = resolve_config_path(None)

    config_result = load_config(config_path)
    if isinstance(config_result, Err):
        e = config_result.error
        console.error(e.message)
        if e.hint:
            console.print(f"hint: {e.hint}", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
    config = config_result.value

    engine_result = create_engine(config, console=console)
    if isinstance(engine_result, Err):
        e = engine_result.error
        console.error(e.message)
        if e.hint:
            console.print(f"hint: {e.hint}", Style.DIM)
        raise typer.Exit(code=int(e.exit_code))

    return CLIContext(config=config, console=console, engine=engine_result.value)
