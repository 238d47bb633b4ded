"""Sync command - mirror upstream releases into the stable tier."""

from __future__ import annotations

from relsync.cli.commands._helpers import exit_on_error
from relsync.cli.context import build_context


def sync() -> None:
    """Update stable release information from GitHub."""
    ctx = build_context()
    exit_on_error(ctx.engine.sync_stable_releases(), ctx)
    ctx.console.success("Releases synchronized with GitHub.")
