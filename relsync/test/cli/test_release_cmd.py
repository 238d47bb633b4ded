from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from relsync.cli.app import app
from relsync.cli.context import CLIContext, build_context
from relsync.core.config import CONFIG_ENV_VAR, Config
from relsync.core.errors import ErrorCode
from relsync.core.result import Err, Ok, Result
from relsync.output.console import MockConsole
from relsync.release.errors import ReleaseError
from relsync.release.model import CommitRef, CreateOutcome, LatestVersion, Stability


class FakeEngine:
    def __init__(self) -> None:
        self.sync_result: Result[int, ReleaseError] = Ok(3)
        self.create_result: Result[CreateOutcome, ReleaseError] = Ok(
            CreateOutcome(
                version="snapshot:v1.0-1-gabc",
                commit=CommitRef("abc", 1),
                created=True,
            )
        )
        self.sweep_result: Result[int, ReleaseError] = Ok(2)
        self.sweeps: list[tuple[Stability, timedelta]] = []

    def sync_stable_releases(self) -> Result[int, ReleaseError]:
        return self.sync_result

    def create_unstable_release(self, stability: Stability) -> Result[CreateOutcome, ReleaseError]:
        if stability is Stability.stable:
            return Err(ReleaseError(kind="invalid_stability", message='cannot create "stable" releases'))
        return self.create_result

    def sweep_old_releases(self, stability: Stability, age: timedelta) -> Result[int, ReleaseError]:
        self.sweeps.append((stability, age))
        return self.sweep_result

    def latest_versions(self) -> dict[Stability, LatestVersion]:
        return {Stability.stable: LatestVersion("v2.1", "/download/v2.1/svn-buddy.phar", 50300)}

    def resolve_download_url(self, version_or_stability: str, file_name: str) -> str:
        if (version_or_stability, file_name) == ("stable", "svn-buddy.phar"):
            return "https://gh/v2.1/svn-buddy.phar"
        return ""


def _ctx(engine: FakeEngine) -> CLIContext:
    return CLIContext(
        config=Config(),
        console=MockConsole(),
        engine=engine,  # pyright: ignore[reportArgumentType]
    )


def _patch(monkeypatch: pytest.MonkeyPatch, module: object, ctx: CLIContext) -> None:
    monkeypatch.setattr(module, "build_context", lambda: ctx)


def _messages(ctx: CLIContext) -> list[str]:
    assert isinstance(ctx.console, MockConsole)
    return ctx.console.messages


class TestSync:
    def test_success(self, monkeypatch: pytest.MonkeyPatch) -> None:
        import relsync.cli.commands.sync as sync_cmd

        ctx = _ctx(FakeEngine())
        _patch(monkeypatch, sync_cmd, ctx)
        sync_cmd.sync()
        assert "OK Releases synchronized with GitHub." in _messages(ctx)

    def test_failure_exits_with_network_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        import relsync.cli.commands.sync as sync_cmd

        engine = FakeEngine()
        engine.sync_result = Err(ReleaseError(kind="gh_failed", message="gh api failed", hint="HTTP 502"))
        ctx = _ctx(engine)
        _patch(monkeypatch, sync_cmd, ctx)

        with pytest.raises(typer.Exit) as exc:
            sync_cmd.sync()

        assert exc.value.exit_code == int(ErrorCode.NETWORK_ERROR)
        assert "error: gh api failed" in _messages(ctx)
        assert "hint: HTTP 502" in _messages(ctx)


class TestCreate:
    def test_created(self, monkeypatch: pytest.MonkeyPatch) -> None:
        import relsync.cli.commands.create as create_cmd

        ctx = _ctx(FakeEngine())
        _patch(monkeypatch, create_cmd, ctx)
        create_cmd.create(Stability.snapshot)
        assert "OK snapshot:v1.0-1-gabc published" in _messages(ctx)

    def test_already_published(self, monkeypatch: pytest.MonkeyPatch) -> None:
        import relsync.cli.commands.create as create_cmd

        engine = FakeEngine()
        engine.create_result = Ok(
            CreateOutcome(version="preview:v1", commit=CommitRef("abc", 1), created=False)
        )
        ctx = _ctx(engine)
        _patch(monkeypatch, create_cmd, ctx)
        create_cmd.create(Stability.preview)
        assert "info: preview:v1 already published" in _messages(ctx)

    def test_stable_is_user_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        import relsync.cli.commands.create as create_cmd

        ctx = _ctx(FakeEngine())
        _patch(monkeypatch, create_cmd, ctx)
        with pytest.raises(typer.Exit) as exc:
            create_cmd.create(Stability.stable)
        assert exc.value.exit_code == int(ErrorCode.USER_ERROR)


class TestSweep:
    def test_parses_age(self, monkeypatch: pytest.MonkeyPatch) -> None:
        import relsync.cli.commands.sweep as sweep_cmd

        engine = FakeEngine()
        ctx = _ctx(engine)
        _patch(monkeypatch, sweep_cmd, ctx)

        sweep_cmd.sweep(Stability.snapshot, "2 weeks")

        assert engine.sweeps == [(Stability.snapshot, timedelta(weeks=2))]
        assert "OK 2 snapshot releases deleted" in _messages(ctx)

    def test_invalid_age(self, monkeypatch: pytest.MonkeyPatch) -> None:
        import relsync.cli.commands.sweep as sweep_cmd

        def _unexpected() -> CLIContext:
            raise AssertionError("context must not be built for a bad age")

        monkeypatch.setattr(sweep_cmd, "build_context", _unexpected)
        with pytest.raises(typer.Exit) as exc:
            sweep_cmd.sweep(Stability.snapshot, "soon")
        assert exc.value.exit_code == int(ErrorCode.USER_ERROR)


class TestQueries:
    def test_versions_json(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        import relsync.cli.commands.query as query_cmd

        _patch(monkeypatch, query_cmd, _ctx(FakeEngine()))
        query_cmd.versions()

        assert json.loads(capsys.readouterr().out) == {
            "stable": {
                "path": "/download/v2.1/svn-buddy.phar",
                "version": "v2.1",
                "min-platform": 50300,
            }
        }

    def test_url(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
        import relsync.cli.commands.query as query_cmd

        _patch(monkeypatch, query_cmd, _ctx(FakeEngine()))
        query_cmd.url("stable", "svn-buddy.phar")
        assert capsys.readouterr().out.strip() == "https://gh/v2.1/svn-buddy.phar"

    def test_url_unknown(self, monkeypatch: pytest.MonkeyPatch) -> None:
        import relsync.cli.commands.query as query_cmd

        ctx = _ctx(FakeEngine())
        _patch(monkeypatch, query_cmd, ctx)
        with pytest.raises(typer.Exit) as exc:
            query_cmd.url("v0.1", "svn-buddy.phar")
        assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
        assert "error: no download for v0.1/svn-buddy.phar" in _messages(ctx)


class TestApp:
    def test_version(self) -> None:
        result = CliRunner().invoke(app, ["--version"])
        assert result.exit_code == 0

    def test_missing_config_flag(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(app, ["--config", str(tmp_path / "nope.toml"), "versions"])
        assert result.exit_code == int(ErrorCode.USER_ERROR)

    def test_build_context_without_config(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "relsync.toml"))
        with pytest.raises(typer.Exit) as exc:
            build_context()
        assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)
