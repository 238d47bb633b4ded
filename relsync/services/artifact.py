"""Build the distributable for one commit by shelling out to the project's own tooling."""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Protocol

from relsync.core.config import ArtifactConfig
from relsync.core.result import Err, Ok, Result
from relsync.git.repository import Repository
from relsync.output.console import ConsoleProtocol, Style
from relsync.platform.process import run as run_process
from relsync.release.errors import ReleaseError
from relsync.release.model import BuiltArtifact, Stability
from relsync.services.timeouts import BUILD_TIMEOUT_SECONDS, SMOKE_TEST_TIMEOUT_SECONDS

__all__ = ["ArtifactProducer", "ShellArtifactProducer", "expand_command"]


class ArtifactProducer(Protocol):
    def build(
        self, commit_sha: str, *, stability: Stability, output_dir: Path
    ) -> Result[BuiltArtifact, ReleaseError]: ...


def expand_command(argv: tuple[str, ...], **values: str) -> list[str]:
    """Substitute ``{name}`` placeholders without touching other braces."""
    out: list[str] = []
    for arg in argv:
        for name, value in values.items():
            arg = arg.replace("{" + name + "}", value)
        out.append(arg)
    return out


class ShellArtifactProducer:
    """Checkout, prepare, build and smoke-test inside the repository clone.

    Any failing step aborts the build; nothing is uploaded by this class.
    """

    def __init__(
        self,
        *,
        repository: Repository,
        config: ArtifactConfig,
        console: ConsoleProtocol,
    ) -> None:
        self._repository = repository
        self._config = config
        self._console = console

    def build(
        self, commit_sha: str, *, stability: Stability, output_dir: Path
    ) -> Result[BuiltArtifact, ReleaseError]:
        checkout = self._repository.checkout(commit_sha)
        if isinstance(checkout, Err):
            return Err(
                ReleaseError(
                    kind="git_failed",
                    message=f"failed to check out {commit_sha}",
                    hint=checkout.error.message,
                )
            )

        output_dir.mkdir(parents=True, exist_ok=True)
        artifact = output_dir / self._config.name
        signature = output_dir / self._config.signature
        # A stale file from an earlier build must never be mistaken for this one
        for stale in (artifact, signature):
            stale.unlink(missing_ok=True)

        for argv in self._config.prepare:
            ok = self._run_step(list(argv), kind="build_failed")
            if isinstance(ok, Err):
                return ok

        command = expand_command(
            self._config.command,
            build_dir=str(output_dir),
            stability=stability.value,
        )
        ok = self._run_step(command, kind="build_failed")
        if isinstance(ok, Err):
            return ok

        missing = [p.name for p in (artifact, signature) if not p.is_file()]
        if missing:
            return Err(
                ReleaseError(
                    kind="build_failed",
                    message=f"build did not produce {', '.join(missing)}",
                    hint=str(output_dir),
                )
            )

        if self._config.smoke_test:
            smoke = expand_command(self._config.smoke_test, artifact=str(artifact))
            ok = self._run_step(smoke, kind="smoke_test_failed", timeout=SMOKE_TEST_TIMEOUT_SECONDS)
            if isinstance(ok, Err):
                return ok

        return Ok(BuiltArtifact(artifact=artifact, signature=signature))

    def _run_step(
        self,
        argv: list[str],
        *,
        kind: Literal["build_failed", "smoke_test_failed"],
        timeout: float = BUILD_TIMEOUT_SECONDS,
    ) -> Result[None, ReleaseError]:
        self._console.print(f"   $ {' '.join(argv)}", Style.DIM)
        result = run_process(argv, cwd=self._repository.path, timeout=timeout)
        if isinstance(result, Err):
            e = result.error
            return Err(
                ReleaseError(
                    kind=kind,
                    message=str(e),
                    hint=e.detail,
                )
            )
        return Ok(None)
