"""Git repository abstraction.

``Repository`` is the repository-log collaborator of the release engine:
it finds the newest commit inside a time window, describes a commit
relative to its nearest tag and checks commits out for building. All
operations return Result types.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from relsync.core.result import Err, Ok, Result
from relsync.platform.process import ProcessError
from relsync.platform.process import run as run_process
from relsync.release.model import CommitRef

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

# git parses "2023-01-02 00:00:00 +0100" unambiguously
_GIT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"

__all__ = [
    "GitError",
    "Repository",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


def _git_error(command: str, e: ProcessError, fallback: str) -> Err[GitError]:
    return Err(
        GitError(
            command=command,
            message=e.stderr.strip() or e.stdout.strip() or fallback,
            returncode=e.returncode,
        )
    )


class Repository:
    """A local git clone.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return (self.path / ".git").exists()

    def update(self, branch: str) -> Result[None, GitError]:
        """Check out ``branch`` and fast-forward it from its upstream."""
        result = self._run(["checkout", branch])
        if isinstance(result, Err):
            return _git_error(f"checkout {branch}", result.error, "checkout failed")

        result = self._run(["pull", "--ff-only"])
        if isinstance(result, Err):
            return _git_error("pull --ff-only", result.error, "pull failed")

        return Ok(None)

    def checkout(self, ref: str) -> Result[None, GitError]:
        result = self._run(["checkout", ref])
        if isinstance(result, Err):
            return _git_error(f"checkout {ref}", result.error, "checkout failed")
        return Ok(None)

    def most_recent_commit(
        self, *, after: datetime, before: datetime
    ) -> Result[CommitRef | None, GitError]:
        """Newest commit whose commit date lies within ``[after, before]``.

        Returns:
            Ok(CommitRef), Ok(None) when the window has no commits, or Err(GitError)
        """
        result = self._run(
            [
                "log",
                "--format=%H:%ct",
                "--max-count=1",
                f"--after={after.strftime(_GIT_DATE_FORMAT)}",
                f"--before={before.strftime(_GIT_DATE_FORMAT)}",
            ]
        )
        match result:
            case Err(e):
                return _git_error("log", e, "git log failed")
            case Ok(stdout):
                return self._parse_commit_line(stdout)

    def first_commit_time(self) -> Result[datetime, GitError]:
        """Commit time of the oldest root commit."""
        result = self._run(["log", "--max-parents=0", "--format=%ct", "HEAD"])
        if isinstance(result, Err):
            return _git_error("log --max-parents=0", result.error, "git log failed")

        stamps = [int(line) for line in result.value.split() if line.strip().isdigit()]
        if not stamps:
            return Err(GitError(command="log --max-parents=0", message="repository has no commits"))
        return Ok(datetime.fromtimestamp(min(stamps), tz=UTC))

    def describe(self, sha: str) -> Result[str, GitError]:
        """Nearest-tag descriptor of ``sha``, e.g. ``v1.2.0-3-gabc1234``."""
        result = self._run(["describe", sha, "--tags"])
        match result:
            case Err(e):
                return _git_error("describe", e, "git describe failed")
            case Ok(stdout):
                descriptor = stdout.strip()
                if not descriptor:
                    return Err(GitError(command="describe", message=f"empty describe for {sha}"))
                return Ok(descriptor)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS
            if command in {"fetch", "pull", "push", "clone"}
            else _GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)

    def _parse_commit_line(self, output: str) -> Result[CommitRef | None, GitError]:
        """Parse ``<sha>:<unix time>``; empty output means no commit."""
        line = output.strip()
        if not line:
            return Ok(None)

        sha, sep, stamp = line.splitlines()[0].partition(":")
        if not sep or not stamp.strip().isdigit():
            return Err(GitError(command="log", message=f"unexpected git log output: {line!r}"))
        return Ok(CommitRef(sha=sha.strip(), timestamp=int(stamp)))
