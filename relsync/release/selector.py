"""Pick the commit an unstable build is made from.

Starting from an anchor week, ask the repository for the newest commit in
that week and walk back one week at a time until a week has one. The walk
stops at ``earliest`` (normally the repository's first commit) so an empty
history cannot loop forever.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from relsync.core.result import Err, Ok, Result
from relsync.git.repository import GitError
from relsync.release.errors import ReleaseError
from relsync.release.model import CommitRef
from relsync.release.week import Week

__all__ = ["CommitSelector", "RepositoryLog"]


class RepositoryLog(Protocol):
    def most_recent_commit(
        self, *, after: datetime, before: datetime
    ) -> Result[CommitRef | None, GitError]: ...


class CommitSelector:
    def __init__(self, log: RepositoryLog, *, earliest: datetime | None = None) -> None:
        self._log = log
        self._earliest = earliest

    def select_commit(self, week: Week) -> Result[CommitRef, ReleaseError]:
        """Newest commit of ``week`` or of the closest earlier week that has one."""
        current = week
        while True:
            result = self._log.most_recent_commit(after=current.start(), before=current.end())
            match result:
                case Err(e):
                    return Err(
                        ReleaseError(
                            kind="git_failed",
                            message=f"failed to read commits of {current}",
                            hint=e.message,
                        )
                    )
                case Ok(commit):
                    if commit is not None:
                        return Ok(commit)

            if self._earliest is not None and current.start() <= self._earliest:
                return Err(
                    ReleaseError(
                        kind="no_commit",
                        message=f"no commit found in {week} or any earlier week",
                    )
                )
            current = current.previous()
