"""Error payload for release operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from relsync.core.errors import ErrorCode

ReleaseErrorKind = Literal[
    "config_invalid",
    "store_malformed",
    "invalid_stability",
    "git_failed",
    "no_commit",
    "build_failed",
    "smoke_test_failed",
    "upload_failed",
    "delete_failed",
    "gh_failed",
]

_EXIT_CODES: dict[str, ErrorCode] = {
    "config_invalid": ErrorCode.ENV_ERROR,
    "store_malformed": ErrorCode.ENV_ERROR,
    "invalid_stability": ErrorCode.USER_ERROR,
    "git_failed": ErrorCode.ENV_ERROR,
    "no_commit": ErrorCode.USER_ERROR,
    "build_failed": ErrorCode.BUILD_ERROR,
    "smoke_test_failed": ErrorCode.BUILD_ERROR,
    "upload_failed": ErrorCode.NETWORK_ERROR,
    "delete_failed": ErrorCode.NETWORK_ERROR,
    "gh_failed": ErrorCode.NETWORK_ERROR,
}


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Why a release operation stopped.

    ``kind`` names the step that failed; nothing after that step ran and the
    store holds whatever it held before the operation started.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    @property
    def exit_code(self) -> ErrorCode:
        return _EXIT_CODES.get(self.kind, ErrorCode.BUILD_ERROR)

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
