"""Process exit codes for relsync commands.

Each release failure kind maps onto one of these codes so that schedulers
(cron, CI) can tell a misconfiguration apart from a failed build.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    - 0: Success
    - 1: User error (unknown stability, bad age threshold, unknown version)
    - 2: Environment error (config missing, store malformed, git unusable)
    - 3: Build error (artifact build or smoke test failed)
    - 4: Network error (release list, upload or delete failed)
    - 5: I/O error (store could not be written)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
