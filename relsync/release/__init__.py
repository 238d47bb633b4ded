"""Release domain: stability tiers, week clock, store and commit selection."""

from relsync.release.errors import ReleaseError
from relsync.release.model import (
    STABILITIES,
    CommitRef,
    LatestVersion,
    Release,
    RemoteAsset,
    RemoteRelease,
    Stability,
)
from relsync.release.store import ReleaseStore
from relsync.release.week import Week

__all__ = [
    "STABILITIES",
    "CommitRef",
    "LatestVersion",
    "Release",
    "ReleaseError",
    "ReleaseStore",
    "RemoteAsset",
    "RemoteRelease",
    "Stability",
    "Week",
]
