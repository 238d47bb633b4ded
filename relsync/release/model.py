from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from enum import Enum
from typing import Literal


class Stability(str, Enum):
    stable = "stable"
    preview = "preview"
    snapshot = "snapshot"

    @property
    def is_unstable(self) -> bool:
        return self is not Stability.stable

    @classmethod
    def parse(cls, value: str) -> Stability | None:
        """Stability named exactly ``value``, or None."""
        try:
            return cls(value)
        except ValueError:
            return None

    @classmethod
    def of_version(cls, version: str) -> Stability:
        """Partition a version string belongs to.

        Unstable versions are ``<stability>:<describe>``; anything without a
        known prefix is a stable tag.
        """
        prefix, sep, _ = version.partition(":")
        if sep:
            found = cls.parse(prefix)
            if found is not None:
                return found
        return cls.stable


# Order in which partitions are persisted and listed.
STABILITIES: tuple[Stability, ...] = (Stability.stable, Stability.preview, Stability.snapshot)

ReleaseField = Literal[
    "version_name",
    "release_date",
    "phar_download_url",
    "signature_download_url",
]

URL_FIELDS: tuple[ReleaseField, ...] = ("phar_download_url", "signature_download_url")


def unstable_version(stability: Stability, describe: str) -> str:
    """``preview`` + ``v1.2.0-3-gabc1234`` -> ``preview:v1.2.0-3-gabc1234``."""
    return f"{stability.value}:{describe.strip()}"


@dataclass(frozen=True, slots=True)
class Release:
    """One published build.

    ``release_date`` is a Unix timestamp: the upstream publish time for stable
    releases, the selected commit's time for unstable ones.
    """

    version: str
    stability: Stability
    release_date: int
    phar_download_url: str = ""
    signature_download_url: str = ""

    def field(self, name: ReleaseField) -> str | int:
        if name == "version_name":
            return self.version
        if name == "release_date":
            return self.release_date
        if name == "phar_download_url":
            return self.phar_download_url
        return self.signature_download_url

    @property
    def download_urls(self) -> tuple[str, ...]:
        """Non-empty download URLs."""
        return tuple(u for u in (self.phar_download_url, self.signature_download_url) if u)

    def to_record(self) -> dict[str, object]:
        return {
            "release_date": self.release_date,
            "phar_download_url": self.phar_download_url,
            "signature_download_url": self.signature_download_url,
        }


@dataclass(frozen=True, slots=True)
class CommitRef:
    sha: str
    timestamp: int


@dataclass(frozen=True, slots=True)
class RemoteAsset:
    name: str
    url: str


@dataclass(frozen=True, slots=True)
class RemoteRelease:
    """A published release as reported by the upstream release list."""

    name: str
    published_at: int
    assets: tuple[RemoteAsset, ...] = ()


@dataclass(frozen=True, slots=True)
class BuiltArtifact:
    """Files produced by one artifact build."""

    artifact: Path
    signature: Path


@dataclass(frozen=True, slots=True)
class LatestVersion:
    version: str
    path: str
    min_platform: int

    def as_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "version": self.version,
            "min-platform": self.min_platform,
        }


@dataclass(frozen=True, slots=True)
class CreateOutcome:
    """Result of a create-unstable-release run.

    ``created`` is False when a release with ``version`` already existed.
    """

    version: str
    commit: CommitRef
    created: bool
