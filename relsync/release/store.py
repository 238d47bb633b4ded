"""JSON-backed release store.

Layout on disk::

    {
      "stable":   {"v1.2.3": {"release_date": 1700000000,
                              "phar_download_url": "...",
                              "signature_download_url": "..."}},
      "preview":  {"preview:v1.2.3-4-gabc1234": {...}},
      "snapshot": {}
    }

Each partition is kept sorted by ``release_date`` descending, so the first
entry of a partition is its latest release. Every mutation rewrites the
whole file atomically before returning.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path

from relsync.core.result import Err, Ok, Result
from relsync.core.structured import as_str_dict
from relsync.platform.files import atomic_write_json
from relsync.release.errors import ReleaseError
from relsync.release.model import STABILITIES, Release, ReleaseField, Stability

__all__ = ["ReleaseStore"]


def _malformed(path: Path, detail: str) -> Err[ReleaseError]:
    return Err(
        ReleaseError(
            kind="store_malformed",
            message=f'The "{path}" file is malformed: {detail}',
            hint="Fix or remove the file; a missing file starts an empty store.",
        )
    )


def _parse_release(
    version: str, stability: Stability, raw: object
) -> Release | None:
    data = as_str_dict(raw)
    if data is None:
        return None

    release_date = data.get("release_date")
    if isinstance(release_date, bool) or not isinstance(release_date, int):
        return None

    phar = data.get("phar_download_url", "")
    signature = data.get("signature_download_url", "")
    if not isinstance(phar, str) or not isinstance(signature, str):
        return None

    return Release(
        version=version,
        stability=stability,
        release_date=release_date,
        phar_download_url=phar,
        signature_download_url=signature,
    )


class ReleaseStore:
    """Partitioned collection of releases, the only writer of the store file.

    Not safe for concurrent writers: callers serialize operations.
    """

    def __init__(
        self,
        path: Path,
        partitions: dict[Stability, dict[str, Release]] | None = None,
    ) -> None:
        self.path = path
        self._data: dict[Stability, dict[str, Release]] = {s: {} for s in STABILITIES}
        for stability, releases in (partitions or {}).items():
            self._data[stability] = dict(releases)
            self._sort(stability)

    @classmethod
    def load(cls, path: Path) -> Result[ReleaseStore, ReleaseError]:
        """Read the store file.

        A missing file yields an empty store (first run). Anything that is not
        the documented layout is ``store_malformed``.
        """
        if not path.exists():
            return Ok(cls(path))
        if not path.is_file():
            return _malformed(path, "not a regular file")

        try:
            obj: object = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            return _malformed(path, str(e))
        except json.JSONDecodeError as e:
            return _malformed(path, f"invalid JSON ({e})")

        root = as_str_dict(obj)
        if root is None:
            return _malformed(path, "root must be an object")

        partitions: dict[Stability, dict[str, Release]] = {}
        for key, raw_partition in root.items():
            stability = Stability.parse(key)
            if stability is None:
                return _malformed(path, f"unknown stability {key!r}")

            # Older store files encode an empty partition as [].
            if raw_partition == []:
                partitions[stability] = {}
                continue

            entries = as_str_dict(raw_partition)
            if entries is None:
                return _malformed(path, f"partition {key!r} must be an object")

            releases: dict[str, Release] = {}
            for version, raw_release in entries.items():
                if Stability.of_version(version) is not stability:
                    return _malformed(path, f"{version!r} stored under {key!r}")
                release = _parse_release(version, stability, raw_release)
                if release is None:
                    return _malformed(path, f"invalid entry {version!r}")
                releases[version] = release
            partitions[stability] = releases

        return Ok(cls(path, partitions))

    def save(self) -> None:
        payload = {
            stability.value: {
                version: release.to_record() for version, release in self._data[stability].items()
            }
            for stability in STABILITIES
        }
        atomic_write_json(self.path, payload)

    def _sort(self, stability: Stability) -> None:
        # sorted() is stable: equal dates keep their insertion order
        ordered = sorted(
            self._data[stability].items(),
            key=lambda item: item[1].release_date,
            reverse=True,
        )
        self._data[stability] = dict(ordered)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def releases(self, stability: Stability) -> list[Release]:
        """Releases of one partition, newest first."""
        return list(self._data[stability].values())

    def get(self, version: str) -> Release | None:
        return self._data[Stability.of_version(version)].get(version)

    def get_field(self, version: str, field: ReleaseField) -> str | int | None:
        """One field of ``version``, or None when the version is unknown."""
        release = self.get(version)
        if release is None:
            return None
        return release.field(field)

    def find_older_than(
        self,
        stability: Stability,
        cutoff: int,
        excluding: str | None,
    ) -> list[Release]:
        """Releases dated strictly before ``cutoff``, minus ``excluding``."""
        return [
            release
            for release in self._data[stability].values()
            if release.version != excluding and release.release_date < cutoff
        ]

    def latest(self, stability: Stability) -> Release | None:
        return next(iter(self._data[stability].values()), None)

    def latest_per_stability(self) -> dict[Stability, str]:
        """Version of the newest release of every non-empty partition."""
        out: dict[Stability, str] = {}
        for stability in STABILITIES:
            latest = self.latest(stability)
            if latest is not None:
                out[stability] = latest.version
        return out

    # ------------------------------------------------------------------
    # Mutations (each persists before returning)
    # ------------------------------------------------------------------

    def add(
        self,
        version: str,
        release_date: int,
        phar_download_url: str,
        signature_download_url: str,
        stability: Stability,
    ) -> Release:
        """Insert or replace ``version`` in its partition, re-sort, persist.

        Raises:
            ValueError: When the version's prefix names another partition.
        """
        owner = Stability.of_version(version)
        if owner is not stability:
            raise ValueError(f"version {version!r} belongs to {owner.value}, not {stability.value}")

        release = Release(
            version=version,
            stability=stability,
            release_date=release_date,
            phar_download_url=phar_download_url,
            signature_download_url=signature_download_url,
        )
        self._data[stability][version] = release
        self._sort(stability)
        self.save()
        return release

    def add_many(self, releases: Iterable[Release]) -> int:
        """Insert or replace several releases with one re-sort and one save.

        Raises:
            ValueError: When a version's prefix names another partition;
                nothing is inserted in that case.
        """
        batch = list(releases)
        for release in batch:
            owner = Stability.of_version(release.version)
            if owner is not release.stability:
                raise ValueError(
                    f"version {release.version!r} belongs to {owner.value}, "
                    f"not {release.stability.value}"
                )

        touched: set[Stability] = set()
        for release in batch:
            self._data[release.stability][release.version] = release
            touched.add(release.stability)
        for stability in touched:
            self._sort(stability)

        if batch:
            self.save()
        return len(batch)

    def delete_by_stability(self, stability: Stability) -> int:
        """Empty one partition; returns how many releases were removed."""
        count = len(self._data[stability])
        self._data[stability] = {}
        self.save()
        return count

    def delete_by_versions(self, versions: Iterable[str]) -> int:
        """Remove the named versions with a single save; unknown ones are skipped."""
        removed = 0
        for version in versions:
            partition = self._data[Stability.of_version(version)]
            if partition.pop(version, None) is not None:
                removed += 1

        if removed:
            self.save()
        return removed
