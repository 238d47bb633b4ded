"""Release lifecycle: stable sync, unstable release creation, retention sweeps.

The engine owns no I/O of its own. It reads and writes the ``ReleaseStore``
and drives four collaborators: the upstream release list, the local git
clone, the artifact producer and object storage. Operations run one at a
time; a failing collaborator aborts the operation before the store is
touched.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path
from typing import Protocol

from relsync.core.config import ArtifactConfig, Config
from relsync.core.result import Err, Ok, Result
from relsync.git.repository import GitError, Repository
from relsync.output.console import ConsoleProtocol
from relsync.release.errors import ReleaseError
from relsync.release.model import (
    BuiltArtifact,
    CommitRef,
    CreateOutcome,
    LatestVersion,
    Release,
    ReleaseField,
    RemoteRelease,
    Stability,
    unstable_version,
)
from relsync.release.selector import CommitSelector
from relsync.release.store import ReleaseStore
from relsync.release.week import Week
from relsync.services.artifact import ArtifactProducer, ShellArtifactProducer
from relsync.services.gh import GhReleaseList
from relsync.services.storage import ObjectStore, S3ObjectStore, object_key, sweep_keys

__all__ = [
    "ReleaseLifecycleEngine",
    "ReleaseListFetcher",
    "SourceRepository",
    "create_engine",
    "file_mapping",
]


def file_mapping(artifact: ArtifactConfig) -> dict[str, ReleaseField]:
    """Asset file name -> release field it populates."""
    return {
        artifact.name: "phar_download_url",
        artifact.signature: "signature_download_url",
    }


class ReleaseListFetcher(Protocol):
    def list_releases(self, owner: str, repo: str) -> Result[list[RemoteRelease], ReleaseError]: ...


class SourceRepository(Protocol):
    def update(self, branch: str) -> Result[None, GitError]: ...

    def most_recent_commit(
        self, *, after: datetime, before: datetime
    ) -> Result[CommitRef | None, GitError]: ...

    def first_commit_time(self) -> Result[datetime, GitError]: ...

    def describe(self, sha: str) -> Result[str, GitError]: ...


def _git_failed(message: str, error: GitError) -> Err[ReleaseError]:
    return Err(ReleaseError(kind="git_failed", message=message, hint=error.message))


def _require_unstable(stability: Stability, action: str) -> Result[None, ReleaseError]:
    if stability.is_unstable:
        return Ok(None)
    return Err(
        ReleaseError(
            kind="invalid_stability",
            message=f'cannot {action} "{stability.value}" releases',
            hint="stable releases are mirrored from upstream; use preview or snapshot",
        )
    )


class ReleaseLifecycleEngine:
    def __init__(
        self,
        *,
        config: Config,
        store: ReleaseStore,
        repository: SourceRepository,
        producer: ArtifactProducer,
        object_store: ObjectStore,
        release_list: ReleaseListFetcher,
        console: ConsoleProtocol,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._repository = repository
        self._producer = producer
        self._object_store = object_store
        self._release_list = release_list
        self._console = console
        self._clock = clock or (lambda: datetime.now(config.tz))

    @property
    def store(self) -> ReleaseStore:
        return self._store

    # ------------------------------------------------------------------
    # Stable releases
    # ------------------------------------------------------------------

    def sync_stable_releases(self) -> Result[int, ReleaseError]:
        """Replace the stable partition with the upstream release list.

        The list is fetched before anything is deleted, so a failing fetch
        leaves the previous stable releases in place.
        """
        remote = self._config.remote
        self._console.print(f"Fetching releases of {remote.slug}.")
        fetched = self._release_list.list_releases(remote.owner, remote.repo)
        if isinstance(fetched, Err):
            return fetched

        deleted = self._store.delete_by_stability(Stability.stable)
        self._console.print(f"Deleted {deleted} stable releases.")

        mapping = file_mapping(self._config.artifact)
        releases: list[Release] = []
        for release in fetched.value:
            if Stability.of_version(release.name) is not Stability.stable:
                self._console.warning(f"skipping upstream release {release.name!r}: reserved prefix")
                continue

            urls = {"phar_download_url": "", "signature_download_url": ""}
            for asset in release.assets:
                field = mapping.get(asset.name)
                if field is not None:
                    urls[field] = asset.url

            releases.append(
                Release(
                    version=release.name,
                    stability=Stability.stable,
                    release_date=release.published_at,
                    phar_download_url=urls["phar_download_url"],
                    signature_download_url=urls["signature_download_url"],
                )
            )

        self._store.add_many(releases)
        added = len(self._store.releases(Stability.stable))
        self._console.print(f"Added {added} stable releases from GitHub.")
        return Ok(added)

    # ------------------------------------------------------------------
    # Unstable releases
    # ------------------------------------------------------------------

    def anchor_week(self, stability: Stability) -> Week:
        """Preview builds come from this week, snapshots from last week."""
        current = Week.current(self._clock(), tz=self._config.tz)
        if stability is Stability.snapshot:
            return current.previous()
        return current

    def create_unstable_release(self, stability: Stability) -> Result[CreateOutcome, ReleaseError]:
        """Build and publish the release for the anchor week's last commit.

        Idempotent: when a release with the resulting version already exists
        nothing is built, uploaded or stored.
        """
        ok = _require_unstable(stability, "create")
        if isinstance(ok, Err):
            return ok

        console = self._console
        console.header(f"1. preparing to create {stability.value} release")

        console.step("updating cloned repository")
        updated = self._repository.update(self._config.repository.branch)
        if isinstance(updated, Err):
            return _git_failed("failed to update cloned repository", updated.error)

        console.step("detecting commit for a release")
        earliest = self._repository.first_commit_time()
        if isinstance(earliest, Err):
            return _git_failed("failed to read repository history", earliest.error)

        selector = CommitSelector(self._repository, earliest=earliest.value)
        selected = selector.select_commit(self.anchor_week(stability))
        if isinstance(selected, Err):
            return selected
        commit = selected.value
        console.step(f"selected commit {commit.sha}")

        console.header(f"2. creating {stability.value} release")
        described = self._repository.describe(commit.sha)
        if isinstance(described, Err):
            return _git_failed(f"failed to describe {commit.sha}", described.error)
        version = unstable_version(stability, described.value)

        if self._store.get(version) is not None:
            console.step(f"release for {version} version found > skipping")
            return Ok(CreateOutcome(version=version, commit=commit, created=False))

        console.step("creating artifact")
        built = self._producer.build(
            commit.sha,
            stability=stability,
            output_dir=self._config.artifact.build_dir,
        )
        if isinstance(built, Err):
            return built

        console.step("uploading to s3")
        urls = self._upload(stability, commit, built.value)
        if isinstance(urls, Err):
            return urls
        phar_url, signature_url = urls.value

        self._store.add(version, commit.timestamp, phar_url, signature_url, stability)
        console.step(f"release for {version} version created")
        return Ok(CreateOutcome(version=version, commit=commit, created=True))

    def _upload(
        self, stability: Stability, commit: CommitRef, built: BuiltArtifact
    ) -> Result[tuple[str, str], ReleaseError]:
        uploaded: list[str] = []
        for path in (built.artifact, built.signature):
            key = object_key(stability, commit.sha, path.name)
            result = self._object_store.upload(key, path, public=True)
            if isinstance(result, Err):
                return result
            uploaded.append(result.value)
        return Ok((uploaded[0], uploaded[1]))

    # ------------------------------------------------------------------
    # Retention
    # ------------------------------------------------------------------

    def sweep_old_releases(self, stability: Stability, age: timedelta) -> Result[int, ReleaseError]:
        """Delete releases older than ``age``, always keeping the latest one.

        Only preview and snapshot can be swept; stable releases are replaced
        wholesale by ``sync_stable_releases`` and sweeping them returns
        ``invalid_stability``.

        Objects are deleted from storage before the store is touched, so a
        storage failure (or a download URL that maps to no storage key)
        leaves both sides still referencing the releases.
        """
        ok = _require_unstable(stability, "sweep")
        if isinstance(ok, Err):
            return ok

        console = self._console
        console.print(f"Deleting {stability.value} releases older than {age}.")

        latest = self._store.latest(stability)
        if latest is None:
            console.step("0 found at all")
            return Ok(0)

        cutoff = int((self._clock() - age).timestamp())
        old = self._store.find_older_than(stability, cutoff, latest.version)
        if not old:
            console.step("0 found that old")
            return Ok(0)
        console.step(f"{len(old)} found")

        keys = sweep_keys(self._object_store, old)
        if isinstance(keys, Err):
            return keys
        if keys.value:
            console.step("deleting from s3")
            deleted = self._object_store.delete_objects(keys.value)
            if isinstance(deleted, Err):
                return deleted

        console.step("deleting from store")
        removed = self._store.delete_by_versions(r.version for r in old)
        return Ok(removed)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def latest_versions(self) -> dict[Stability, LatestVersion]:
        download = self._config.download
        artifact_name = self._config.artifact.name
        return {
            stability: LatestVersion(
                version=version,
                path=f"{download.path_prefix}/{version}/{artifact_name}",
                min_platform=download.min_platform,
            )
            for stability, version in self._store.latest_per_stability().items()
        }

    def resolve_version(self, version_or_stability: str) -> str:
        """Map a tier name to its latest version; anything else passes through."""
        stability = Stability.parse(version_or_stability)
        if stability is None:
            return version_or_stability
        latest = self._store.latest(stability)
        return latest.version if latest is not None else version_or_stability

    def resolve_download_url(self, version_or_stability: str, file_name: str) -> str:
        """Download URL for ``file_name`` of a version or tier, or ``""``."""
        field = file_mapping(self._config.artifact).get(file_name)
        if field is None:
            return ""

        version = self.resolve_version(version_or_stability)
        value = self._store.get_field(version, field)
        return value if isinstance(value, str) else ""


def create_engine(
    config: Config,
    *,
    console: ConsoleProtocol,
    workdir: Path | None = None,
) -> Result[ReleaseLifecycleEngine, ReleaseError]:
    """Wire the production collaborators for ``config``."""
    loaded = ReleaseStore.load(config.store.path)
    if isinstance(loaded, Err):
        return loaded

    repository = Repository(config.repository.path)
    if not repository.exists():
        return Err(
            ReleaseError(
                kind="config_invalid",
                message=f"repository clone not found: {config.repository.path}",
                hint="Clone the project there or set [repository] path",
            )
        )

    return Ok(
        ReleaseLifecycleEngine(
            config=config,
            store=loaded.value,
            repository=repository,
            producer=ShellArtifactProducer(
                repository=repository,
                config=config.artifact,
                console=console,
            ),
            object_store=S3ObjectStore.from_config(config.storage),
            release_list=GhReleaseList(cwd=workdir or config.store.path.parent),
            console=console,
        )
    )
