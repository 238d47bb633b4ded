"""Object storage for unstable release artifacts (S3 via boto3).

Objects are laid out as ``<stability>s/<commit sha>/<file name>`` and made
public-read so the stored URL can be handed to downloaders directly.
``key_from_url`` is the one place that maps a stored download URL back to
its object key; the retention sweep relies on it.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol
from urllib.parse import quote, unquote, urlparse

from botocore.exceptions import BotoCoreError, ClientError

from relsync.core.result import Err, Ok, Result
from relsync.release.errors import ReleaseError
from relsync.release.model import Release, Stability

if TYPE_CHECKING:
    from relsync.core.config import StorageConfig

__all__ = [
    "ObjectStore",
    "S3ObjectStore",
    "object_key",
    "sweep_keys",
]

# DeleteObjects accepts at most 1000 keys per request
_DELETE_BATCH = 1000


class ObjectStore(Protocol):
    def upload(self, key: str, path: Path, *, public: bool = True) -> Result[str, ReleaseError]:
        """Store the file at ``key`` and return its download URL."""
        ...

    def delete_objects(self, keys: list[str]) -> Result[int, ReleaseError]: ...

    def key_from_url(self, url: str) -> str | None: ...


def object_key(stability: Stability, commit_sha: str, file_name: str) -> str:
    """``snapshot``, ``abc…``, ``svn-buddy.phar`` -> ``snapshots/abc…/svn-buddy.phar``."""
    return f"{stability.value}s/{commit_sha}/{file_name}"


def sweep_keys(
    store: ObjectStore, releases: Iterable[Release]
) -> Result[list[str], ReleaseError]:
    """Keys to delete for ``releases``: each file plus its parent path.

    Order is stable and duplicates are dropped. A download URL the store
    cannot map back to a key (e.g. written under another bucket or public
    base) is an error, so the release stays in the store.
    """
    keys: dict[str, None] = {}
    for release in releases:
        for url in release.download_urls:
            key = store.key_from_url(url)
            if key is None:
                return Err(
                    ReleaseError(
                        kind="delete_failed",
                        message=f"cannot map {release.version} download URL to a storage key",
                        hint=f"{url} is outside the configured bucket or public_url_base",
                    )
                )
            keys[key] = None
            parent = key.rpartition("/")[0]
            if parent:
                keys[parent] = None
    return Ok(list(keys))


class S3ObjectStore:
    def __init__(
        self,
        *,
        bucket: str,
        region: str | None = None,
        public_url_base: str | None = None,
        client: Any = None,
    ) -> None:
        self.bucket = bucket
        self._region = region
        self._public_url_base = public_url_base.rstrip("/") if public_url_base else None
        self._client = client

    @classmethod
    def from_config(cls, config: StorageConfig) -> S3ObjectStore:
        return cls(
            bucket=config.bucket,
            region=config.region,
            public_url_base=config.public_url_base,
        )

    @property
    def client(self) -> Any:
        if self._client is None:
            import boto3

            self._client = boto3.client("s3", region_name=self._region)
        return self._client

    def url_for(self, key: str) -> str:
        quoted = quote(key, safe="/")
        if self._public_url_base:
            return f"{self._public_url_base}/{quoted}"
        region = self._region or getattr(self.client.meta, "region_name", None)
        if region and region != "us-east-1":
            return f"https://{self.bucket}.s3.{region}.amazonaws.com/{quoted}"
        return f"https://{self.bucket}.s3.amazonaws.com/{quoted}"

    def upload(self, key: str, path: Path, *, public: bool = True) -> Result[str, ReleaseError]:
        from boto3.exceptions import S3UploadFailedError

        extra_args = {"ACL": "public-read"} if public else {}
        try:
            self.client.upload_file(str(path), self.bucket, key, ExtraArgs=extra_args)
        except (BotoCoreError, ClientError, S3UploadFailedError, OSError) as e:
            return Err(
                ReleaseError(
                    kind="upload_failed",
                    message=f"failed to upload {path.name} to s3://{self.bucket}/{key}",
                    hint=str(e),
                )
            )
        return Ok(self.url_for(key))

    def delete_objects(self, keys: list[str]) -> Result[int, ReleaseError]:
        """Delete ``keys``; any per-key error reported by S3 fails the call."""
        deleted = 0
        for offset in range(0, len(keys), _DELETE_BATCH):
            batch = keys[offset : offset + _DELETE_BATCH]
            try:
                response = self.client.delete_objects(
                    Bucket=self.bucket,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
                )
            except (BotoCoreError, ClientError) as e:
                return Err(
                    ReleaseError(
                        kind="delete_failed",
                        message=f"failed to delete {len(batch)} objects from s3://{self.bucket}",
                        hint=str(e),
                    )
                )

            errors = response.get("Errors") or []
            if errors:
                first = errors[0]
                return Err(
                    ReleaseError(
                        kind="delete_failed",
                        message=f"s3 refused to delete {len(errors)} of {len(batch)} objects",
                        hint=f"{first.get('Key')}: {first.get('Code')} {first.get('Message')}",
                    )
                )
            deleted += len(batch)

        return Ok(deleted)

    def key_from_url(self, url: str) -> str | None:
        """Object key behind a URL produced by ``url_for``.

        Handles the configured public base, virtual-hosted style
        (``bucket.s3…/key``) and path style (``s3…/bucket/key``) URLs.
        """
        if not url:
            return None

        if self._public_url_base and url.startswith(self._public_url_base + "/"):
            key = unquote(url[len(self._public_url_base) + 1 :])
            return key or None

        parsed = urlparse(url)
        host = parsed.hostname or ""
        path = unquote(parsed.path).lstrip("/")

        if host.startswith(f"{self.bucket}.s3"):
            return path or None

        if host.startswith("s3") and path.startswith(f"{self.bucket}/"):
            return path[len(self.bucket) + 1 :] or None

        return None
