"""Tests for the S3 object store and sweep key derivation."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from botocore.exceptions import ClientError

from relsync.core.config import StorageConfig
from relsync.core.result import Err, Ok
from relsync.release.model import Release, Stability
from relsync.services.storage import S3ObjectStore, object_key, sweep_keys


class FakeMeta:
    region_name = "eu-west-1"


class FakeS3Client:
    def __init__(self) -> None:
        self.meta = FakeMeta()
        self.uploads: list[tuple[str, str, str, dict[str, Any]]] = []
        self.delete_requests: list[list[str]] = []
        self.fail_upload = False
        self.delete_errors: list[dict[str, str]] = []

    def upload_file(self, filename: str, bucket: str, key: str, ExtraArgs: dict[str, Any]) -> None:
        if self.fail_upload:
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "nope"}}, "PutObject")
        self.uploads.append((filename, bucket, key, ExtraArgs))

    def delete_objects(self, Bucket: str, Delete: dict[str, Any]) -> dict[str, Any]:
        del Bucket
        self.delete_requests.append([o["Key"] for o in Delete["Objects"]])
        return {"Errors": self.delete_errors} if self.delete_errors else {}


def _store(client: FakeS3Client, **kwargs: Any) -> S3ObjectStore:
    return S3ObjectStore(bucket="builds", region="eu-west-1", client=client, **kwargs)


def test_object_key() -> None:
    assert object_key(Stability.snapshot, "abc123", "svn-buddy.phar") == "snapshots/abc123/svn-buddy.phar"
    assert object_key(Stability.preview, "abc123", "x.sig") == "previews/abc123/x.sig"


class TestUpload:
    def test_upload_is_public_and_returns_url(self, tmp_path: Path) -> None:
        client = FakeS3Client()
        artifact = tmp_path / "svn-buddy.phar"
        artifact.write_bytes(b"phar")

        result = _store(client).upload("snapshots/abc/svn-buddy.phar", artifact)

        assert result == Ok("https://builds.s3.eu-west-1.amazonaws.com/snapshots/abc/svn-buddy.phar")
        assert client.uploads == [
            (str(artifact), "builds", "snapshots/abc/svn-buddy.phar", {"ACL": "public-read"})
        ]

    def test_upload_with_public_base(self, tmp_path: Path) -> None:
        store = _store(FakeS3Client(), public_url_base="https://cdn.example.com/")
        result = store.upload("previews/abc/a.phar", tmp_path / "a.phar")
        assert result == Ok("https://cdn.example.com/previews/abc/a.phar")

    def test_upload_failure(self, tmp_path: Path) -> None:
        client = FakeS3Client()
        client.fail_upload = True
        result = _store(client).upload("snapshots/abc/a.phar", tmp_path / "a.phar")
        assert isinstance(result, Err)
        assert result.error.kind == "upload_failed"
        assert "AccessDenied" in (result.error.hint or "")

    def test_us_east_1_url(self) -> None:
        store = S3ObjectStore(bucket="builds", region="us-east-1", client=FakeS3Client())
        assert store.url_for("a/b c") == "https://builds.s3.amazonaws.com/a/b%20c"


class TestDelete:
    def test_delete_in_batches(self) -> None:
        client = FakeS3Client()
        keys = [f"snapshots/{i}/a.phar" for i in range(1500)]
        assert _store(client).delete_objects(keys) == Ok(1500)
        assert [len(batch) for batch in client.delete_requests] == [1000, 500]

    def test_delete_reports_errors(self) -> None:
        client = FakeS3Client()
        client.delete_errors = [{"Key": "snapshots/1/a.phar", "Code": "AccessDenied", "Message": "no"}]
        result = _store(client).delete_objects(["snapshots/1/a.phar"])
        assert isinstance(result, Err)
        assert result.error.kind == "delete_failed"
        assert "snapshots/1/a.phar" in (result.error.hint or "")


class TestKeyFromUrl:
    def test_virtual_hosted(self) -> None:
        store = _store(FakeS3Client())
        assert store.key_from_url("https://builds.s3.eu-west-1.amazonaws.com/snapshots/abc/a.phar") == (
            "snapshots/abc/a.phar"
        )
        assert store.key_from_url("https://builds.s3.amazonaws.com/snapshots/abc/a.phar") == (
            "snapshots/abc/a.phar"
        )

    def test_path_style(self) -> None:
        store = _store(FakeS3Client())
        assert store.key_from_url("https://s3.amazonaws.com/builds/previews/x/a.phar") == "previews/x/a.phar"

    def test_public_base(self) -> None:
        store = _store(FakeS3Client(), public_url_base="https://cdn.example.com")
        assert store.key_from_url("https://cdn.example.com/previews/x/a%20b.phar") == "previews/x/a b.phar"

    def test_foreign_url(self) -> None:
        store = _store(FakeS3Client())
        assert store.key_from_url("https://github.com/acme/tool/releases/download/v1/a.phar") is None
        assert store.key_from_url("https://other.s3.amazonaws.com/a.phar") is None
        assert store.key_from_url("") is None

    def test_url_for_round_trips(self) -> None:
        store = _store(FakeS3Client())
        key = "snapshots/abc/svn-buddy.phar.sig"
        assert store.key_from_url(store.url_for(key)) == key


def test_sweep_keys_include_parent_paths_once() -> None:
    store = _store(FakeS3Client())
    base = "https://builds.s3.eu-west-1.amazonaws.com"
    releases = [
        Release(
            version="snapshot:v1-1-gaaa",
            stability=Stability.snapshot,
            release_date=1,
            phar_download_url=f"{base}/snapshots/aaa/svn-buddy.phar",
            signature_download_url=f"{base}/snapshots/aaa/svn-buddy.phar.sig",
        ),
        Release(
            version="snapshot:v1-2-gbbb",
            stability=Stability.snapshot,
            release_date=2,
            phar_download_url=f"{base}/snapshots/bbb/svn-buddy.phar",
            signature_download_url="",
        ),
    ]
    assert sweep_keys(store, releases) == Ok(
        [
            "snapshots/aaa/svn-buddy.phar",
            "snapshots/aaa",
            "snapshots/aaa/svn-buddy.phar.sig",
            "snapshots/bbb/svn-buddy.phar",
            "snapshots/bbb",
        ]
    )


def test_sweep_keys_rejects_unmapped_url() -> None:
    store = _store(FakeS3Client())
    release = Release(
        version="snapshot:v1-1-gaaa",
        stability=Stability.snapshot,
        release_date=1,
        phar_download_url="https://old-cdn.example.org/snapshots/aaa/svn-buddy.phar",
    )

    result = sweep_keys(store, [release])

    assert isinstance(result, Err)
    assert result.error.kind == "delete_failed"
    assert "snapshot:v1-1-gaaa" in result.error.message
    assert "old-cdn.example.org" in (result.error.hint or "")


def test_from_config() -> None:
    store = S3ObjectStore.from_config(
        StorageConfig(bucket="b", region="eu-central-1", public_url_base="https://cdn/")
    )
    assert store.bucket == "b"
    assert store.url_for("k") == "https://cdn/k"
