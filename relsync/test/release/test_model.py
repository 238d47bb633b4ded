from relsync.release.model import (
    LatestVersion,
    Release,
    Stability,
    unstable_version,
)


class TestStability:
    def test_of_version(self) -> None:
        assert Stability.of_version("v1.2.3") is Stability.stable
        assert Stability.of_version("preview:v1.2.3-4-gabc1234") is Stability.preview
        assert Stability.of_version("snapshot:v1.2.3") is Stability.snapshot

    def test_unknown_prefix_is_stable(self) -> None:
        assert Stability.of_version("nightly:v1") is Stability.stable

    def test_parse(self) -> None:
        assert Stability.parse("preview") is Stability.preview
        assert Stability.parse("Preview") is None
        assert Stability.parse("v1.0.0") is None

    def test_is_unstable(self) -> None:
        assert not Stability.stable.is_unstable
        assert Stability.preview.is_unstable
        assert Stability.snapshot.is_unstable


def test_unstable_version() -> None:
    assert unstable_version(Stability.preview, "v1.2.0-3-gabc1234\n") == "preview:v1.2.0-3-gabc1234"


def test_release_fields() -> None:
    release = Release(
        version="v1.0.0",
        stability=Stability.stable,
        release_date=100,
        phar_download_url="https://example.com/a.phar",
    )
    assert release.field("version_name") == "v1.0.0"
    assert release.field("release_date") == 100
    assert release.field("phar_download_url") == "https://example.com/a.phar"
    assert release.field("signature_download_url") == ""
    assert release.download_urls == ("https://example.com/a.phar",)
    assert release.to_record() == {
        "release_date": 100,
        "phar_download_url": "https://example.com/a.phar",
        "signature_download_url": "",
    }


def test_latest_version_as_dict() -> None:
    latest = LatestVersion(version="v2.1", path="/download/v2.1/svn-buddy.phar", min_platform=50300)
    assert latest.as_dict() == {
        "path": "/download/v2.1/svn-buddy.phar",
        "version": "v2.1",
        "min-platform": 50300,
    }
