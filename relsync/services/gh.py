"""Upstream release list, read through the GitHub CLI.

Only reads are performed. Transient API failures (timeouts, 5xx, rate
limiting) are retried here, inside the adapter; the engine itself never
retries.
"""

from __future__ import annotations

import json
import shutil
from datetime import datetime
from pathlib import Path
from time import sleep

from relsync.core.result import Err, Ok, Result
from relsync.core.structured import as_obj_list, as_str_dict, get_str
from relsync.platform.process import ProcessError
from relsync.platform.process import run as run_process
from relsync.release.errors import ReleaseError
from relsync.release.model import RemoteAsset, RemoteRelease
from relsync.services.timeouts import (
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
    GH_RELEASES_PAGE_SIZE,
    GH_TIMEOUT_SECONDS,
)

__all__ = ["GhReleaseList", "ensure_gh_available", "gh_api_json", "parse_release"]


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    return any(marker in text for marker in markers)


def _run_gh_read(
    *,
    cwd: Path,
    cmd: list[str],
    message: str,
    timeout: float = GH_TIMEOUT_SECONDS,
    retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
) -> Result[str, ReleaseError]:
    attempts = max(1, retry_attempts)
    last: ProcessError | None = None
    for attempt in range(attempts):
        result = run_process(cmd, cwd=cwd, timeout=timeout)
        if isinstance(result, Ok):
            return result

        last = result.error
        if attempt < attempts - 1 and _is_transient_gh_error(last):
            sleep(GH_READ_RETRY_DELAY_SECONDS * (attempt + 1))
            continue
        break

    hint = last.stderr.strip() if last is not None else None
    return Err(ReleaseError(kind="gh_failed", message=message, hint=hint or None))


def ensure_gh_available() -> Result[None, ReleaseError]:
    if shutil.which("gh") is None:
        return Err(
            ReleaseError(
                kind="gh_failed",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


def gh_api_json(*, cwd: Path, endpoint: str) -> Result[object, ReleaseError]:
    result = _run_gh_read(
        cwd=cwd,
        cmd=["gh", "api", endpoint],
        message=f"gh api failed: {endpoint}",
    )
    if isinstance(result, Err):
        return result

    try:
        obj: object = json.loads(result.value)
    except json.JSONDecodeError as e:
        return Err(
            ReleaseError(
                kind="gh_failed",
                message=f"gh api returned invalid JSON: {e}",
                hint=endpoint,
            )
        )

    return Ok(obj)


def _parse_timestamp(value: str) -> int | None:
    try:
        return int(datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp())
    except ValueError:
        return None


def parse_release(item: object) -> RemoteRelease | None:
    """Turn one GitHub release payload into a RemoteRelease.

    Drafts (no ``published_at``) and entries without a tag or title are
    dropped. The tag name is preferred over the release title.
    """
    d = as_str_dict(item)
    if d is None:
        return None

    name = get_str(d, "tag_name") or get_str(d, "name")
    published = get_str(d, "published_at")
    if name is None or published is None:
        return None

    published_at = _parse_timestamp(published)
    if published_at is None:
        return None

    assets: list[RemoteAsset] = []
    for raw_asset in as_obj_list(d.get("assets")) or []:
        asset = as_str_dict(raw_asset)
        if asset is None:
            continue
        asset_name = get_str(asset, "name")
        url = get_str(asset, "browser_download_url")
        if asset_name is None or url is None:
            continue
        assets.append(RemoteAsset(name=asset_name, url=url))

    return RemoteRelease(name=name, published_at=published_at, assets=tuple(assets))


class GhReleaseList:
    """Remote release list backed by ``gh api repos/<owner>/<repo>/releases``."""

    def __init__(self, *, cwd: Path, page_size: int = GH_RELEASES_PAGE_SIZE) -> None:
        self._cwd = cwd
        self._page_size = page_size

    def list_releases(self, owner: str, repo: str) -> Result[list[RemoteRelease], ReleaseError]:
        """All published releases, newest first as GitHub returns them."""
        available = ensure_gh_available()
        if isinstance(available, Err):
            return available

        out: list[RemoteRelease] = []
        page = 1
        while True:
            endpoint = f"repos/{owner}/{repo}/releases?per_page={self._page_size}&page={page}"
            obj = gh_api_json(cwd=self._cwd, endpoint=endpoint)
            if isinstance(obj, Err):
                return obj

            raw = as_obj_list(obj.value)
            if raw is None:
                return Err(
                    ReleaseError(
                        kind="gh_failed",
                        message=f"unexpected releases payload: {owner}/{repo}",
                        hint=endpoint,
                    )
                )

            for item in raw:
                release = parse_release(item)
                if release is not None:
                    out.append(release)

            if len(raw) < self._page_size:
                return Ok(out)
            page += 1
