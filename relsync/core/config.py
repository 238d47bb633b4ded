"""Typed configuration loading and access.

The config file is TOML (``relsync.toml``) and is turned into frozen
dataclasses. A handful of values can be overridden from the environment,
mirroring how the deployed service reads its bucket name.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_str_dict,
    get_command_list,
    get_int,
    get_str,
    get_str_list,
    get_table,
)

__all__ = [
    "ArtifactConfig",
    "Config",
    "ConfigError",
    "DownloadConfig",
    "RemoteConfig",
    "RepositoryConfig",
    "StorageConfig",
    "StoreConfig",
    "load_config",
    "resolve_config_path",
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_NAME",
]

CONFIG_ENV_VAR = "RELSYNC_CONFIG"
DEFAULT_CONFIG_NAME = "relsync.toml"

DEFAULT_ARTIFACT_NAME = "svn-buddy.phar"
DEFAULT_MIN_PLATFORM = 50300
DEFAULT_STORE_PATH = Path("releases.json")
DEFAULT_REPOSITORY_PATH = Path("workspace/repository")
DEFAULT_BUILD_DIR = Path("workspace/snapshots")


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or is incomplete."""

    message: str
    path: Path | None = None
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class StoreConfig:
    path: Path = DEFAULT_STORE_PATH


@dataclass(frozen=True, slots=True)
class RepositoryConfig:
    """Local clone of the project releases are built from."""

    path: Path = DEFAULT_REPOSITORY_PATH
    branch: str = "master"


@dataclass(frozen=True, slots=True)
class RemoteConfig:
    """Upstream repository whose published releases are mirrored as stable."""

    owner: str = ""
    repo: str = ""

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True, slots=True)
class ArtifactConfig:
    """How a distributable is produced from a checked-out commit.

    ``command`` may use ``{build_dir}`` and ``{stability}``; ``smoke_test``
    may use ``{artifact}``. Commands run inside the repository clone.
    """

    name: str = DEFAULT_ARTIFACT_NAME
    signature: str = f"{DEFAULT_ARTIFACT_NAME}.sig"
    build_dir: Path = DEFAULT_BUILD_DIR
    prepare: tuple[tuple[str, ...], ...] = ()
    command: tuple[str, ...] = ()
    smoke_test: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class StorageConfig:
    bucket: str = ""
    region: str | None = None
    public_url_base: str | None = None


@dataclass(frozen=True, slots=True)
class DownloadConfig:
    """Values published alongside the latest versions listing."""

    min_platform: int = DEFAULT_MIN_PLATFORM
    path_prefix: str = "/download"


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    store: StoreConfig = field(default_factory=StoreConfig)
    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    artifact: ArtifactConfig = field(default_factory=ArtifactConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    download: DownloadConfig = field(default_factory=DownloadConfig)
    timezone: str = "UTC"

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, object],
        *,
        base_dir: Path,
        env: Mapping[str, str] | None = None,
    ) -> Config:
        """Create Config from parsed TOML, applying environment overrides.

        Relative paths are anchored at ``base_dir`` (the config file's folder).
        """
        env = os.environ if env is None else env

        store: StrDict = get_table(data, "store") or {}
        repository: StrDict = get_table(data, "repository") or {}
        remote: StrDict = get_table(data, "remote") or {}
        artifact: StrDict = get_table(data, "artifact") or {}
        storage: StrDict = get_table(data, "storage") or {}
        download: StrDict = get_table(data, "download") or {}

        def _path(value: str | None, default: Path) -> Path:
            p = Path(value).expanduser() if value else default
            return p if p.is_absolute() else base_dir / p

        artifact_name = get_str(artifact, "name") or DEFAULT_ARTIFACT_NAME
        min_platform = get_int(download, "min_platform")
        smoke_test = get_str_list(artifact, "smoke_test")

        return cls(
            store=StoreConfig(path=_path(get_str(store, "path"), DEFAULT_STORE_PATH)),
            repository=RepositoryConfig(
                path=_path(get_str(repository, "path"), DEFAULT_REPOSITORY_PATH),
                branch=get_str(repository, "branch") or "master",
            ),
            remote=RemoteConfig(
                owner=get_str(remote, "owner") or "",
                repo=get_str(remote, "repo") or "",
            ),
            artifact=ArtifactConfig(
                name=artifact_name,
                signature=get_str(artifact, "signature") or f"{artifact_name}.sig",
                build_dir=_path(get_str(artifact, "build_dir"), DEFAULT_BUILD_DIR),
                prepare=tuple(tuple(c) for c in get_command_list(artifact, "prepare") or []),
                command=tuple(get_str_list(artifact, "command") or []),
                smoke_test=tuple(smoke_test) if smoke_test else None,
            ),
            storage=StorageConfig(
                bucket=env.get("S3_BUCKET") or get_str(storage, "bucket") or "",
                region=env.get("S3_REGION") or get_str(storage, "region"),
                public_url_base=get_str(storage, "public_url_base"),
            ),
            download=DownloadConfig(
                min_platform=DEFAULT_MIN_PLATFORM if min_platform is None else min_platform,
                path_prefix=(get_str(download, "path_prefix") or "/download").rstrip("/"),
            ),
            timezone=get_str(data, "timezone") or "UTC",
        )

    def missing_required(self) -> list[str]:
        """Names of required settings that are empty."""
        missing: list[str] = []
        if not self.remote.owner:
            missing.append("remote.owner")
        if not self.remote.repo:
            missing.append("remote.repo")
        if not self.storage.bucket:
            missing.append("storage.bucket (or S3_BUCKET)")
        if not self.artifact.command:
            missing.append("artifact.command")
        return missing


def resolve_config_path(explicit: Path | None, env: Mapping[str, str] | None = None) -> Path:
    """Pick the config file: explicit flag, then env var, then ./relsync.toml."""
    env = os.environ if env is None else env
    if explicit is not None:
        return explicit.expanduser().resolve()
    from_env = env.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env).expanduser().resolve()
    return (Path.cwd() / DEFAULT_CONFIG_NAME).resolve()


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(
            ConfigError(
                f"Config file not found: {path}",
                path=path,
                hint=f"Pass --config or set {CONFIG_ENV_VAR}",
            )
        )
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(
    path: Path,
    *,
    env: Mapping[str, str] | None = None,
) -> Result[Config, ConfigError]:
    """Load, parse and validate configuration.

    Args:
        path: Path to relsync.toml
        env: Environment used for overrides (defaults to os.environ)

    Returns:
        Ok(Config) when every required value is present, Err(ConfigError) otherwise
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        config = Config.from_dict(result.value, base_dir=path.parent, env=env)
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))

    missing = config.missing_required()
    if missing:
        return Err(
            ConfigError(
                f"Missing required config: {', '.join(missing)}",
                path=path,
            )
        )

    try:
        config.tz
    except (ZoneInfoNotFoundError, ValueError):
        return Err(ConfigError(f"Unknown timezone: {config.timezone}", path=path))

    return Ok(config)
