"""Configuration data structures and loading.

Settings come from two TOML files, merged key by key:

1. ``~/.toolshed/config.toml`` (user-wide)
2. ``<project>/.toolshed.toml`` (project, wins over user-wide)

Missing files fall back to defaults. Config is loaded once at the CLI entry
point and stored in ToolshedContext.
"""

import tomllib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any

import tomlkit

from toolshed.core.lock_store import LOCK_FILE_NAME
from toolshed.core.registry_cache import DEFAULT_CACHE_TTL

GLOBAL_CONFIG_DIR = ".toolshed"
GLOBAL_CONFIG_FILE = "config.toml"
PROJECT_CONFIG_FILE = ".toolshed.toml"
DEFAULT_INSTALL_DIR = ".claude"
DEFAULT_BRANCH = "main"

_STRING_KEYS = ("registry_url", "registry_branch", "install_dir", "cache_dir", "lock_file")
_KNOWN_KEYS = (*_STRING_KEYS, "cache_ttl_seconds")


@dataclass(frozen=True)
class ToolshedConfig:
    """Immutable configuration.

    Relative ``install_dir`` and ``lock_file`` paths are resolved against the
    project directory; ``cache_dir`` of None means the user-wide default.
    """

    registry_url: str | None = None
    registry_branch: str = DEFAULT_BRANCH
    install_dir: str = DEFAULT_INSTALL_DIR
    cache_dir: str | None = None
    cache_ttl_seconds: int = int(DEFAULT_CACHE_TTL.total_seconds())
    lock_file: str = LOCK_FILE_NAME

    @property
    def cache_ttl(self) -> timedelta:
        return timedelta(seconds=self.cache_ttl_seconds)

    def install_path(self, project_dir: Path) -> Path:
        return project_dir / Path(self.install_dir).expanduser()

    def lock_path(self, project_dir: Path) -> Path:
        return project_dir / Path(self.lock_file).expanduser()

    def cache_path(self) -> Path | None:
        if self.cache_dir is None:
            return None
        return Path(self.cache_dir).expanduser()


class ConfigOps(ABC):
    """Abstract interface for config access.

    Provides dependency injection for config loading, enabling in-memory
    implementations for tests without touching the user's home directory.
    """

    @abstractmethod
    def load(self) -> ToolshedConfig:
        """Load the merged configuration.

        Raises:
            ValueError: If a config file is malformed or has invalid values
        """
        ...

    @abstractmethod
    def save_project(self, **values: Any) -> Path:
        """Write ``values`` into the project config file, keeping other keys.

        Returns:
            Path of the written file
        """
        ...


class FilesystemConfigOps(ConfigOps):
    """Production implementation reading TOML files from disk."""

    def __init__(self, project_dir: Path, home_dir: Path | None = None) -> None:
        self._project_dir = project_dir
        self._home_dir = home_dir if home_dir is not None else Path.home()

    @property
    def global_path(self) -> Path:
        return self._home_dir / GLOBAL_CONFIG_DIR / GLOBAL_CONFIG_FILE

    @property
    def project_path(self) -> Path:
        return self._project_dir / PROJECT_CONFIG_FILE

    def load(self) -> ToolshedConfig:
        merged: dict[str, Any] = {}
        for path in (self.global_path, self.project_path):
            merged.update(_read_config_file(path))
        return _build_config(merged)

    def save_project(self, **values: Any) -> Path:
        unknown = sorted(set(values) - set(_KNOWN_KEYS))
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")

        path = self.project_path
        if path.exists():
            document = tomlkit.parse(path.read_text(encoding="utf-8"))
        else:
            document = tomlkit.document()
        for key, value in values.items():
            document[key] = value

        # Validate the merged result before writing it
        _build_config(_read_config_text(tomlkit.dumps(document), path))
        path.write_text(tomlkit.dumps(document), encoding="utf-8")
        return path


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    return _read_config_text(path.read_text(encoding="utf-8"), path)


def _read_config_text(text: str, path: Path) -> dict[str, Any]:
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {path}: {e}") from e

    unknown = sorted(set(data) - set(_KNOWN_KEYS))
    if unknown:
        raise ValueError(f"Unknown keys in {path}: {', '.join(unknown)}")
    return data


def _build_config(data: dict[str, Any]) -> ToolshedConfig:
    for key in _STRING_KEYS:
        if key in data and (not isinstance(data[key], str) or not data[key]):
            raise ValueError(f"'{key}' must be a non-empty string")

    ttl = data.get("cache_ttl_seconds", int(DEFAULT_CACHE_TTL.total_seconds()))
    if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl <= 0:
        raise ValueError("'cache_ttl_seconds' must be a positive integer")

    return ToolshedConfig(
        registry_url=data.get("registry_url"),
        registry_branch=data.get("registry_branch", DEFAULT_BRANCH),
        install_dir=data.get("install_dir", DEFAULT_INSTALL_DIR),
        cache_dir=data.get("cache_dir"),
        cache_ttl_seconds=ttl,
        lock_file=data.get("lock_file", LOCK_FILE_NAME),
    )
