"""Application context with dependency injection."""

import os
from dataclasses import dataclass
from pathlib import Path

from toolshed.core.archive import ArchiveEngine, ArchiveLimits
from toolshed.core.config import FilesystemConfigOps, ToolshedConfig
from toolshed.core.fetcher import GhRemoteFetcher, RemoteFetcher, UnconfiguredRemoteFetcher
from toolshed.core.installer import Installer
from toolshed.core.lock_store import LockStore
from toolshed.core.registry_cache import RegistryCache
from toolshed.core.registry_service import RegistryService
from toolshed.core.time import RealTime, Time
from toolshed.core.updater import Updater


@dataclass(frozen=True)
class ToolshedContext:
    """Immutable context holding all dependencies for toolshed operations.

    Created at CLI entry point via create_context() and threaded through the
    application via Click's context system. Frozen to prevent accidental
    modification at runtime.

    Attributes:
        config: Merged user and project configuration
        project_dir: Directory the install dir and lock file are relative to
        time: Clock for lock timestamps and cache expiry
        fetcher: Remote source of the registry document and archives
        cache: On-disk registry cache
        lock_store: Lock file persistence
        archive: Archive engine rooted at the install directory
        registry: Registry lookup (memory, disk cache, remote)
        installer: Install/uninstall orchestration
        updater: Outdated detection and updates
        debug: Debug flag for error handling (full stack traces)
    """

    config: ToolshedConfig
    project_dir: Path
    time: Time
    fetcher: RemoteFetcher
    cache: RegistryCache
    lock_store: LockStore
    archive: ArchiveEngine
    registry: RegistryService
    installer: Installer
    updater: Updater
    debug: bool

    @staticmethod
    def build(
        *,
        config: ToolshedConfig,
        project_dir: Path,
        time: Time,
        fetcher: RemoteFetcher,
        cache_dir: Path | None = None,
        archive_limits: ArchiveLimits | None = None,
        debug: bool = False,
    ) -> "ToolshedContext":
        """Wire all components from config and the injected integrations."""
        cache = RegistryCache(
            time,
            cache_dir=cache_dir if cache_dir is not None else config.cache_path(),
            ttl=config.cache_ttl,
        )
        lock_store = LockStore(config.lock_path(project_dir), time)
        archive = ArchiveEngine(config.install_path(project_dir), archive_limits)
        registry = RegistryService(fetcher, cache)
        installer = Installer(
            registry=registry,
            fetcher=fetcher,
            archive=archive,
            lock_store=lock_store,
            time=time,
        )
        return ToolshedContext(
            config=config,
            project_dir=project_dir,
            time=time,
            fetcher=fetcher,
            cache=cache,
            lock_store=lock_store,
            archive=archive,
            registry=registry,
            installer=installer,
            updater=Updater(registry, lock_store, installer),
            debug=debug,
        )

    @staticmethod
    def for_test(
        project_dir: Path,
        fetcher: RemoteFetcher | None = None,
        time: Time | None = None,
        config: ToolshedConfig | None = None,
        archive_limits: ArchiveLimits | None = None,
        debug: bool = False,
    ) -> "ToolshedContext":
        """Create test context with fakes for any unspecified integration.

        The registry cache lives under ``project_dir`` so tests never touch
        the user's home directory.

        Example:
            >>> fetcher = FakeRemoteFetcher(registry=registry_doc, archives={...})
            >>> ctx = ToolshedContext.for_test(tmp_path, fetcher=fetcher)
        """
        from tests.fakes.fetcher import FakeRemoteFetcher
        from tests.fakes.time import FakeTime

        return ToolshedContext.build(
            config=config if config is not None else ToolshedConfig(),
            project_dir=project_dir,
            time=time if time is not None else FakeTime(),
            fetcher=fetcher if fetcher is not None else FakeRemoteFetcher(),
            cache_dir=project_dir / ".toolshed-cache",
            archive_limits=archive_limits,
            debug=debug,
        )


def create_fetcher(config: ToolshedConfig) -> RemoteFetcher:
    if config.registry_url is None:
        return UnconfiguredRemoteFetcher()
    return GhRemoteFetcher(config.registry_url, branch=config.registry_branch)


def create_context(*, debug: bool, project_dir: Path | None = None) -> ToolshedContext:
    """Create production context with real implementations.

    Called at CLI entry point to create the context for the entire command
    execution.

    Raises:
        ValueError: If the configuration is malformed
    """
    if project_dir is None:
        project_dir = Path(os.getcwd())
    config = FilesystemConfigOps(project_dir).load()
    return ToolshedContext.build(
        config=config,
        project_dir=project_dir,
        time=RealTime(),
        fetcher=create_fetcher(config),
        debug=debug,
    )
