"""Tool installation: resolve, fetch, verify, extract, then lock.

The lock file is only written after extraction has fully succeeded. If
extraction fails, the previous installation (if any) is restored and the lock
file is untouched. If the lock write itself fails, the freshly extracted files
stay on disk and InstallStateError tells the caller the two are out of sync.
"""

import logging
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from toolshed.core.archive import ArchiveEngine
from toolshed.core.errors import FetchError, InstallStateError, ToolshedError
from toolshed.core.fetcher import RemoteFetcher
from toolshed.core.lock_store import LockStore
from toolshed.core.models import REGISTRY_SOURCE, InstalledTool, ToolDescriptor, ToolType
from toolshed.core.registry_service import RegistryService
from toolshed.core.time import Time

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".backup"


@dataclass(frozen=True)
class InstallResult:
    """Outcome of installing a single tool."""

    name: str
    version: str
    tool_type: ToolType
    install_path: Path
    skipped: bool
    previous_version: str | None = None
    integrity: str = ""

    @property
    def message(self) -> str:
        if self.skipped:
            return f"{self.name}@{self.version} is already installed"
        if self.previous_version is not None:
            return f"updated {self.name} from {self.previous_version} to {self.version}"
        return f"installed {self.name}@{self.version}"


@dataclass(frozen=True)
class InstallFailure:
    name: str
    error: Exception


def install_path_for(install_dir: Path, name: str, tool_type: ToolType) -> Path:
    """Return ``<install_dir>/<type>s/<name>``, e.g. ``.claude/agents/reviewer``.

    Raises:
        ValueError: If the name is not a single path component
    """
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise ValueError(f"Invalid tool name: {name!r}")
    return install_dir / f"{tool_type}s" / name


class Installer:
    """Installs registry tools into a type-scoped directory tree."""

    def __init__(
        self,
        *,
        registry: RegistryService,
        fetcher: RemoteFetcher,
        archive: ArchiveEngine,
        lock_store: LockStore,
        time: Time,
    ) -> None:
        self._registry = registry
        self._fetcher = fetcher
        self._archive = archive
        self._lock_store = lock_store
        self._time = time

    @property
    def install_dir(self) -> Path:
        return self._archive.base_dir

    def install_path(self, name: str, tool_type: ToolType) -> Path:
        return install_path_for(self.install_dir, name, tool_type)

    def install(
        self,
        name: str,
        version: str | None = None,
        *,
        tool_type: ToolType | None = None,
        force: bool = False,
    ) -> InstallResult:
        """Install ``name`` at ``version`` (latest when None).

        Args:
            name: Tool name in the registry
            version: Exact version to install, or None for the latest
            tool_type: Restrict lookup to one type (default: search all types)
            force: Reinstall even when the same version is already locked

        Raises:
            ToolNotFoundError / VersionNotFoundError: If the registry lacks the tool or version
            FetchError: If the archive cannot be fetched
            IntegrityMismatchError: If the archive does not match its declared digest
            ArchiveRejectedError: If the archive fails security checks
            ExtractionError: If an entry cannot be written to disk
            InstallStateError: If files were extracted but the lock write failed
        """
        if not name:
            raise ValueError("tool name cannot be empty")

        descriptor = self._resolve_descriptor(name, tool_type)
        release = descriptor.resolve_version(version)
        destination = self.install_path(name, descriptor.type)

        locked = self._lock_store.load().tools.get(name)
        if locked is not None and locked.version == release.version and not force:
            logger.debug("%s@%s already installed, skipping", name, release.version)
            return InstallResult(
                name=name,
                version=release.version,
                tool_type=descriptor.type,
                install_path=destination,
                skipped=True,
                previous_version=locked.version,
                integrity=locked.integrity,
            )

        with tempfile.TemporaryDirectory(prefix="toolshed-install-") as tmp:
            archive_path = Path(tmp) / f"{name}.zip"
            archive_path.write_bytes(self._fetch_archive(release.file))

            if release.integrity:
                self._archive.verify(archive_path, release.integrity)
            digest = self._archive.hash_file(archive_path)

            self._extract_replacing(archive_path, destination)

        record = InstalledTool(
            version=release.version,
            type=descriptor.type,
            installed_at=self._time.now(),
            source=REGISTRY_SOURCE,
            integrity=digest,
        )
        try:
            self._lock_store.add_tool(name, record)
        except (OSError, ToolshedError) as e:
            raise InstallStateError(name, destination, e) from e

        self._record_registry_identity()

        logger.debug("Installed %s@%s to %s", name, release.version, destination)
        return InstallResult(
            name=name,
            version=release.version,
            tool_type=descriptor.type,
            install_path=destination,
            skipped=False,
            previous_version=locked.version if locked is not None else None,
            integrity=digest,
        )

    def install_many(
        self,
        requests: Sequence[tuple[str, str | None]],
        *,
        tool_type: ToolType | None = None,
        force: bool = False,
    ) -> tuple[list[InstallResult], list[InstallFailure]]:
        """Install each ``(name, version)`` independently; one failure does not stop the rest."""
        results: list[InstallResult] = []
        failures: list[InstallFailure] = []
        for name, version in requests:
            try:
                results.append(self.install(name, version, tool_type=tool_type, force=force))
            except (ToolshedError, OSError, ValueError) as e:
                logger.debug("Install of %s failed: %s", name, e)
                failures.append(InstallFailure(name=name, error=e))
        return results, failures

    def uninstall(self, name: str) -> InstalledTool:
        """Remove a tool's files and its lock entry.

        Raises:
            LockEntryNotFoundError: If the tool is not installed
        """
        record = self._lock_store.get_tool(name)
        self._archive.remove_dir(self.install_path(name, record.type))
        self._lock_store.remove_tool(name)
        return record

    def is_installed(self, name: str) -> bool:
        return self._lock_store.is_installed(name)

    def installed_version(self, name: str) -> str:
        return self._lock_store.get_tool(name).version

    def list_installed(self) -> dict[str, InstalledTool]:
        return self._lock_store.list_tools()

    def verify_installation(self, name: str) -> Path:
        """Check that a locked tool has a non-empty install directory.

        Raises:
            LockEntryNotFoundError: If the tool is not in the lock file
            FileNotFoundError: If the directory is missing or empty
        """
        record = self._lock_store.get_tool(name)
        destination = self.install_path(name, record.type)
        if not destination.is_dir():
            raise FileNotFoundError(f"Installation directory does not exist: {destination}")
        if not any(destination.iterdir()):
            raise FileNotFoundError(f"Installation directory is empty: {destination}")
        return destination

    def _resolve_descriptor(self, name: str, tool_type: ToolType | None) -> ToolDescriptor:
        if tool_type is None:
            return self._registry.find_tool(name)
        return self._registry.get_tool(name, tool_type)

    def _fetch_archive(self, location: str) -> bytes:
        try:
            return self._fetcher.fetch_archive(location)
        except FetchError:
            raise
        except Exception as e:
            raise FetchError(location, str(e)) from e

    def _extract_replacing(self, archive_path: Path, destination: Path) -> None:
        """Extract over ``destination``, restoring the previous tree on failure."""
        backup = destination.with_name(destination.name + BACKUP_SUFFIX)
        self._archive.ensure_dir(destination.parent)
        self._archive.remove_dir(backup)

        had_previous = destination.exists()
        if had_previous:
            destination.rename(backup)

        try:
            self._archive.extract(archive_path, destination)
        except Exception:
            self._archive.remove_dir(destination)
            if had_previous:
                backup.rename(destination)
            raise

        if had_previous:
            self._archive.remove_dir(backup)

    def _record_registry_identity(self) -> None:
        if self._lock_store.registry():
            return
        try:
            self._lock_store.set_registry(self._registry.registry_identity)
        except (OSError, ToolshedError) as e:
            logger.warning("Failed to record registry in lock file: %s", e)
