"""Outdated detection and updates for installed tools.

A tool is outdated when its locked version differs from the registry's latest
version for the same name and type. Versions are compared as opaque strings;
no ordering is implied, so a registry that rolls a tool back also reports it
as outdated.
"""

import logging
from dataclasses import dataclass

from toolshed.core.errors import NotFoundError, ToolshedError
from toolshed.core.installer import Installer
from toolshed.core.lock_store import LockStore
from toolshed.core.models import ToolType
from toolshed.core.registry_service import RegistryService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutdatedTool:
    name: str
    installed_version: str
    latest_version: str
    tool_type: ToolType


@dataclass(frozen=True)
class UpdateResult:
    """Per-tool outcome of an update run."""

    name: str
    success: bool
    skipped: bool
    old_version: str
    new_version: str
    message: str


class Updater:
    def __init__(
        self, registry: RegistryService, lock_store: LockStore, installer: Installer
    ) -> None:
        self._registry = registry
        self._lock_store = lock_store
        self._installer = installer

    def check_outdated(self) -> list[OutdatedTool]:
        """Compare every locked tool against the registry, sorted by name.

        Locked tools that the registry no longer lists are skipped.
        """
        document = self._registry.get()
        outdated: list[OutdatedTool] = []
        for name, record in sorted(self._lock_store.list_tools().items()):
            try:
                latest = document.get_tool(name, record.type)
            except NotFoundError:
                logger.debug("%s is no longer in the registry", name)
                continue
            if latest.version != record.version:
                outdated.append(
                    OutdatedTool(
                        name=name,
                        installed_version=record.version,
                        latest_version=latest.version,
                        tool_type=record.type,
                    )
                )
        return outdated

    def is_outdated(self, name: str) -> bool:
        """Raises LockEntryNotFoundError / ToolNotFoundError for unknown tools."""
        record = self._lock_store.get_tool(name)
        latest = self._registry.get_tool(name, record.type)
        return latest.version != record.version

    def outdated_count(self) -> int:
        return len(self.check_outdated())

    def update(self, name: str) -> UpdateResult:
        """Install the registry's latest version of a locked tool.

        Raises:
            LockEntryNotFoundError: If the tool is not installed
            ToolNotFoundError: If the registry no longer lists the tool
        """
        record = self._lock_store.get_tool(name)
        latest = self._registry.get_tool(name, record.type)

        if latest.version == record.version:
            return UpdateResult(
                name=name,
                success=True,
                skipped=True,
                old_version=record.version,
                new_version=record.version,
                message=f"{name} is already up to date ({record.version})",
            )

        self._installer.install(name, latest.version, tool_type=record.type)
        return UpdateResult(
            name=name,
            success=True,
            skipped=False,
            old_version=record.version,
            new_version=latest.version,
            message=f"updated {name} from {record.version} to {latest.version}",
        )

    def update_all(self) -> tuple[list[UpdateResult], list[Exception]]:
        """Update every outdated tool, continuing past individual failures."""
        results: list[UpdateResult] = []
        errors: list[Exception] = []
        try:
            outdated = self.check_outdated()
        except (ToolshedError, OSError) as e:
            return results, [e]

        for tool in outdated:
            try:
                results.append(self.update(tool.name))
            except (ToolshedError, OSError, ValueError) as e:
                logger.debug("Update of %s failed: %s", tool.name, e)
                errors.append(e)
                results.append(
                    UpdateResult(
                        name=tool.name,
                        success=False,
                        skipped=False,
                        old_version=tool.installed_version,
                        new_version=tool.latest_version,
                        message=str(e),
                    )
                )
        return results, errors
