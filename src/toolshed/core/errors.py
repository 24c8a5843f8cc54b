"""Exception hierarchy for toolshed operations.

Every failure raised by the core derives from ToolshedError so the CLI error
boundary can render it without a stack trace. Subclasses carry the context
needed to act on the failure (entry name, sizes, paths, digests).
"""

from pathlib import Path


class ToolshedError(Exception):
    """Base class for all toolshed failures."""


class InvalidDocumentError(ToolshedError):
    """A registry, lock or cache document failed validation or parsing."""

    def __init__(self, kind: str, detail: str) -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(f"Invalid {kind}: {detail}")


# Archive security rejections


class ArchiveRejectedError(ToolshedError):
    """An archive failed a pre-scan or extraction security check."""


class CorruptArchiveError(ArchiveRejectedError):
    def __init__(self, archive: Path, detail: str) -> None:
        self.archive = archive
        self.detail = detail
        super().__init__(f"Not a readable archive: {archive} ({detail})")


class EmptyArchiveError(ArchiveRejectedError):
    def __init__(self, archive: Path) -> None:
        self.archive = archive
        super().__init__(f"Archive is empty: {archive}")


class TooManyEntriesError(ArchiveRejectedError):
    def __init__(self, count: int, maximum: int) -> None:
        self.count = count
        self.maximum = maximum
        super().__init__(f"Archive contains too many entries ({count}), maximum allowed: {maximum}")


class PathTraversalError(ArchiveRejectedError):
    """An entry name or a filesystem path escapes its allowed root."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Path traversal rejected ({reason}): {path}")


class SymlinkEntryError(ArchiveRejectedError):
    def __init__(self, entry: str) -> None:
        self.entry = entry
        super().__init__(f"Symlinks are not allowed in archives: {entry}")


class EntryTooLargeError(ArchiveRejectedError):
    def __init__(self, entry: str, size: int, maximum: int) -> None:
        self.entry = entry
        self.size = size
        self.maximum = maximum
        super().__init__(
            f"Entry {entry} is too large ({size} bytes), maximum allowed: {maximum} bytes"
        )


class ArchiveTooLargeError(ArchiveRejectedError):
    def __init__(self, total: int, maximum: int) -> None:
        self.total = total
        self.maximum = maximum
        super().__init__(
            f"Total uncompressed size ({total} bytes) exceeds maximum ({maximum} bytes)"
        )


class CompressionBombError(ArchiveRejectedError):
    def __init__(self, ratio: float, maximum: float) -> None:
        self.ratio = ratio
        self.maximum = maximum
        super().__init__(
            f"Compression ratio ({ratio:.2f}:1) exceeds maximum ({maximum:.2f}:1), "
            "possible compression bomb"
        )


class ExtractionError(ToolshedError):
    """An entry passed the pre-scan but could not be written to disk."""

    def __init__(self, archive: Path, entry: str, cause: OSError) -> None:
        self.archive = archive
        self.entry = entry
        self.cause = cause
        super().__init__(f"Failed to extract {entry} from {archive}: {cause}")


# Integrity


class IntegrityMismatchError(ToolshedError):
    def __init__(self, path: Path, expected: str, actual: str) -> None:
        self.path = path
        self.expected = expected
        self.actual = actual
        super().__init__(f"Integrity check failed for {path}: expected {expected}, got {actual}")


# Lookups


class NotFoundError(ToolshedError):
    """Something requested by name does not exist."""


class ToolNotFoundError(NotFoundError):
    def __init__(self, name: str, tool_type: str | None = None) -> None:
        self.name = name
        self.tool_type = tool_type
        if tool_type is None:
            super().__init__(f"Tool '{name}' not found in registry")
        else:
            super().__init__(f"Tool '{name}' of type '{tool_type}' not found in registry")


class VersionNotFoundError(NotFoundError):
    def __init__(self, name: str, version: str, available: list[str]) -> None:
        self.name = name
        self.version = version
        self.available = available
        super().__init__(
            f"Version {version} not found for tool '{name}'. "
            f"Available versions: {', '.join(available)}"
        )


class LockEntryNotFoundError(NotFoundError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool '{name}' not found in lock file")


class CacheNotFoundError(NotFoundError):
    def __init__(self, cache_dir: Path) -> None:
        self.cache_dir = cache_dir
        super().__init__(f"No cached registry in {cache_dir}")


class CacheExpiredError(ToolshedError):
    """The cache entry exists but is past its expiry time."""

    def __init__(self, expired_at: str) -> None:
        self.expired_at = expired_at
        super().__init__(f"Cached registry expired at {expired_at}")


# Orchestration


class InstallStateError(ToolshedError):
    """Files were extracted but the lock document could not be updated.

    The install directory is left on disk; the lock file does not record it.
    """

    def __init__(self, name: str, install_path: Path, cause: Exception) -> None:
        self.name = name
        self.install_path = install_path
        self.cause = cause
        super().__init__(
            f"Tool '{name}' was extracted to {install_path} but the lock file "
            f"could not be updated: {cause}"
        )


class FetchError(ToolshedError):
    def __init__(self, target: str, detail: str) -> None:
        self.target = target
        self.detail = detail
        super().__init__(f"Failed to fetch {target}: {detail}")
