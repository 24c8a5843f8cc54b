"""Archive engine for tool packages.

Extraction of untrusted ZIP archives is a two-pass protocol:

1. ``scan()`` inspects every entry's name, type and declared sizes and either
   returns an ArchiveScan or raises an ArchiveRejectedError subclass.
2. ``_write_entries()`` runs only on a scan that passed, re-checking each
   resolved path and bounding the bytes actually written.

No file or directory is created under the destination before the scan passes,
so a rejected archive leaves no partial output.
"""

import hashlib
import logging
import os
import posixpath
import shutil
import stat
import zipfile
from collections.abc import Iterator
from dataclasses import dataclass, replace
from pathlib import Path, PureWindowsPath

from toolshed.core.errors import (
    ArchiveTooLargeError,
    CompressionBombError,
    CorruptArchiveError,
    EmptyArchiveError,
    EntryTooLargeError,
    ExtractionError,
    IntegrityMismatchError,
    PathTraversalError,
    SymlinkEntryError,
    TooManyEntriesError,
)

logger = logging.getLogger(__name__)

MAX_ENTRIES = 10_000
MAX_ENTRY_SIZE = 500 * 1024 * 1024  # 500MB
MAX_TOTAL_SIZE = 1024 * 1024 * 1024  # 1GB
MAX_COMPRESSION_RATIO = 100.0

COPY_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class ArchiveLimits:
    """Security limits applied when scanning an archive."""

    max_entries: int = MAX_ENTRIES
    max_entry_size: int = MAX_ENTRY_SIZE
    max_total_size: int = MAX_TOTAL_SIZE
    max_compression_ratio: float = MAX_COMPRESSION_RATIO


@dataclass(frozen=True)
class ArchiveScan:
    """Result of a successful pre-scan."""

    entries: list[zipfile.ZipInfo]
    total_uncompressed: int
    total_compressed: int

    @property
    def ratio(self) -> float:
        if self.total_compressed == 0:
            return 0.0
        return self.total_uncompressed / self.total_compressed

    @property
    def file_count(self) -> int:
        return sum(1 for entry in self.entries if not entry.is_dir())


def check_entry_name(name: str) -> None:
    """Reject archive entry names that could escape the extraction root.

    Raises:
        PathTraversalError: If the name is empty, absolute, starts with a
            separator, carries a drive letter, or has a ``..`` segment
    """
    if not name:
        raise PathTraversalError(name, "empty entry name")
    if name.startswith(("/", "\\")):
        raise PathTraversalError(name, "leading separator")
    if PureWindowsPath(name).drive:
        raise PathTraversalError(name, "absolute path")

    unified = name.replace("\\", "/")
    if ".." in unified.split("/"):
        raise PathTraversalError(name, "parent directory segment")

    normalized = posixpath.normpath(unified)
    if posixpath.isabs(normalized) or os.path.isabs(normalized):
        raise PathTraversalError(name, "absolute path")
    if normalized == ".." or normalized.startswith("../"):
        raise PathTraversalError(name, "parent directory segment")


def is_symlink_entry(info: zipfile.ZipInfo) -> bool:
    """Check the Unix mode bits stored in the upper half of external_attr."""
    mode = info.external_attr >> 16
    return stat.S_ISLNK(mode)


class ArchiveEngine:
    """Extracts, creates, hashes and verifies tool archives under a base directory."""

    def __init__(self, base_dir: Path, limits: ArchiveLimits | None = None) -> None:
        """Create the engine, creating ``base_dir`` if it does not exist.

        Args:
            base_dir: Root that every extraction and directory operation must stay under
            limits: Security limits (defaults to ArchiveLimits())
        """
        base_dir.mkdir(parents=True, exist_ok=True)
        self._base_dir = Path(os.path.abspath(base_dir))
        self._limits = limits if limits is not None else ArchiveLimits()

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    @property
    def limits(self) -> ArchiveLimits:
        return self._limits

    def with_limits(
        self,
        *,
        max_entries: int | None = None,
        max_entry_size: int | None = None,
        max_total_size: int | None = None,
        max_compression_ratio: float | None = None,
    ) -> "ArchiveEngine":
        """Return an engine with adjusted limits. Non-positive values are ignored."""
        changes: dict[str, int | float] = {}
        if max_entries is not None and max_entries > 0:
            changes["max_entries"] = max_entries
        if max_entry_size is not None and max_entry_size > 0:
            changes["max_entry_size"] = max_entry_size
        if max_total_size is not None and max_total_size > 0:
            changes["max_total_size"] = max_total_size
        if max_compression_ratio is not None and max_compression_ratio > 0:
            changes["max_compression_ratio"] = max_compression_ratio
        return ArchiveEngine(self._base_dir, replace(self._limits, **changes))

    # Extraction

    def scan(self, archive: zipfile.ZipFile, archive_path: Path) -> ArchiveScan:
        """Validate every entry without writing anything.

        Raises:
            ArchiveRejectedError: The specific subclass for the first failed check
        """
        entries = archive.infolist()
        limits = self._limits

        if not entries:
            raise EmptyArchiveError(archive_path)
        if len(entries) > limits.max_entries:
            raise TooManyEntriesError(len(entries), limits.max_entries)

        total_uncompressed = 0
        total_compressed = 0
        for info in entries:
            check_entry_name(info.filename)
            if is_symlink_entry(info):
                raise SymlinkEntryError(info.filename)
            if info.file_size > limits.max_entry_size:
                raise EntryTooLargeError(info.filename, info.file_size, limits.max_entry_size)
            total_uncompressed += info.file_size
            total_compressed += info.compress_size

        if total_uncompressed > limits.max_total_size:
            raise ArchiveTooLargeError(total_uncompressed, limits.max_total_size)

        scan = ArchiveScan(
            entries=entries,
            total_uncompressed=total_uncompressed,
            total_compressed=total_compressed,
        )
        if total_compressed > 0 and scan.ratio > limits.max_compression_ratio:
            raise CompressionBombError(scan.ratio, limits.max_compression_ratio)

        logger.debug(
            "Scanned %s: entries=%d, uncompressed=%d, compressed=%d",
            archive_path,
            len(entries),
            total_uncompressed,
            total_compressed,
        )
        return scan

    def extract(self, archive_path: Path, destination: Path) -> ArchiveScan:
        """Extract ``archive_path`` into ``destination`` after a full pre-scan.

        Args:
            archive_path: ZIP file to extract
            destination: Directory to extract into (must be under base_dir)

        Returns:
            The ArchiveScan describing what was extracted

        Raises:
            PathTraversalError: If destination is outside base_dir
            ArchiveRejectedError: If any entry fails validation
            ExtractionError: If an entry cannot be written to disk
        """
        self.validate_path(destination)

        try:
            archive = zipfile.ZipFile(archive_path)
        except zipfile.BadZipFile as e:
            raise CorruptArchiveError(archive_path, str(e)) from e

        with archive:
            scan = self.scan(archive, archive_path)
            destination.mkdir(parents=True, exist_ok=True)
            self._write_entries(archive, archive_path, scan, destination)

        logger.debug("Extracted %d entries to %s", len(scan.entries), destination)
        return scan

    def _write_entries(
        self,
        archive: zipfile.ZipFile,
        archive_path: Path,
        scan: ArchiveScan,
        destination: Path,
    ) -> None:
        root = os.path.abspath(destination)
        for info in scan.entries:
            target = self._contained_target(root, info.filename)
            try:
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                self._copy_bounded(archive, archive_path, info, target)
            except OSError as e:
                raise ExtractionError(archive_path, info.filename, e) from e

    def _contained_target(self, root: str, name: str) -> Path:
        # Lexical re-check in case normalization differs between scan and write
        target = os.path.normpath(os.path.join(root, name.replace("\\", "/")))
        if target != root and not target.startswith(root + os.sep):
            raise PathTraversalError(name, f"escapes destination {root}")
        return Path(target)

    def _copy_bounded(
        self,
        archive: zipfile.ZipFile,
        archive_path: Path,
        info: zipfile.ZipInfo,
        target: Path,
    ) -> None:
        limit = self._limits.max_entry_size
        written = 0
        try:
            with archive.open(info) as src, open(target, "wb") as dst:
                while chunk := src.read(COPY_CHUNK_SIZE):
                    written += len(chunk)
                    if written > limit:
                        raise EntryTooLargeError(info.filename, written, limit)
                    dst.write(chunk)
        except zipfile.BadZipFile as e:
            _discard_partial(target)
            raise CorruptArchiveError(archive_path, f"{info.filename}: {e}") from e
        except BaseException:
            _discard_partial(target)
            raise

    # Creation

    def create(self, source_dir: Path, archive_path: Path) -> int:
        """Package ``source_dir`` into a ZIP archive.

        Dot-prefixed files and directories below the root are skipped, as are
        symlinks. Entry names are relative and always use forward slashes.
        Directories are stored, files are deflated.

        Returns:
            Number of entries written

        Raises:
            NotADirectoryError: If source_dir is not a directory
        """
        if not source_dir.is_dir():
            raise NotADirectoryError(f"Source path is not a directory: {source_dir}")

        count = 0
        with zipfile.ZipFile(archive_path, "w") as archive:
            for path in _iter_source_tree(source_dir):
                arcname = path.relative_to(source_dir).as_posix()
                if path.is_dir():
                    archive.write(path, arcname + "/", compress_type=zipfile.ZIP_STORED)
                else:
                    archive.write(path, arcname, compress_type=zipfile.ZIP_DEFLATED)
                count += 1

        logger.debug("Created %s with %d entries from %s", archive_path, count, source_dir)
        return count

    # Integrity

    def hash_file(self, path: Path) -> str:
        """Return the lowercase hex SHA-256 of a file, read in chunks."""
        with open(path, "rb") as f:
            return hashlib.file_digest(f, "sha256").hexdigest()

    def hash_bytes(self, data: bytes) -> str:
        return hashlib.sha256(data).hexdigest()

    def verify(self, path: Path, expected: str) -> None:
        """Check a file against an expected SHA-256 digest (case-insensitive).

        Raises:
            IntegrityMismatchError: If the digests differ
            OSError: If the file cannot be read
        """
        actual = self.hash_file(path)
        if actual.lower() != expected.strip().lower():
            raise IntegrityMismatchError(path, expected, actual)

    # Directory primitives

    def validate_path(self, path: Path) -> Path:
        """Ensure ``path`` lies within base_dir after lexical normalization.

        Returns:
            The absolute, normalized path

        Raises:
            PathTraversalError: If the path resolves outside base_dir
        """
        candidate = os.path.abspath(path)
        reason = f"outside base directory {self._base_dir}"
        try:
            relative = os.path.relpath(candidate, self._base_dir)
        except ValueError:
            # Different drives on Windows
            raise PathTraversalError(str(path), reason) from None
        if relative == os.pardir or relative.startswith(os.pardir + os.sep):
            raise PathTraversalError(str(path), reason)
        return Path(candidate)

    def ensure_dir(self, path: Path) -> None:
        self.validate_path(path)
        path.mkdir(parents=True, exist_ok=True)

    def remove_dir(self, path: Path) -> None:
        """Remove a directory tree under base_dir. Missing paths are a no-op."""
        self.validate_path(path)
        if path.exists():
            shutil.rmtree(path)

    def dir_size(self, path: Path) -> int:
        self.validate_path(path)
        total = 0
        for dirpath, _dirnames, filenames in os.walk(path):
            for filename in filenames:
                total += (Path(dirpath) / filename).stat().st_size
        return total


def _iter_source_tree(root: Path) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        dirnames[:] = sorted(
            d for d in dirnames if not d.startswith(".") and not (current / d).is_symlink()
        )
        if current != root:
            yield current
        for filename in sorted(filenames):
            path = current / filename
            if filename.startswith(".") or path.is_symlink():
                continue
            yield path


def _discard_partial(target: Path) -> None:
    if target.is_file():
        target.unlink(missing_ok=True)
