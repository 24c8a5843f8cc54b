"""Persistence for the lock document (.claude-lock.json).

Every mutation is a full read-modify-write cycle: load the whole document,
apply one change, validate the result, and atomically replace the file. A
process-local mutex serializes those cycles so concurrent installs cannot
lose each other's updates.
"""

import json
import logging
import threading
from pathlib import Path

from toolshed.core.atomic import write_atomic
from toolshed.core.models import InstalledTool, LockDocument, parse_lock_document
from toolshed.core.time import Time

logger = logging.getLogger(__name__)

LOCK_FILE_NAME = ".claude-lock.json"


class LockStore:
    """Thread-safe CRUD over the lock document on disk."""

    def __init__(self, lock_path: Path, time: Time) -> None:
        self._lock_path = lock_path
        self._time = time
        self._mutex = threading.Lock()

    @property
    def path(self) -> Path:
        return self._lock_path

    def exists(self) -> bool:
        return self._lock_path.exists()

    def load(self) -> LockDocument:
        """Load the lock document, or a fresh empty one if the file is missing.

        Raises:
            InvalidDocumentError: If the file exists but cannot be parsed
        """
        with self._mutex:
            return self._load_unlocked()

    def save(self, document: LockDocument) -> None:
        """Validate and atomically write a complete lock document."""
        with self._mutex:
            self._save_unlocked(document)

    def add_tool(self, name: str, record: InstalledTool) -> LockDocument:
        """Add or replace the record for ``name``."""
        _require_name(name)
        with self._mutex:
            document = self._load_unlocked().with_tool(name, record, self._time.now())
            self._save_unlocked(document)
            logger.debug("Locked %s@%s", name, record.version)
            return document

    def update_tool(self, name: str, record: InstalledTool) -> LockDocument:
        """Replace the record for an already-locked ``name``.

        Raises:
            LockEntryNotFoundError: If ``name`` is not in the lock file
        """
        _require_name(name)
        with self._mutex:
            current = self._load_unlocked()
            current.get_tool(name)
            document = current.with_tool(name, record, self._time.now())
            self._save_unlocked(document)
            return document

    def remove_tool(self, name: str) -> LockDocument:
        """Remove ``name`` from the lock file.

        Raises:
            LockEntryNotFoundError: If ``name`` is not in the lock file
        """
        _require_name(name)
        with self._mutex:
            document = self._load_unlocked().without_tool(name, self._time.now())
            self._save_unlocked(document)
            logger.debug("Unlocked %s", name)
            return document

    def get_tool(self, name: str) -> InstalledTool:
        """Raises LockEntryNotFoundError if ``name`` is not locked."""
        _require_name(name)
        return self.load().get_tool(name)

    def list_tools(self) -> dict[str, InstalledTool]:
        return dict(self.load().tools)

    def is_installed(self, name: str) -> bool:
        _require_name(name)
        return name in self.load().tools

    def registry(self) -> str:
        return self.load().registry

    def set_registry(self, registry: str) -> LockDocument:
        if not registry:
            raise ValueError("registry URL cannot be empty")
        with self._mutex:
            document = self._load_unlocked().with_registry(registry, self._time.now())
            self._save_unlocked(document)
            return document

    def _load_unlocked(self) -> LockDocument:
        if not self._lock_path.exists():
            return LockDocument.empty(self._time.now())
        return parse_lock_document(self._lock_path.read_bytes())

    def _save_unlocked(self, document: LockDocument) -> None:
        # Round-trip through validation; model_copy() does not re-validate
        data = document.model_dump(mode="json")
        validated = parse_lock_document(data)
        data = validated.model_dump(mode="json")
        data["tools"] = dict(sorted(data["tools"].items()))
        write_atomic(self._lock_path, (json.dumps(data, indent=2) + "\n").encode("utf-8"))


def _require_name(name: str) -> None:
    if not name:
        raise ValueError("tool name cannot be empty")
