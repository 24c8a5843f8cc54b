"""On-disk cache for the registry document with TTL-based expiry.

The cache directory holds two files: ``registry.json`` (the validated
document) and ``metadata.json`` (cached-at, expires-at, TTL). Metadata is the
source of truth for whether an entry exists: no metadata means no entry, and
stale metadata means an expired entry. Those two conditions raise different
exceptions so callers can choose between bootstrapping and force-refreshing.
"""

import json
import logging
import shutil
import threading
from collections.abc import Mapping
from datetime import timedelta
from pathlib import Path
from typing import Any

from toolshed.core.atomic import write_atomic
from toolshed.core.errors import CacheExpiredError, CacheNotFoundError
from toolshed.core.models import (
    CacheMetadata,
    RegistryDocument,
    parse_cache_metadata,
    parse_registry_document,
)
from toolshed.core.time import Time

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = timedelta(hours=1)
CACHE_DIR_NAME = ".toolshed-cache"
REGISTRY_CACHE_FILE = "registry.json"
METADATA_FILE = "metadata.json"


def default_cache_dir() -> Path:
    return Path.home() / CACHE_DIR_NAME


class RegistryCache:
    """Single-document cache guarded by one lock for payload and metadata."""

    def __init__(
        self,
        time: Time,
        cache_dir: Path | None = None,
        ttl: timedelta | None = None,
    ) -> None:
        """Create the cache, creating its directory if needed.

        Args:
            time: Clock used for cached-at and expiry checks
            cache_dir: Cache directory (defaults to ~/.toolshed-cache)
            ttl: Time-to-live for new entries; non-positive or None uses the default
        """
        self._time = time
        self._cache_dir = cache_dir if cache_dir is not None else default_cache_dir()
        self._ttl = ttl if ttl is not None and ttl > timedelta(0) else DEFAULT_CACHE_TTL
        self._lock = threading.RLock()
        self._cache_dir.mkdir(parents=True, exist_ok=True)

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    @property
    def ttl(self) -> timedelta:
        with self._lock:
            return self._ttl

    @ttl.setter
    def ttl(self, value: timedelta) -> None:
        # Applies to future writes; entries already on disk keep their expiry
        with self._lock:
            if value > timedelta(0):
                self._ttl = value

    @property
    def _payload_path(self) -> Path:
        return self._cache_dir / REGISTRY_CACHE_FILE

    @property
    def _metadata_path(self) -> Path:
        return self._cache_dir / METADATA_FILE

    def get(self) -> RegistryDocument:
        """Return the cached registry document.

        Raises:
            CacheNotFoundError: If nothing is cached
            CacheExpiredError: If the entry is past its expiry time
            InvalidDocumentError: If the cached files are corrupt
        """
        with self._lock:
            metadata = self._read_metadata()
            if metadata is None:
                raise CacheNotFoundError(self._cache_dir)
            if metadata.is_expired(self._time.now()):
                raise CacheExpiredError(metadata.expires_at.isoformat())
            if not self._payload_path.exists():
                raise CacheNotFoundError(self._cache_dir)
            return parse_registry_document(self._payload_path.read_bytes())

    def set(
        self,
        document: RegistryDocument | Mapping[str, Any],
        etag: str | None = None,
    ) -> CacheMetadata:
        """Validate and store a registry document.

        An invalid document leaves any existing entry untouched.

        Returns:
            The metadata written for the new entry

        Raises:
            InvalidDocumentError: If the document fails validation
        """
        validated = parse_registry_document(
            document.model_dump(mode="json")
            if isinstance(document, RegistryDocument)
            else document
        )
        payload = json.dumps(validated.model_dump(mode="json"), indent=2).encode("utf-8")

        with self._lock:
            metadata = CacheMetadata.create(self._time.now(), self._ttl, etag=etag)
            write_atomic(self._payload_path, payload)
            write_atomic(
                self._metadata_path,
                json.dumps(metadata.model_dump(mode="json"), indent=2).encode("utf-8"),
            )
            logger.debug("Cached registry until %s", metadata.expires_at.isoformat())
            return metadata

    def is_valid(self) -> bool:
        """True if an entry exists and has not expired."""
        with self._lock:
            metadata = self._read_metadata()
            if metadata is None:
                return False
            return not metadata.is_expired(self._time.now())

    def metadata(self) -> CacheMetadata | None:
        with self._lock:
            return self._read_metadata()

    def invalidate(self) -> None:
        """Remove payload and metadata. Missing files are not an error."""
        with self._lock:
            self._payload_path.unlink(missing_ok=True)
            self._metadata_path.unlink(missing_ok=True)

    def clear(self) -> None:
        """Remove everything under the cache directory and recreate it."""
        with self._lock:
            if self._cache_dir.exists():
                shutil.rmtree(self._cache_dir)
            self._cache_dir.mkdir(parents=True, exist_ok=True)

    def size_bytes(self) -> int:
        with self._lock:
            return sum(p.stat().st_size for p in self._cache_dir.rglob("*") if p.is_file())

    def _read_metadata(self) -> CacheMetadata | None:
        if not self._metadata_path.exists():
            return None
        return parse_cache_metadata(self._metadata_path.read_bytes())
