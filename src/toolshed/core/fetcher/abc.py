"""Remote registry access abstraction.

The core never talks to the network directly. It asks a RemoteFetcher for the
registry document bytes and for archive bytes, and treats any failure as an
opaque FetchError. Authentication, retries and rate limits live behind this
interface.
"""

from abc import ABC, abstractmethod


class RemoteFetcher(ABC):
    """Abstract source of registry documents and tool archives."""

    @abstractmethod
    def fetch_registry_document(self) -> bytes:
        """Fetch the raw registry document.

        Raises:
            FetchError: If the document cannot be retrieved
        """
        ...

    @abstractmethod
    def fetch_archive(self, location: str) -> bytes:
        """Fetch archive bytes from a descriptor's declared location.

        Args:
            location: Archive path relative to the registry root

        Raises:
            FetchError: If the archive cannot be retrieved
        """
        ...

    @abstractmethod
    def registry_identity(self) -> str:
        """Identity recorded in the lock file (e.g. the registry URL)."""
        ...
