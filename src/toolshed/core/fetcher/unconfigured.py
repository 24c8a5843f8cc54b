"""RemoteFetcher used when no registry URL has been configured."""

from toolshed.core.errors import FetchError
from toolshed.core.fetcher.abc import RemoteFetcher

_HINT = "no registry configured; run 'toolshed init --registry <owner/repo>'"


class UnconfiguredRemoteFetcher(RemoteFetcher):
    """Fails every fetch with a hint. Local-only commands keep working."""

    def registry_identity(self) -> str:
        return ""

    def fetch_registry_document(self) -> bytes:
        raise FetchError("registry", _HINT)

    def fetch_archive(self, location: str) -> bytes:
        raise FetchError(location, _HINT)
