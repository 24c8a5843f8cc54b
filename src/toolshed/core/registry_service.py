"""Registry lookup with in-memory and on-disk caching."""

import logging

from toolshed.core.errors import CacheExpiredError, FetchError, NotFoundError, ToolshedError
from toolshed.core.fetcher import RemoteFetcher
from toolshed.core.models import (
    RegistryDocument,
    ToolDescriptor,
    ToolType,
    parse_registry_document,
)
from toolshed.core.registry_cache import RegistryCache
from toolshed.core.registry_query import (
    ListFilter,
    SearchFilter,
    list_tools,
    search_tools,
    tools_by_type,
)

logger = logging.getLogger(__name__)

REGISTRY_TARGET = "registry document"


class RegistryService:
    """Resolves the current registry document: memory, then disk cache, then remote."""

    def __init__(self, fetcher: RemoteFetcher, cache: RegistryCache | None) -> None:
        self._fetcher = fetcher
        self._cache = cache
        self._document: RegistryDocument | None = None

    @property
    def registry_identity(self) -> str:
        return self._fetcher.registry_identity()

    def fetch(self) -> RegistryDocument:
        """Fetch, validate and cache the registry from the remote.

        Raises:
            FetchError: If the fetcher fails
            InvalidDocumentError: If the fetched document is invalid
        """
        try:
            data = self._fetcher.fetch_registry_document()
        except FetchError:
            raise
        except Exception as e:
            raise FetchError(REGISTRY_TARGET, str(e)) from e
        document = parse_registry_document(data)
        self._document = document

        if self._cache is not None:
            try:
                self._cache.set(document)
            except (OSError, ToolshedError) as e:
                # The fetched document is still usable without a disk cache
                logger.warning("Failed to cache registry: %s", e)

        return document

    def get(self) -> RegistryDocument:
        if self._document is not None:
            return self._document

        if self._cache is not None:
            try:
                self._document = self._cache.get()
                logger.debug("Using cached registry from %s", self._cache.cache_dir)
                return self._document
            except (NotFoundError, CacheExpiredError) as e:
                logger.debug("Registry cache unavailable: %s", e)
            except ToolshedError as e:
                logger.warning("Ignoring unreadable registry cache: %s", e)

        return self.fetch()

    def refresh(self) -> RegistryDocument:
        """Discard both cache levels and fetch again."""
        if self._cache is not None:
            self._cache.invalidate()
        self._document = None
        return self.fetch()

    def get_tool(self, name: str, tool_type: ToolType) -> ToolDescriptor:
        """Raises ToolNotFoundError if the registry has no such tool."""
        return self.get().get_tool(name, tool_type)

    def find_tool(self, name: str) -> ToolDescriptor:
        return self.get().find_tool(name)


    def search_tools(self, search: SearchFilter) -> list[ToolDescriptor]:
        return search_tools(self.get(), search)

    def list_tools(self, listing: ListFilter) -> list[ToolDescriptor]:
        return list_tools(self.get(), listing)

    def tools_by_type(self, tool_type: ToolType) -> list[ToolDescriptor]:
        return tools_by_type(self.get(), tool_type)
