"""Search and listing over the tools of a registry document.

Search matches a query against each tool's name, description, author and
space-joined tags. Tag and author filters compare case-insensitively; a tool
passes the tag filter when it carries any of the requested tags.
"""

import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal

from toolshed.core.models import TOOL_TYPES, RegistryDocument, ToolDescriptor, ToolType

SortField = Literal["name", "created", "updated", "downloads"]

SORT_FIELDS: tuple[SortField, ...] = ("name", "created", "updated", "downloads")

# Tools without a timestamp sort before every dated tool
_NO_TIMESTAMP = datetime.min.replace(tzinfo=UTC)


@dataclass(frozen=True)
class SearchFilter:
    """Criteria for ``search_tools``.

    Raises:
        ValueError: If the query is empty or min_downloads is negative
    """

    query: str
    tool_type: ToolType | None = None
    tags: tuple[str, ...] = ()
    author: str | None = None
    min_downloads: int = 0
    regex: bool = False
    case_sensitive: bool = False

    def __post_init__(self) -> None:
        if not self.query:
            raise ValueError("search query cannot be empty")
        if self.min_downloads < 0:
            raise ValueError("min_downloads cannot be negative")


@dataclass(frozen=True)
class ListFilter:
    """Criteria for ``list_tools``. A limit of 0 means no limit."""

    tool_type: ToolType | None = None
    tags: tuple[str, ...] = ()
    author: str | None = None
    sort_by: SortField = "name"
    sort_desc: bool = False
    limit: int = 0

    def __post_init__(self) -> None:
        if self.limit < 0:
            raise ValueError("limit cannot be negative")
        if self.sort_by not in SORT_FIELDS:
            raise ValueError(
                f"Invalid sort field '{self.sort_by}', expected one of: {', '.join(SORT_FIELDS)}"
            )


def tools_by_type(document: RegistryDocument, tool_type: ToolType) -> list[ToolDescriptor]:
    return list(document.tools.get(tool_type, []))


def search_tools(document: RegistryDocument, search: SearchFilter) -> list[ToolDescriptor]:
    """Return matching tools grouped by type (agent, command, skill), in registry order.

    Raises:
        ValueError: If ``search.regex`` is set and the query does not compile
    """
    pattern: re.Pattern[str] | None = None
    if search.regex:
        flags = 0 if search.case_sensitive else re.IGNORECASE
        try:
            pattern = re.compile(search.query, flags)
        except re.error as e:
            raise ValueError(f"Invalid regex pattern '{search.query}': {e}") from e

    results: list[ToolDescriptor] = []
    for descriptor in _iter_tools(document, search.tool_type):
        if not _matches_query(descriptor, search, pattern):
            continue
        if not _passes_filters(descriptor, search.tags, search.author):
            continue
        if descriptor.downloads < search.min_downloads:
            continue
        results.append(descriptor)
    return results


def list_tools(document: RegistryDocument, listing: ListFilter) -> list[ToolDescriptor]:
    results = [
        descriptor
        for descriptor in _iter_tools(document, listing.tool_type)
        if _passes_filters(descriptor, listing.tags, listing.author)
    ]
    results.sort(key=_sort_key(listing.sort_by), reverse=listing.sort_desc)
    if listing.limit > 0:
        results = results[: listing.limit]
    return results


def _iter_tools(document: RegistryDocument, tool_type: ToolType | None) -> list[ToolDescriptor]:
    types = TOOL_TYPES if tool_type is None else (tool_type,)
    return [descriptor for t in types for descriptor in document.tools.get(t, [])]


def _matches_query(
    descriptor: ToolDescriptor, search: SearchFilter, pattern: re.Pattern[str] | None
) -> bool:
    targets = [
        descriptor.name,
        descriptor.description,
        descriptor.author,
        " ".join(descriptor.tags),
    ]
    if pattern is not None:
        return any(pattern.search(target) for target in targets)
    if search.case_sensitive:
        return any(search.query in target for target in targets)
    query = search.query.casefold()
    return any(query in target.casefold() for target in targets)


def _passes_filters(descriptor: ToolDescriptor, tags: tuple[str, ...], author: str | None) -> bool:
    if tags:
        wanted = {tag.casefold() for tag in tags}
        if not any(tag.casefold() in wanted for tag in descriptor.tags):
            return False
    if author and descriptor.author.casefold() != author.casefold():
        return False
    return True


def _sort_key(sort_by: SortField):
    if sort_by == "created":
        return lambda d: d.created_at or _NO_TIMESTAMP
    if sort_by == "updated":
        return lambda d: d.updated_at or _NO_TIMESTAMP
    if sort_by == "downloads":
        return lambda d: d.downloads
    return lambda d: d.name
