"""Tests for registry search, listing and sorting."""

from typing import Any

import pytest

from tests.fakes.fetcher import FakeRemoteFetcher
from tests.test_utils.builders import descriptor, registry_doc
from toolshed.core.models import RegistryDocument, parse_registry_document
from toolshed.core.registry_query import (
    ListFilter,
    SearchFilter,
    list_tools,
    search_tools,
    tools_by_type,
)
from toolshed.core.registry_service import RegistryService


def _tool(name: str, tool_type: str = "agent", **fields: Any) -> dict[str, Any]:
    return {**descriptor(name, "1.0.0", tool_type), **fields}


def _document() -> RegistryDocument:
    return parse_registry_document(
        registry_doc(
            _tool(
                "code-reviewer",
                description="Reviews pull requests",
                author="alice",
                tags=["review", "git"],
                downloads=120,
                created_at="2024-01-03T00:00:00Z",
                updated_at="2024-02-01T00:00:00Z",
            ),
            _tool(
                "git-helper",
                description="Branch housekeeping",
                author="Bob",
                tags=["git"],
                downloads=15,
                created_at="2024-01-01T00:00:00Z",
                updated_at="2024-03-01T00:00:00Z",
            ),
            _tool(
                "test-writer",
                "command",
                description="Writes unit tests",
                author="alice",
                tags=["testing"],
                downloads=300,
                created_at="2024-01-02T00:00:00Z",
            ),
            _tool(
                "Docs",
                "skill",
                description="Documentation skill for code",
                author="carol",
                tags=["docs"],
                downloads=0,
            ),
        )
    )


def _names(tools: list) -> list[str]:
    return [tool.name for tool in tools]


def test_search_matches_name_description_author_and_tags() -> None:
    document = _document()

    assert _names(search_tools(document, SearchFilter(query="review"))) == ["code-reviewer"]
    assert _names(search_tools(document, SearchFilter(query="unit"))) == ["test-writer"]
    assert _names(search_tools(document, SearchFilter(query="carol"))) == ["Docs"]
    assert _names(search_tools(document, SearchFilter(query="testing"))) == ["test-writer"]


def test_search_results_follow_type_order() -> None:
    results = search_tools(_document(), SearchFilter(query="code"))

    assert _names(results) == ["code-reviewer", "Docs"]


def test_search_is_case_insensitive_by_default() -> None:
    document = _document()

    assert _names(search_tools(document, SearchFilter(query="DOCS"))) == ["Docs"]
    assert search_tools(document, SearchFilter(query="DOCS", case_sensitive=True)) == []
    assert _names(search_tools(document, SearchFilter(query="Docs", case_sensitive=True))) == [
        "Docs"
    ]


def test_search_regex() -> None:
    document = _document()

    results = search_tools(document, SearchFilter(query="^(code|git)-", regex=True))
    assert _names(results) == ["code-reviewer", "git-helper"]

    results = search_tools(document, SearchFilter(query="^docs$", regex=True))
    assert _names(results) == ["Docs"]
    assert search_tools(
        document, SearchFilter(query="^DOCS$", regex=True, case_sensitive=True)
    ) == []


def test_search_invalid_regex_raises_value_error() -> None:
    with pytest.raises(ValueError, match="Invalid regex pattern"):
        search_tools(_document(), SearchFilter(query="(unclosed", regex=True))


def test_search_filters() -> None:
    document = _document()

    by_type = search_tools(document, SearchFilter(query="e", tool_type="command"))
    assert _names(by_type) == ["test-writer"]

    by_tag = search_tools(document, SearchFilter(query="e", tags=("GIT",)))
    assert _names(by_tag) == ["code-reviewer", "git-helper"]

    by_author = search_tools(document, SearchFilter(query="e", author="bob"))
    assert _names(by_author) == ["git-helper"]

    popular = search_tools(document, SearchFilter(query="e", min_downloads=100))
    assert _names(popular) == ["code-reviewer", "test-writer"]


@pytest.mark.parametrize("kwargs", [{"query": ""}, {"query": "x", "min_downloads": -1}])
def test_search_filter_validation(kwargs: dict[str, Any]) -> None:
    with pytest.raises(ValueError):
        SearchFilter(**kwargs)


def test_list_sorted_by_name_by_default() -> None:
    assert _names(list_tools(_document(), ListFilter())) == [
        "Docs",
        "code-reviewer",
        "git-helper",
        "test-writer",
    ]


def test_list_sort_fields_and_direction() -> None:
    document = _document()

    by_downloads = list_tools(document, ListFilter(sort_by="downloads", sort_desc=True))
    assert _names(by_downloads) == ["test-writer", "code-reviewer", "git-helper", "Docs"]

    # Undated tools sort first
    by_created = list_tools(document, ListFilter(sort_by="created"))
    assert _names(by_created) == ["Docs", "git-helper", "test-writer", "code-reviewer"]

    by_updated = list_tools(document, ListFilter(sort_by="updated", sort_desc=True))
    assert _names(by_updated)[:2] == ["git-helper", "code-reviewer"]


def test_list_filters_and_limit() -> None:
    document = _document()

    assert _names(list_tools(document, ListFilter(tool_type="agent"))) == [
        "code-reviewer",
        "git-helper",
    ]
    assert _names(list_tools(document, ListFilter(author="ALICE"))) == [
        "code-reviewer",
        "test-writer",
    ]
    assert _names(list_tools(document, ListFilter(tags=("docs", "testing")))) == [
        "Docs",
        "test-writer",
    ]
    limited = list_tools(document, ListFilter(sort_by="downloads", sort_desc=True, limit=2))
    assert _names(limited) == ["test-writer", "code-reviewer"]


@pytest.mark.parametrize("kwargs", [{"limit": -1}, {"sort_by": "popularity"}])
def test_list_filter_validation(kwargs: dict[str, Any]) -> None:
    with pytest.raises(ValueError):
        ListFilter(**kwargs)


def test_tools_by_type() -> None:
    document = _document()

    assert _names(tools_by_type(document, "agent")) == ["code-reviewer", "git-helper"]
    assert tools_by_type(parse_registry_document(registry_doc()), "skill") == []


def test_registry_service_queries_use_cached_document() -> None:
    fetcher = FakeRemoteFetcher(registry=registry_doc(_tool("code-reviewer", tags=["git"])))
    service = RegistryService(fetcher, None)

    assert _names(service.search_tools(SearchFilter(query="git"))) == ["code-reviewer"]
    assert _names(service.list_tools(ListFilter())) == ["code-reviewer"]
    assert _names(service.tools_by_type("agent")) == ["code-reviewer"]
    assert service.tools_by_type("command") == []
    assert fetcher.registry_fetch_count == 1
