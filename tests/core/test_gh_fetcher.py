"""Tests for the gh-backed fetcher's URL parsing and error mapping."""

import subprocess
from unittest.mock import patch

import pytest

from toolshed.core.errors import FetchError
from toolshed.core.fetcher import GhRemoteFetcher, UnconfiguredRemoteFetcher, parse_repo_url


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://github.com/acme/claude-tools", ("acme", "claude-tools")),
        ("https://github.com/acme/claude-tools.git", ("acme", "claude-tools")),
        ("https://github.com/acme/claude-tools/", ("acme", "claude-tools")),
        ("acme/claude-tools", ("acme", "claude-tools")),
        ("  acme/tools.v2  ", ("acme", "tools.v2")),
    ],
)
def test_parse_repo_url(url: str, expected: tuple[str, str]) -> None:
    assert parse_repo_url(url) == expected


@pytest.mark.parametrize(
    "url",
    ["", "acme", "https://gitlab.com/acme/tools", "https://github.com/acme", "a/b/c"],
)
def test_parse_repo_url_rejects(url: str) -> None:
    with pytest.raises(ValueError):
        parse_repo_url(url)


def test_fetch_uses_gh_api_raw_contents() -> None:
    fetcher = GhRemoteFetcher("https://github.com/acme/claude-tools", branch="dev")
    completed = subprocess.CompletedProcess(args=[], returncode=0, stdout=b"{}", stderr=b"")

    with patch("subprocess.run", return_value=completed) as run:
        assert fetcher.fetch_archive("/agents/reviewer 1.zip") == b"{}"

    cmd = run.call_args.args[0]
    assert cmd[:4] == ["gh", "api", "-H", "Accept: application/vnd.github.raw"]
    assert cmd[4] == "repos/acme/claude-tools/contents/agents/reviewer%201.zip?ref=dev"
    assert fetcher.registry_identity() == "https://github.com/acme/claude-tools"


def test_fetch_registry_document_path() -> None:
    fetcher = GhRemoteFetcher("acme/claude-tools")
    completed = subprocess.CompletedProcess(args=[], returncode=0, stdout=b"{}", stderr=b"")

    with patch("subprocess.run", return_value=completed) as run:
        fetcher.fetch_registry_document()

    assert run.call_args.args[0][4] == "repos/acme/claude-tools/contents/registry.json?ref=main"


def test_failed_command_becomes_fetch_error() -> None:
    fetcher = GhRemoteFetcher("acme/claude-tools")
    error = subprocess.CalledProcessError(1, ["gh"], output=b"", stderr=b"HTTP 404: Not Found")

    with patch("subprocess.run", side_effect=error):
        with pytest.raises(FetchError) as exc_info:
            fetcher.fetch_archive("agents/missing.zip")

    assert exc_info.value.target == "agents/missing.zip"
    assert "HTTP 404" in str(exc_info.value)


def test_missing_gh_binary_becomes_fetch_error() -> None:
    fetcher = GhRemoteFetcher("acme/claude-tools")

    with patch("subprocess.run", side_effect=FileNotFoundError("gh")):
        with pytest.raises(FetchError, match="Command not found"):
            fetcher.fetch_registry_document()


def test_unconfigured_fetcher_always_fails() -> None:
    fetcher = UnconfiguredRemoteFetcher()

    assert fetcher.registry_identity() == ""
    with pytest.raises(FetchError, match="no registry configured"):
        fetcher.fetch_registry_document()
    with pytest.raises(FetchError):
        fetcher.fetch_archive("agents/x.zip")
