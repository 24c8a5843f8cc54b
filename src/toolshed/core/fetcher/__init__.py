from toolshed.core.fetcher.abc import RemoteFetcher
from toolshed.core.fetcher.gh import GhRemoteFetcher, parse_repo_url
from toolshed.core.fetcher.unconfigured import UnconfiguredRemoteFetcher

__all__ = ["GhRemoteFetcher", "RemoteFetcher", "UnconfiguredRemoteFetcher", "parse_repo_url"]
