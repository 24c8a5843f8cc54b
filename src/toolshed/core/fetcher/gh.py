"""RemoteFetcher backed by the GitHub CLI.

Registry files are read through ``gh api`` using the raw contents media type,
so authentication and rate limiting come from the user's gh session. This is
a thin wrapper around subprocess calls and contains no business logic.
"""

import logging
import re
from urllib.parse import quote

from toolshed.core.errors import FetchError
from toolshed.core.fetcher.abc import RemoteFetcher
from toolshed.core.subprocess_utils import run_subprocess_with_context

logger = logging.getLogger(__name__)

REGISTRY_DOCUMENT_PATH = "registry.json"
RAW_MEDIA_TYPE = "Accept: application/vnd.github.raw"

_REPO_URL_PATTERN = re.compile(
    r"^(?:https?://github\.com/)?(?P<owner>[A-Za-z0-9_.-]+)/(?P<repo>[A-Za-z0-9_.-]+?)(?:\.git)?/?$"
)


def parse_repo_url(url: str) -> tuple[str, str]:
    """Split a GitHub repository URL or ``owner/repo`` string.

    Raises:
        ValueError: If the URL does not name a repository
    """
    match = _REPO_URL_PATTERN.match(url.strip())
    if match is None:
        raise ValueError(f"Invalid GitHub repository URL: {url}")
    return match.group("owner"), match.group("repo")


class GhRemoteFetcher(RemoteFetcher):
    """Fetches registry content with ``gh api repos/<owner>/<repo>/contents``."""

    def __init__(self, registry_url: str, branch: str = "main") -> None:
        self._registry_url = registry_url
        self._owner, self._repo = parse_repo_url(registry_url)
        self._branch = branch

    def registry_identity(self) -> str:
        return self._registry_url

    def fetch_registry_document(self) -> bytes:
        return self._fetch_contents(REGISTRY_DOCUMENT_PATH)

    def fetch_archive(self, location: str) -> bytes:
        return self._fetch_contents(location.lstrip("/"))

    def _fetch_contents(self, path: str) -> bytes:
        endpoint = (
            f"repos/{self._owner}/{self._repo}/contents/{quote(path)}"
            f"?ref={quote(self._branch)}"
        )
        logger.debug("Fetching %s", endpoint)
        try:
            result = run_subprocess_with_context(
                ["gh", "api", "-H", RAW_MEDIA_TYPE, endpoint],
                operation_context=f"fetch {path} from {self._owner}/{self._repo}",
            )
        except RuntimeError as e:
            raise FetchError(path, str(e)) from e
        return result.stdout
