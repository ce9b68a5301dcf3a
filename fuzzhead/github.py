"""Fetch source files from GitHub repositories."""

import logging
import re
from dataclasses import dataclass

import httpx

from fuzzhead.config import FuzzerConfig
from fuzzhead.errors import ResourceError, ValidationError

logger = logging.getLogger(__name__)

RAW_BASE_URL = "https://raw.githubusercontent.com"
API_BASE_URL = "https://api.github.com"

REPO_URL_PATTERN = re.compile(r"github\.com/([^/]+)/([^/?#]+)")


@dataclass(frozen=True)
class RepoRef:
    owner: str
    repo: str


def parse_repo_url(repo_url: str) -> RepoRef:
    """Extract owner and repository name from a GitHub URL.

    Raises:
        ValidationError: If the URL does not name a GitHub repository
    """
    match = REPO_URL_PATTERN.search(repo_url)
    if not match:
        raise ValidationError("Invalid GitHub repository URL", "repoUrl", repo_url)
    repo = match.group(2)
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    return RepoRef(owner=match.group(1), repo=repo)


class GitHubSource:
    """Read files from GitHub over HTTP.

    Raw file contents come from raw.githubusercontent.com; file listing uses
    the code search API, which needs a token for reasonable rate limits.
    """

    def __init__(
        self,
        config: FuzzerConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.config = config or FuzzerConfig()
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "GitHubSource":
        if self._client is None:
            self._client = httpx.AsyncClient(follow_redirects=True, timeout=30.0)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("GitHubSource used outside of its context")
        return self._client

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": self.config.user_agent,
        }
        if self.config.github_token:
            headers["Authorization"] = f"token {self.config.github_token}"
        return headers

    async def fetch_file(self, repo_url: str, file_path: str, branch: str) -> str:
        """Fetch one file's text.

        Raises:
            ResourceError: If the file is missing or the request fails
        """
        ref = parse_repo_url(repo_url)
        url = f"{RAW_BASE_URL}/{ref.owner}/{ref.repo}/{branch}/{file_path}"
        logger.info(f"Fetching {url}")

        try:
            response = await self.client.get(url, headers={"User-Agent": self.config.user_agent})
        except httpx.HTTPError as e:
            raise ResourceError(
                f"Failed to fetch file: {e}", "github_file", "fetch_error"
            ) from e

        if response.status_code == 404:
            raise ResourceError(f"File not found: {file_path}", "github_file", "not_found")
        if not response.is_success:
            raise ResourceError(
                f"Failed to fetch file: {response.status_code} {response.reason_phrase}",
                "github_file",
                "fetch_error",
            )
        return response.text

    async def list_python_files(self, repo_url: str, branch: str) -> list[str]:
        """List Python source files in a repository via code search.

        Raises:
            ResourceError: On authentication, rate-limit or API failures, or
                when the repository has no Python files
        """
        ref = parse_repo_url(repo_url)
        params = {
            "q": f"repo:{ref.owner}/{ref.repo} extension:py",
            "per_page": "100",
        }
        if not self.config.github_token:
            logger.warning("No GitHub token configured; search is rate limited")

        try:
            response = await self.client.get(
                f"{API_BASE_URL}/search/code", params=params, headers=self._headers()
            )
        except httpx.HTTPError as e:
            raise ResourceError(
                f"Failed to search repository: {e}", "github_search", "api_error"
            ) from e

        if response.status_code == 401:
            raise ResourceError(
                "GitHub API authentication required. Please set GITHUB_TOKEN.",
                "github_search",
                "authentication_required",
            )
        if response.status_code == 403:
            raise ResourceError(
                "GitHub API rate limit exceeded. Please try again later or use authentication.",
                "github_search",
                "rate_limit_exceeded",
            )
        if not response.is_success:
            raise ResourceError(
                f"Failed to search repository: {response.status_code} {response.reason_phrase}",
                "github_search",
                "api_error",
            )

        items = response.json().get("items", [])
        files = [
            item["path"]
            for item in items
            if item.get("name", "").endswith(".py") and "path" in item
        ]
        if not files:
            raise ResourceError(
                "No Python files found in the repository", "python_files", "discovery"
            )
        logger.info(f"Found {len(files)} Python files in {ref.owner}/{ref.repo}")
        return files
