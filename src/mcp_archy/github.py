"""GitHub REST client that gathers the repository data the renderers need."""

import logging
import re
from pathlib import PurePosixPath
from typing import Optional

import httpx

from .config import GITHUB_API_URL
from .errors import GitHubError
from .models import CodeFile, RepositoryData

logger = logging.getLogger(__name__)

LANGUAGE_BY_EXTENSION = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".py": "python",
    ".java": "java",
    ".rb": "ruby",
    ".go": "go",
    ".php": "php",
    ".cs": "csharp",
    ".cpp": "cpp",
    ".c": "cpp",
    ".h": "cpp",
}

_REPO_URL = re.compile(r"github\.com[/:]([^/\s]+)/([^/\s?#]+)")


def parse_repo_url(url: str) -> tuple[str, str]:
    """Extract ``(owner, repo)`` from a GitHub URL.

    Raises:
        ValueError: If the URL does not point at a GitHub repository.
    """
    match = _REPO_URL.search(url)
    if not match:
        raise ValueError("Invalid GitHub repository URL")
    owner, repo = match.group(1), match.group(2)
    if repo.endswith(".git"):
        repo = repo[:-4]
    if not repo:
        raise ValueError("Invalid GitHub repository URL")
    return owner, repo


class GitHubClient:
    """Async GitHub API client.

    Use as an async context manager::

        async with GitHubClient(token) as gh:
            data = await gh.fetch_repository_data("octocat", "hello-world")

    Args:
        token: Optional personal access token.
        api_url: API root, ``https://api.github.com`` unless overridden.
        max_code_files: Upper bound on source files downloaded for analysis.
        transport: Optional httpx transport (used by tests).
    """

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: str = GITHUB_API_URL,
        max_code_files: int = 20,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Accept": "application/vnd.github+json"}
        if token:
            headers["Authorization"] = f"token {token}"
        self.max_code_files = max_code_files
        self._client = httpx.AsyncClient(
            base_url=api_url.rstrip("/"),
            headers=headers,
            transport=transport,
            follow_redirects=True,
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, url: str) -> httpx.Response:
        response = await self._client.get(url)
        response.raise_for_status()
        return response

    async def fetch_repository_data(self, owner: str, repo: str) -> RepositoryData:
        """Fetch repo info, root listing, languages and a sample of code files.

        Raises:
            GitHubError: If any of the three primary requests fails.
        """
        base = f"/repos/{owner}/{repo}"
        try:
            info = (await self._get(base)).json()
            contents = (await self._get(f"{base}/contents")).json()
            languages = (await self._get(f"{base}/languages")).json()
        except httpx.HTTPError as e:
            logger.error("Error fetching repository data for %s/%s: %s", owner, repo, e)
            raise GitHubError(f"Failed to fetch repository data from GitHub API: {e}") from e

        code_files = await self._collect_code_files(base, contents, self.max_code_files)
        logger.info("Fetched %s/%s with %d code files", owner, repo, len(code_files))

        return RepositoryData(info=info, contents=contents, languages=languages, code_files=code_files)

    async def _collect_code_files(self, base: str, contents: list, remaining: int) -> list[CodeFile]:
        files: list[CodeFile] = []

        for item in contents:
            if len(files) >= remaining:
                break

            if item.get("type") == "file":
                language = LANGUAGE_BY_EXTENSION.get(PurePosixPath(item["name"]).suffix)
                if language is None or not item.get("download_url"):
                    continue
                try:
                    response = await self._get(item["download_url"])
                except httpx.HTTPError as e:
                    logger.warning("Skipping file %s: %s", item.get("path"), e)
                    continue
                files.append(CodeFile(path=item["path"], content=response.text, language=language))

            elif item.get("type") == "dir":
                try:
                    listing = (await self._get(f"{base}/contents/{item['path']}")).json()
                except httpx.HTTPError as e:
                    logger.warning("Skipping directory %s: %s", item.get("path"), e)
                    continue
                files.extend(await self._collect_code_files(base, listing, remaining - len(files)))

        return files
