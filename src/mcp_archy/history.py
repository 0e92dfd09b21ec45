"""
Git history access and evolution diagrams.

A repository is shallow-cloned into a temporary directory for the lifetime of
an ``open_history`` block; the directory is removed when the block exits,
whether or not it raised. GitPython calls are blocking and run in a worker
thread.
"""

import asyncio
import logging
import tempfile
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Sequence
from urllib.parse import urlsplit, urlunsplit

from git import Repo
from git.exc import BadName, GitCommandError

from .errors import HistoryError
from .models import CommitAuthor, CommitInfo, FileChange, FileVersion

logger = logging.getLogger(__name__)

CHANGE_TYPES = {"A": "add", "D": "delete"}


def _authenticated_url(url: str, token: Optional[str]) -> str:
    parts = urlsplit(url)
    if not token or parts.scheme != "https":
        return url
    return urlunsplit(parts._replace(netloc=f"x-access-token:{token}@{parts.hostname}"))


@asynccontextmanager
async def open_history(url: str, token: Optional[str] = None, depth: int = 10) -> AsyncIterator["RepositoryHistory"]:
    """Shallow-clone ``url`` and yield a ``RepositoryHistory`` over it.

    Raises:
        HistoryError: If the clone fails.
    """
    with tempfile.TemporaryDirectory(prefix="mcp-archy-") as workdir:
        logger.info("Cloning %s (depth %d)", url, depth)
        try:
            repo = await asyncio.to_thread(
                Repo.clone_from, _authenticated_url(url, token), workdir, depth=depth, single_branch=True
            )
        except GitCommandError as e:
            raise HistoryError(f"Failed to clone repository {url} (git exit code {e.status})") from e

        try:
            yield RepositoryHistory(repo)
        finally:
            repo.close()


class RepositoryHistory:
    """Read-only queries over a cloned repository."""

    def __init__(self, repo: Repo):
        self.repo = repo

    async def get_commits(self, limit: int = 10) -> list[CommitInfo]:
        """Most recent ``limit`` commits of HEAD, newest first."""
        return await asyncio.to_thread(self._commits, limit)

    async def get_file_at_commit(self, path: str, sha: str = "HEAD") -> str:
        return await asyncio.to_thread(self._read_file, path, sha)

    async def get_file_evolution(self, path: str, limit: int = 10) -> list[FileVersion]:
        """Versions of ``path`` in the last ``limit`` commits where it exists."""
        return await asyncio.to_thread(self._file_evolution, path, limit)

    def _commits(self, limit: int) -> list[CommitInfo]:
        commits = []
        for commit in self.repo.iter_commits("HEAD", max_count=limit):
            author = CommitAuthor(
                name=commit.author.name or "",
                email=commit.author.email or "",
                timestamp=commit.authored_date,
            )
            commits.append(CommitInfo(
                sha=commit.hexsha,
                message=commit.message.strip(),
                author=author,
                files=self._changes(commit),
            ))
        return commits

    def _changes(self, commit) -> list[FileChange]:
        if not commit.parents:
            return []
        try:
            diffs = commit.parents[0].diff(commit)
        except (GitCommandError, ValueError) as e:
            # The parent lies beyond the shallow clone boundary.
            logger.debug("No parent diff for %s: %s", commit.hexsha[:7], e)
            return []
        return [
            FileChange(path=d.b_path or d.a_path, type=CHANGE_TYPES.get(d.change_type, "modify"))
            for d in diffs
        ]

    def _read_file(self, path: str, sha: str) -> str:
        try:
            blob = self.repo.commit(sha).tree / path
        except (KeyError, ValueError, BadName) as e:
            raise HistoryError(f"File not found at commit {sha}: {path}") from e
        return blob.data_stream.read().decode("utf-8", errors="replace")

    def _file_evolution(self, path: str, limit: int) -> list[FileVersion]:
        versions = []
        for commit in self.repo.iter_commits("HEAD", max_count=limit):
            try:
                content = self._read_file(path, commit.hexsha)
            except HistoryError:
                continue
            versions.append(FileVersion(sha=commit.hexsha, message=commit.message.strip(), content=content))
        return versions


# ============================================================================
# Evolution renderers
# ============================================================================

def render_commit_git_graph(history: Sequence) -> str:
    """gitGraph of commits (or file versions) given newest first.

    Commits are emitted oldest first; the oldest is tagged "initial" and the
    rest by position.
    """
    lines = ["gitGraph"]
    chronological = list(reversed(history))
    if not chronological:
        lines.append('    commit id: "initial"')
    for i, item in enumerate(chronological):
        tag = "initial" if i == 0 else str(i)
        lines.append(f'    commit id: "{item.sha[:7]}" tag: "{tag}"')
    return "\n".join(lines) + "\n"


def render_evolution_flowchart(commits: Sequence[CommitInfo]) -> str:
    """Flowchart walking the commits oldest to newest with change counts."""
    lines = ["flowchart TD", '    subgraph evolution["Repository Evolution"]']
    chronological = list(reversed(commits))
    previous = "Start"
    lines.append("    Start([Start])")

    for i, commit in enumerate(chronological, start=1):
        node = f"Commit{i}"
        added = sum(1 for f in commit.files if f.type == "add")
        deleted = sum(1 for f in commit.files if f.type == "delete")
        modified = sum(1 for f in commit.files if f.type == "modify")
        lines.append(f'    {previous} --> {node}["Commit: {commit.short_sha}"]')
        lines.append(f'    {node} -- "+{added} -{deleted} ~{modified}" --> Changes{i}[Changes]')
        previous = node

    lines.append(f"    {previous} --> End([End])")
    lines.append("    end")
    return "\n".join(lines) + "\n"
