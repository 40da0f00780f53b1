"""
GitHub Source Provider
======================

Lists and fetches repository files through the GitHub REST API.

The recursive tree listing is the run's required metadata fetch: any
failure there is raised to the caller. File contents are fetched lazily
through the ``fetch`` callbacks of the returned entries, so per-file
failures are handled by the scanner.
"""

from __future__ import annotations

import base64
import logging
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from ..config import AnalyzerConfig
from ..errors import (
    InvalidRepositoryURLError,
    RateLimitError,
    RepositoryNotFoundError,
    SourceHTTPError,
    SourceNetworkError,
)
from ..models.source_models import EntryKind, SourceEntry

logger = logging.getLogger(__name__)

REPOSITORY_URL = re.compile(
    r"^(?:https?://)?(?:www\.)?github\.com/"
    r"(?P<owner>[\w.-]+)/(?P<repo>[\w.-]+?)(?:\.git)?"
    r"(?:/tree/(?P<branch>[^\s?#]+?))?/?(?:[?#].*)?$"
)


@dataclass(frozen=True)
class RepositoryRef:
    """Owner, name and optional branch of a GitHub repository."""

    owner: str
    repo: str
    branch: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def url(self) -> str:
        return f"https://github.com/{self.full_name}"


def parse_repository_url(url: str) -> RepositoryRef:
    """
    Parse ``https://github.com/<owner>/<repo>[.git][/tree/<branch>]``.

    Raises:
        InvalidRepositoryURLError: If the URL does not name a repository
    """
    match = REPOSITORY_URL.match(url.strip())
    if match is None:
        raise InvalidRepositoryURLError(url)
    return RepositoryRef(owner=match["owner"], repo=match["repo"], branch=match["branch"])


class GitHubSourceProvider:
    """
    Async GitHub REST client for repository trees and file contents.

    Use as an async context manager; the HTTP client is closed on exit.
    Entries returned by ``list_entries`` fetch through this client, so
    their content must be loaded before the provider is closed.
    """

    def __init__(
        self,
        config: AnalyzerConfig | None = None,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the provider.

        Args:
            config: Analyzer configuration (API base URL, timeouts, token)
            token: Bearer token overriding ``config.github_token``
            transport: Custom httpx transport, e.g. ``httpx.MockTransport`` in tests
        """
        self.config = config or AnalyzerConfig()
        token = token or self.config.github_token

        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "repo-architecture",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=self.config.api_base_url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(
                self.config.request_timeout_seconds,
                connect=self.config.connect_timeout_seconds,
            ),
            transport=transport,
        )

    async def __aenter__(self) -> "GitHubSourceProvider":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        """
        GET an API path and decode the JSON body.

        Raises:
            RepositoryNotFoundError: On 404
            RateLimitError: On 403 or 429
            SourceHTTPError: On any other status of 400 or above
            SourceNetworkError: On transport failure or timeout
        """
        try:
            response = await self._client.get(path, params=params)
        except httpx.TransportError as e:
            url = f"{self._client.base_url}{path}"
            raise SourceNetworkError(f"Network error requesting {url}: {e}", url) from e

        if response.status_code >= 400:
            raise self._classify(response)
        return response.json()

    def _classify(self, response: httpx.Response) -> Exception:
        url = str(response.request.url)
        status = response.status_code

        if status == 404:
            return RepositoryNotFoundError(f"Not found: {url}", url, status)

        if status in (403, 429):
            reset_at = _int_header(response, "X-RateLimit-Reset")
            remaining = _int_header(response, "X-RateLimit-Remaining")
            message = f"GitHub API rate limit reached ({status})"
            if reset_at is not None:
                message += f"; resets at {reset_at}"
            return RateLimitError(message, url, status, reset_at=reset_at, remaining=remaining)

        try:
            payload = response.json()
        except ValueError:
            payload = None
        detail = payload.get("message", "") if isinstance(payload, dict) else response.text[:200]
        message = f"GitHub API error {status}"
        if detail:
            message += f": {detail}"
        return SourceHTTPError(message, url, status)

    async def get_default_branch(self, ref: RepositoryRef) -> str:
        info = await self._get_json(f"/repos/{ref.owner}/{ref.repo}")
        return info.get("default_branch") or "main"

    async def fetch_tree(self, ref: RepositoryRef, branch: str) -> list[dict[str, Any]]:
        """Recursive tree listing of a branch."""
        data = await self._get_json(
            f"/repos/{ref.owner}/{ref.repo}/git/trees/{quote(branch)}",
            params={"recursive": "1"},
        )
        if data.get("truncated"):
            logger.warning("Tree listing for %s@%s is truncated by the API", ref.full_name, branch)
        return data.get("tree", [])

    async def fetch_file_content(self, ref: RepositoryRef, path: str, branch: str) -> str:
        """Fetch one file and decode its base64 content as UTF-8 text."""
        data = await self._get_json(
            f"/repos/{ref.owner}/{ref.repo}/contents/{quote(path)}",
            params={"ref": branch},
        )
        content = data.get("content") or ""
        if data.get("encoding", "base64") != "base64":
            return content
        return base64.b64decode(content).decode("utf-8", errors="replace")

    async def list_entries(self, ref: RepositoryRef) -> tuple[str, list[SourceEntry]]:
        """
        Resolve the branch and list every file of the repository.

        Returns:
            Tuple of (branch, flat list of file entries with fetch callbacks)
        """
        branch = ref.branch or await self.get_default_branch(ref)
        tree = await self.fetch_tree(ref, branch)

        entries = []
        for item in tree:
            if item.get("type") != "blob":
                continue
            path = item["path"]
            entries.append(
                SourceEntry(
                    path=path,
                    kind=EntryKind.FILE.value,
                    size=item.get("size") or 0,
                    fetch=self._fetcher(ref, path, branch),
                )
            )
        logger.info("Listed %d files in %s@%s", len(entries), ref.full_name, branch)
        return branch, entries

    def _fetcher(self, ref: RepositoryRef, path: str, branch: str):
        async def fetch() -> str:
            return await self.fetch_file_content(ref, path, branch)

        return fetch


def _int_header(response: httpx.Response, name: str) -> int | None:
    value = response.headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None
