"""GitHub REST API fallback for when no working copy can be materialized.

Output formats match the local path. Two capabilities are reduced:
snapshot content only covers a small allowlist of important files, and
search hits carry no context lines.
"""

from __future__ import annotations

import base64
from collections.abc import Sequence
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from gitscope.config.constants import REMOTE_MATCHES_PER_FILE
from gitscope.core.errors import RemoteAPIError
from gitscope.ingest.models import (
    Reference,
    RepositoryMetadata,
    SearchResult,
    Snapshot,
    Summary,
)
from gitscope.ingest.scanner import format_block
from gitscope.ingest.tree import count_files, render_tree, tree_from_paths

log = structlog.get_logger(__name__)

DEFAULT_API_BASE_URL = "https://api.github.com"
DEFAULT_IMPORTANT_FILES = ("README.md", "package.json", "pyproject.toml", ".gitignore")
TEXT_MATCH_MEDIA_TYPE = "application/vnd.github.v3.text-match+json"

TREE_UNAVAILABLE = "Error fetching repository tree structure"
CONTENT_UNAVAILABLE = "Unable to fetch file contents"


def create_http_client(
    *,
    api_base_url: str = DEFAULT_API_BASE_URL,
    token: str | None = None,
    user_agent: str = "gitscope",
    timeout: float = 30.0,
) -> httpx.AsyncClient:
    headers = {
        "Accept": "application/vnd.github+json",
        "User-Agent": user_agent,
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return httpx.AsyncClient(
        base_url=api_base_url,
        headers=headers,
        timeout=timeout,
        follow_redirects=True,
    )


def _decode_content(payload: dict[str, Any]) -> str:
    raw = base64.b64decode(payload.get("content") or "")
    return raw.decode("utf-8", errors="replace")


class RemoteClient:
    """Reproduces the read operations from the GitHub REST API."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        important_files: Sequence[str] = DEFAULT_IMPORTANT_FILES,
    ) -> None:
        self._http = http
        self._important_files = tuple(important_files)

    async def aclose(self) -> None:
        await self._http.aclose()

    # =========================================================================
    # Transport
    # =========================================================================

    async def _get_json(
        self,
        endpoint: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        try:
            response = await self._http.get(endpoint, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise RemoteAPIError.request_failed(endpoint, str(e) or type(e).__name__) from e
        if not response.is_success:
            raise RemoteAPIError.request_failed(
                endpoint,
                f"HTTP {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise RemoteAPIError.request_failed(
                endpoint, "invalid JSON body", status_code=response.status_code
            ) from e

    @staticmethod
    def _slug(reference: Reference) -> tuple[str, str]:
        slug = reference.github_slug
        if slug is None:
            raise RemoteAPIError.unsupported(reference.url)
        return slug

    # =========================================================================
    # Operations
    # =========================================================================

    async def fetch_metadata(self, reference: Reference) -> RepositoryMetadata:
        owner, repo = self._slug(reference)
        info = await self._get_json(f"/repos/{owner}/{repo}")
        return RepositoryMetadata(
            stars=info.get("stargazers_count"),
            forks=info.get("forks_count"),
            description=info.get("description"),
            last_updated=info.get("updated_at"),
        )

    async def fetch_snapshot(self, reference: Reference, *, captured_at: float) -> Snapshot:
        """Summary, tree and important-file content for the reference.

        Raises:
            RemoteAPIError: The repository endpoint failed. Tree and content
                failures degrade to placeholder text instead.
        """
        owner, repo = self._slug(reference)
        info = await self._get_json(f"/repos/{owner}/{repo}")
        ref = reference.ref or info.get("default_branch") or "HEAD"

        tree, file_count = await self._fetch_tree(owner, repo, ref)
        content = await self._fetch_important_files(owner, repo, ref)

        summary = Summary(
            repository=f"{owner}/{repo}",
            file_count=file_count,
            token_estimate="Unknown",
            description=info.get("description") or "No description",
            stars=info.get("stargazers_count"),
            forks=info.get("forks_count"),
            last_updated=info.get("updated_at"),
        )
        log.info("remote_snapshot", repository=summary.repository, ref=ref, files=file_count)
        return Snapshot(summary=summary, tree=tree, content=content, captured_at=captured_at)

    async def _fetch_tree(self, owner: str, repo: str, ref: str) -> tuple[str, int | None]:
        try:
            data = await self._get_json(
                f"/repos/{owner}/{repo}/git/trees/{quote(ref, safe='')}",
                params={"recursive": "1"},
            )
        except RemoteAPIError as e:
            log.warning("remote_tree_failed", repository=f"{owner}/{repo}", error=e.message)
            return TREE_UNAVAILABLE, None
        node = tree_from_paths(
            (item["path"], item.get("type") == "tree")
            for item in data.get("tree", [])
            if item.get("type") in ("blob", "tree")
        )
        return render_tree(node), count_files(node)

    async def _fetch_important_files(self, owner: str, repo: str, ref: str) -> str:
        blocks: list[str] = []
        for name in self._important_files:
            try:
                data = await self._get_json(
                    f"/repos/{owner}/{repo}/contents/{quote(name)}",
                    params={"ref": ref},
                )
            except RemoteAPIError as e:
                log.debug("remote_file_skipped", path=name, error=e.message)
                continue
            if isinstance(data, dict) and data.get("type") == "file":
                blocks.append(format_block(name, _decode_content(data)))
        return "".join(blocks) or CONTENT_UNAVAILABLE

    async def search(
        self, reference: Reference, query: str, max_results: int = 10
    ) -> list[SearchResult]:
        """Code search, reporting up to three matching lines per file."""
        owner, repo = self._slug(reference)
        if max_results <= 0:
            return []
        data = await self._get_json(
            "/search/code",
            params={"q": f"{query} repo:{owner}/{repo}"},
            headers={"Accept": TEXT_MATCH_MEDIA_TYPE},
        )

        needle = query.lower()
        results: list[SearchResult] = []
        for item in data.get("items", [])[:max_results]:
            try:
                file_data = await self._get_json(item["url"])
            except RemoteAPIError as e:
                log.warning("remote_search_file_failed", path=item.get("path"), error=e.message)
                continue
            lines = _decode_content(file_data).split("\n")
            matches = [(i, line) for i, line in enumerate(lines) if needle in line.lower()]
            for i, line in matches[:REMOTE_MATCHES_PER_FILE]:
                results.append(
                    SearchResult(
                        path=item["path"],
                        line=i + 1,
                        content=line,
                        context=[],
                        url=item.get("html_url"),
                        repository=f"{owner}/{repo}",
                    )
                )
                if len(results) >= max_results:
                    return results
        return results

    async def diff(self, reference: Reference, base: str, head: str) -> str:
        """Commit and file report from the compare endpoint."""
        owner, repo = self._slug(reference)
        data = await self._get_json(
            f"/repos/{owner}/{repo}/compare/{quote(base, safe='')}...{quote(head, safe='')}"
        )
        return format_comparison(base, head, data)


def format_comparison(base: str, head: str, data: dict[str, Any]) -> str:
    lines = [
        f"Comparing {base}...{head}",
        "",
        f"Status: {data.get('status')}",
        f"Ahead by: {data.get('ahead_by', 0)} commit(s)",
        f"Behind by: {data.get('behind_by', 0)} commit(s)",
        "",
    ]
    if not data.get("total_commits"):
        lines.append("No commits found between these references")
        return "\n".join(lines) + "\n"

    lines += [f"Total commits: {data['total_commits']}", "", "Commits:"]
    for commit in data.get("commits", []):
        info = commit.get("commit", {})
        author = info.get("author") or {}
        subject = (info.get("message") or "").split("\n", 1)[0]
        lines += [
            f"{commit.get('sha', '')[:7]} - {subject}",
            f"Author: {author.get('name')} <{author.get('email')}>",
            f"Date: {author.get('date')}",
            "",
        ]
    lines.append("Files changed:")
    for f in data.get("files", []):
        lines.append(
            f"{f.get('status')}: {f.get('filename')} "
            f"({f.get('additions', 0)} additions, {f.get('deletions', 0)} deletions)"
        )
    return "\n".join(lines) + "\n"
