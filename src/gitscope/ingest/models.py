"""Data models for the ingestion pipeline.

References are plain frozen dataclasses. Anything that is persisted to the
snapshot cache or returned to MCP clients is a pydantic model so it can be
validated on the way back in.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field

GITHUB_HOST = "github.com"

_TREE_SUFFIX = re.compile(r"^(?P<url>https?://[^?#]+?)/tree/(?P<ref>[^?#]+?)/?$")
_SHORTHAND = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")
_SCP_LIKE = re.compile(r"^[\w.-]+@[\w.-]+:(?P<path>.+)$")


def normalize_url(url: str) -> str:
    """Canonical form of a remote URL: no trailing slash, no ``.git`` suffix.

    Filesystem paths and ``file://`` URLs are literal locations, so only the
    trailing slash is removed from them.
    """
    url = url.strip().rstrip("/")
    if _is_local(url):
        return url
    return url.removesuffix(".git").rstrip("/")


def _is_local(url: str) -> bool:
    return url.startswith(("file://", "/", "./", "../", "~")) or (
        "://" not in url and _SCP_LIKE.match(url) is None and not _SHORTHAND.match(url)
    )


@dataclass(frozen=True, slots=True)
class Reference:
    """A repository identity plus an optional branch, tag or commit.

    Two references are equal iff their normalized URLs and refs are equal.
    """

    url: str
    ref: str | None = None

    @classmethod
    def parse(cls, source: str, ref: str | None = None) -> Reference:
        """Parse a URL, ``owner/repo`` shorthand or local path.

        A ``/tree/<ref>`` URL suffix supplies the ref unless ``ref`` is given.
        """
        source = source.strip()
        if not source:
            raise ValueError("Repository reference must not be empty")

        match = _TREE_SUFFIX.match(source)
        if match:
            source = match.group("url")
            ref = ref or match.group("ref")

        if _SHORTHAND.match(source) and not Path(source).exists():
            source = f"https://{GITHUB_HOST}/{source}"
        elif source.startswith("~"):
            source = str(Path(source).expanduser())
        elif "://" not in source and not _SCP_LIKE.match(source):
            source = str(Path(source).resolve())

        return cls(url=normalize_url(source), ref=ref or None)

    @classmethod
    def from_github(cls, owner: str, repo: str, ref: str | None = None) -> Reference:
        return cls(url=f"https://{GITHUB_HOST}/{owner}/{repo}", ref=ref or None)

    @property
    def key(self) -> str:
        """Stable identity string, used for cache keys and locks."""
        return f"{self.url}/tree/{self.ref}" if self.ref else self.url

    @property
    def repository(self) -> str:
        """``owner/repo`` display name: the last two path segments."""
        scp = _SCP_LIKE.match(self.url)
        path = scp.group("path") if scp else urlparse(self.url).path or self.url
        parts = [p for p in path.split("/") if p]
        return "/".join(parts[-2:])

    @property
    def github_slug(self) -> tuple[str, str] | None:
        """(owner, repo) for github.com references, otherwise None."""
        scp = _SCP_LIKE.match(self.url)
        if scp:
            host = self.url.split("@", 1)[1].split(":", 1)[0]
            path = scp.group("path")
        else:
            parsed = urlparse(self.url)
            host = parsed.hostname or ""
            path = parsed.path
        if host.lower() not in (GITHUB_HOST, f"www.{GITHUB_HOST}"):
            return None
        parts = [p for p in path.split("/") if p]
        if len(parts) < 2:
            return None
        return parts[0], parts[1].removesuffix(".git")

    def with_ref(self, ref: str | None) -> Reference:
        return Reference(url=self.url, ref=ref or None)

    def __str__(self) -> str:
        return self.key


class RepositoryMetadata(BaseModel):
    """Popularity and freshness facts from the repository API."""

    model_config = ConfigDict(frozen=True)

    stars: int | None = None
    forks: int | None = None
    description: str | None = None
    last_updated: str | None = None


class Summary(BaseModel):
    """Headline facts about a snapshot."""

    model_config = ConfigDict(frozen=True)

    repository: str
    file_count: int | None = None
    token_estimate: str = "Unknown"
    description: str | None = None
    stars: int | None = None
    forks: int | None = None
    last_updated: str | None = None

    def merge_metadata(self, metadata: RepositoryMetadata) -> Summary:
        """Overlay metadata fields that are set. Metadata wins on overlap."""
        return self.model_copy(update=metadata.model_dump(exclude_none=True))

    @property
    def has_metadata(self) -> bool:
        return self.stars is not None or self.forks is not None

    def render(self, *, include_metadata: bool = False) -> str:
        """Human-readable summary block.

        Metadata lines follow after a blank line and only when requested.
        """
        files = "Unknown" if self.file_count is None else str(self.file_count)
        text = (
            f"Repository: {self.repository}\n"
            f"Files analyzed: {files}\n"
            f"Estimated tokens: {self.token_estimate}"
        )
        if not include_metadata:
            return text
        extra = [
            ("Stars", self.stars),
            ("Forks", self.forks),
            ("Description", self.description),
            ("Last Updated", self.last_updated),
        ]
        lines = [f"{label}: {value}" for label, value in extra if value is not None]
        if lines:
            text += "\n\n" + "\n".join(lines)
        return text


class Snapshot(BaseModel):
    """Summary, tree and content of a reference at one point in time.

    Immutable. A newer snapshot replaces an older one whole.
    """

    model_config = ConfigDict(frozen=True)

    summary: Summary
    tree: str
    content: str
    captured_at: float = Field(description="Epoch seconds when the snapshot was taken.")


class FileContent(BaseModel):
    """One file recovered from concatenated content."""

    path: str
    content: str


class SearchResult(BaseModel):
    """A single matching line."""

    path: str
    line: int = Field(ge=1)
    content: str
    context: list[str] = Field(default_factory=list)
    url: str | None = None
    repository: str | None = None


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Output of a filesystem scan."""

    tree: str
    file_count: int
    content: str
