"""Repository ingestion pipeline.

A request for a reference is served from the snapshot cache when possible.
On a miss the working copy is materialized and scanned, and if that fails
the remote API reconstructs the snapshot. Either result is cached.
Extraction, search and diff reuse the same fallback order.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from gitscope.config.constants import SEARCH_MAX_LIMIT
from gitscope.core.errors import RemoteAPIError
from gitscope.core.formatting import estimate_tokens
from gitscope.core.threads import run_blocking
from gitscope.ingest.context import IngestContext
from gitscope.ingest.differ import diff_refs
from gitscope.ingest.extractor import extract_files, extract_files_content
from gitscope.ingest.models import (
    FileContent,
    Reference,
    RepositoryMetadata,
    SearchResult,
    Snapshot,
    Summary,
)
from gitscope.ingest.scanner import scan
from gitscope.ingest.search import search_repository
from gitscope.ingest.strategies import Strategy, first_success

log = structlog.get_logger(__name__)


class RepositoryIngester:
    """Read operations for one reference over a shared IngestContext."""

    def __init__(self, reference: Reference, context: IngestContext) -> None:
        self.reference = reference
        self._ctx = context
        self._snapshot: Snapshot | None = None

    @property
    def snapshot(self) -> Snapshot | None:
        """Snapshot from the last fetch_snapshot() call, if any."""
        return self._snapshot

    # =========================================================================
    # Snapshot
    # =========================================================================

    async def fetch_snapshot(self) -> Snapshot:
        """Cached snapshot, or a fresh one from the working copy or remote API.

        Concurrent misses for the same reference are serialized so only the
        first one does the work. The others find it in the cache.

        Raises:
            RemoteAPIError: Neither a working copy nor the remote API could
                produce a snapshot.
        """
        if self._snapshot is not None:
            return self._snapshot

        cache = self._ctx.cache
        key = cache.key_for(self.reference)
        snapshot = await cache.get(key)
        if snapshot is None:
            async with self._ctx.single_flight(key):
                snapshot = await cache.get(key)
                if snapshot is None:
                    snapshot = await first_success(
                        [
                            Strategy("working_copy", self._snapshot_from_working_copy),
                            Strategy("remote_api", self._snapshot_from_remote),
                        ]
                    )
                    await cache.put(key, snapshot)
        self._snapshot = snapshot
        return snapshot

    async def _snapshot_from_working_copy(self) -> Snapshot:
        async with self._ctx.workspace.checkout(self.reference) as path:
            result = await run_blocking(scan, path)

        summary = Summary(
            repository=self.reference.repository,
            file_count=result.file_count,
            token_estimate=estimate_tokens(result.content),
        )
        if self._ctx.config.remote.enrich_metadata and self.reference.github_slug:
            try:
                summary = summary.merge_metadata(await self.fetch_metadata())
            except RemoteAPIError as e:
                log.debug("metadata_enrichment_failed", reference=self.reference.key, error=e.message)

        return Snapshot(
            summary=summary,
            tree=result.tree,
            content=result.content,
            captured_at=self._ctx.cache.now(),
        )

    async def _snapshot_from_remote(self) -> Snapshot:
        return await self._ctx.remote.fetch_snapshot(
            self.reference, captured_at=self._ctx.cache.now()
        )

    # =========================================================================
    # Content
    # =========================================================================

    async def get_files_content(self, paths: Sequence[str]) -> str:
        """Requested files as ConcatenatedContent. Unmatched paths are omitted."""
        snapshot = await self.fetch_snapshot()
        return extract_files_content(snapshot.content, paths)

    async def get_files_as_objects(self, paths: Sequence[str]) -> list[FileContent]:
        snapshot = await self.fetch_snapshot()
        return extract_files(snapshot.content, paths)

    # =========================================================================
    # Search / Diff / Metadata
    # =========================================================================

    async def search(self, query: str, max_results: int = 10) -> list[SearchResult]:
        """Line search in the working copy, falling back to API code search."""
        limit = min(max_results, SEARCH_MAX_LIMIT)
        if limit <= 0:
            return []

        async def local() -> list[SearchResult]:
            async with self._ctx.workspace.checkout(self.reference) as path:
                return await run_blocking(search_repository, path, query, limit)

        async def remote() -> list[SearchResult]:
            return await self._ctx.remote.search(self.reference, query, limit)

        return await first_success([Strategy("working_copy", local), Strategy("remote_api", remote)])

    async def diff(self, base: str, head: str) -> str:
        """Unified diff from the working copy, falling back to the compare API."""
        timeouts = self._ctx.config.timeouts
        # Diffs name both refs explicitly so the copy is not moved to self.reference.ref
        unpinned = self.reference.with_ref(None)

        async def local() -> str:
            async with self._ctx.workspace.checkout(unpinned) as path:
                return await diff_refs(
                    path,
                    base,
                    head,
                    token=self._ctx.config.remote.token,
                    fetch_timeout=timeouts.fetch_sec,
                    timeout=timeouts.diff_sec,
                )

        async def remote() -> str:
            return await self._ctx.remote.diff(self.reference, base, head)

        return await first_success([Strategy("working_copy", local), Strategy("remote_api", remote)])

    async def fetch_metadata(self) -> RepositoryMetadata:
        return await self._ctx.remote.fetch_metadata(self.reference)

    async def render_summary(self, *, include_metadata: bool = False) -> str:
        """Summary text followed by the README block when the snapshot has one."""
        snapshot = await self.fetch_snapshot()
        summary = snapshot.summary
        if include_metadata and not summary.has_metadata:
            try:
                summary = summary.merge_metadata(await self.fetch_metadata())
            except RemoteAPIError as e:
                log.warning("metadata_unavailable", reference=self.reference.key, error=e.message)

        text = summary.render(include_metadata=include_metadata)
        readme = extract_files_content(snapshot.content, ["README.md"])
        if readme:
            text = f"{text}\n\n{readme}"
        return text
