"""Shared services for all ingesters in one process."""

from __future__ import annotations

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path

from gitscope.config.models import GitScopeConfig
from gitscope.core.threads import KeyedLocks
from gitscope.ingest.cache import Clock, SnapshotCache
from gitscope.ingest.remote import RemoteClient, create_http_client
from gitscope.ingest.store import FileSnapshotStore, SnapshotStore
from gitscope.ingest.workspace import WorkingCopyManager


@dataclass
class IngestContext:
    """Cache, working copies and remote client, wired from config.

    Ingesters for different references share one context so they share the
    cache, the working-copy locks and the single-flight locks.
    """

    config: GitScopeConfig
    cache: SnapshotCache
    workspace: WorkingCopyManager
    remote: RemoteClient
    flights: KeyedLocks[str] = field(default_factory=KeyedLocks, repr=False)

    @classmethod
    def create(
        cls,
        config: GitScopeConfig | None = None,
        *,
        store: SnapshotStore | None = None,
        remote: RemoteClient | None = None,
        clock: Clock = time.time,
    ) -> IngestContext:
        """Factory to create a context with all services wired together.

        Args:
            config: Loaded configuration (defaults if None)
            store: Cache backing store (JSON files under cache.directory if None)
            remote: Remote API client (httpx client from remote config if None)
            clock: Time source for cache expiry and snapshot timestamps
        """
        config = config or GitScopeConfig()

        if store is None:
            store = FileSnapshotStore(Path(config.cache.directory))
        cache = SnapshotCache(store, config.cache.expiry_minutes, clock)

        workspace = WorkingCopyManager(
            config.workspace.root,
            clone_timeout=config.timeouts.clone_sec,
            fetch_timeout=config.timeouts.fetch_sec,
            clone_depth=config.workspace.clone_depth,
            token=config.remote.token,
        )

        if remote is None:
            http = create_http_client(
                api_base_url=config.remote.api_base_url,
                token=config.remote.token,
                user_agent=config.remote.user_agent,
                timeout=config.timeouts.http_sec,
            )
            remote = RemoteClient(http, important_files=config.remote.important_files)

        return cls(config=config, cache=cache, workspace=workspace, remote=remote)

    @asynccontextmanager
    async def single_flight(self, key: str) -> AsyncIterator[None]:
        """Serialize cache-miss work for one reference key."""
        async with self.flights.hold(key):
            yield

    async def aclose(self) -> None:
        await self.remote.aclose()
