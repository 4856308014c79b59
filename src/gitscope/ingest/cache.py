"""TTL-bounded snapshot cache.

Both directions fail soft: a read problem is a miss and a write problem is
logged and dropped. Caching never fails the enclosing request.
"""

from __future__ import annotations

import base64
import time
from collections.abc import Callable

import structlog
from pydantic import BaseModel, ValidationError

from gitscope.core.errors import CacheError
from gitscope.core.threads import run_blocking
from gitscope.ingest.models import Reference, Snapshot, Summary
from gitscope.ingest.store import SnapshotStore

log = structlog.get_logger(__name__)

Clock = Callable[[], float]


class CacheEntry(BaseModel):
    """On-disk layout: ``{summary, tree, content, timestamp}``."""

    summary: Summary
    tree: str
    content: str
    timestamp: float

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> CacheEntry:
        return cls(
            summary=snapshot.summary,
            tree=snapshot.tree,
            content=snapshot.content,
            timestamp=snapshot.captured_at,
        )

    def to_snapshot(self) -> Snapshot:
        return Snapshot(
            summary=self.summary,
            tree=self.tree,
            content=self.content,
            captured_at=self.timestamp,
        )


class SnapshotCache:
    """Keyed snapshot persistence with expiry."""

    def __init__(
        self,
        store: SnapshotStore,
        expiry_minutes: float = 60.0,
        clock: Clock = time.time,
    ) -> None:
        self._store = store
        self._ttl_sec = expiry_minutes * 60
        self._clock = clock

    @staticmethod
    def key_for(reference: Reference) -> str:
        """Filesystem-safe key, a pure and reversible function of the reference."""
        encoded = base64.urlsafe_b64encode(reference.key.encode("utf-8"))
        return encoded.rstrip(b"=").decode("ascii")

    def now(self) -> float:
        return self._clock()

    async def get(self, key: str) -> Snapshot | None:
        try:
            payload = await run_blocking(self._store.read, key)
        except (OSError, UnicodeDecodeError) as e:
            err = CacheError.read_failed(key, str(e))
            log.debug("cache_read_failed", key=key, error=err.message)
            return None
        if payload is None:
            log.debug("cache_miss", key=key)
            return None

        try:
            entry = CacheEntry.model_validate_json(payload)
        except ValidationError as e:
            err = CacheError.read_failed(key, f"{e.error_count()} validation errors")
            log.debug("cache_entry_invalid", key=key, error=err.message)
            return None

        age = self._clock() - entry.timestamp
        if age > self._ttl_sec:
            log.debug("cache_expired", key=key, age_sec=round(age, 1))
            return None

        log.debug("cache_hit", key=key, age_sec=round(age, 1))
        return entry.to_snapshot()

    async def put(self, key: str, snapshot: Snapshot) -> None:
        payload = CacheEntry.from_snapshot(snapshot).model_dump_json()
        try:
            await run_blocking(self._store.write, key, payload)
        except OSError as e:
            err = CacheError.write_failed(key, str(e))
            log.warning("cache_write_failed", key=key, error=err.message)
            return
        log.debug("cache_write", key=key, bytes=len(payload))

    async def clear(self) -> int:
        removed = await run_blocking(self._store.clear)
        log.info("cache_cleared", entries=removed)
        return removed
