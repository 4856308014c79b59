"""Working-copy manager.

Each normalized repository URL owns one directory under the workspace root.
An existing directory is reused while its ``origin`` matches; anything else
is destroyed and cloned fresh. A half-cloned directory is never left behind.
"""

from __future__ import annotations

import hashlib
import shutil
import threading
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from pathlib import Path

import structlog

from gitscope.config.constants import WORKING_COPY_HASH_LENGTH, WORKING_COPY_PREFIX
from gitscope.core.errors import CloneError
from gitscope.core.threads import KeyedLocks, run_blocking, run_cancellable
from gitscope.git import GitError, GitOps, get_default_callbacks
from gitscope.ingest.models import Reference, normalize_url

log = structlog.get_logger(__name__)


class WorkingCopyManager:
    """Materializes references into local working copies.

    All mutation of a working copy (clone, fetch, checkout) happens while
    holding that copy's lock. Readers that need a stable tree use
    ``checkout()`` to keep holding it while they read.
    """

    def __init__(
        self,
        root: Path | str,
        *,
        clone_timeout: float | None = 300.0,
        fetch_timeout: float | None = 120.0,
        clone_depth: int = 0,
        token: str | None = None,
    ) -> None:
        self._root = Path(root)
        self._clone_timeout = clone_timeout
        self._fetch_timeout = fetch_timeout
        self._clone_depth = clone_depth
        self._token = token
        self._locks: KeyedLocks[Path] = KeyedLocks()

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, reference: Reference) -> Path:
        """Deterministic directory for the reference's repository URL."""
        digest = hashlib.sha256(reference.url.encode("utf-8")).hexdigest()
        return self._root / f"{WORKING_COPY_PREFIX}{digest[:WORKING_COPY_HASH_LENGTH]}"

    def is_live(self, reference: Reference) -> bool:
        """Whether a working copy directory currently exists for the reference."""
        return (self.path_for(reference) / ".git").exists()

    def lock_for(self, reference: Reference) -> AbstractAsyncContextManager[None]:
        return self._locks.hold(self.path_for(reference))

    def is_locked(self, reference: Reference) -> bool:
        return self._locks.locked(self.path_for(reference))

    async def materialize(self, reference: Reference) -> Path:
        """Ensure a working copy at the reference's ref exists and return its path.

        Raises:
            CloneError: The remote is unreachable, the ref does not exist, or
                the workspace root cannot be written.
        """
        async with self.lock_for(reference):
            return await self._materialize_locked(reference)

    @asynccontextmanager
    async def checkout(self, reference: Reference) -> AsyncIterator[Path]:
        """Materialize and hold the working copy lock for the duration of the block."""
        async with self.lock_for(reference):
            yield await self._materialize_locked(reference)

    async def _materialize_locked(self, reference: Reference) -> Path:
        path = self.path_for(reference)
        if path.exists():
            if await self._try_reuse(reference, path):
                return path
            await self._destroy(path)
        await self._clone_fresh(reference, path)
        return path

    async def _try_reuse(self, reference: Reference, path: Path) -> bool:
        try:
            ops = await run_blocking(GitOps, path)
        except GitError as e:
            log.warning("working_copy_unreadable", path=str(path), error=str(e))
            return False

        remote = ops.remote_url()
        if remote is None or normalize_url(remote) != reference.url:
            log.warning(
                "working_copy_remote_mismatch",
                path=str(path),
                expected=reference.url,
                found=remote,
            )
            return False

        # An unpinned reference means the remote's default branch, not
        # whatever ref an earlier request left checked out
        target = reference.ref or ops.default_branch()
        log.debug("working_copy_reused", path=str(path), ref=target)

        # The copy stays usable at its current ref if either step fails
        abort = threading.Event()
        try:
            await run_cancellable(
                ops.fetch,
                callbacks=get_default_callbacks(self._token, abort),
                cancel=abort,
                timeout=self._fetch_timeout,
            )
        except (GitError, TimeoutError) as e:
            log.warning("working_copy_fetch_failed", path=str(path), error=str(e))
        if target is None:
            log.warning("working_copy_default_branch_unknown", path=str(path))
            return True
        try:
            await run_cancellable(
                ops.checkout, target, cancel=threading.Event(), timeout=self._fetch_timeout
            )
        except (GitError, TimeoutError) as e:
            log.warning(
                "working_copy_checkout_failed",
                path=str(path),
                ref=target,
                error=str(e),
            )
        return True

    async def _clone_fresh(self, reference: Reference, path: Path) -> None:
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CloneError.unwritable(str(self._root), str(e)) from e

        log.info("clone_start", url=reference.url, path=str(path), depth=self._clone_depth)
        # Each step waits for its worker, so nothing writes into path once
        # _destroy runs
        abort = threading.Event()
        try:
            ops = await run_cancellable(
                GitOps.clone,
                reference.url,
                path,
                depth=self._clone_depth,
                callbacks=get_default_callbacks(self._token, abort),
                cancel=abort,
                timeout=self._clone_timeout,
            )
            if reference.ref:
                await run_cancellable(
                    ops.checkout,
                    reference.ref,
                    cancel=threading.Event(),
                    timeout=self._fetch_timeout,
                )
        except TimeoutError as e:
            await self._destroy(path)
            raise CloneError.timed_out(reference.url, self._clone_timeout or 0) from e
        except (GitError, OSError) as e:
            await self._destroy(path)
            raise CloneError.clone_failed(reference.url, str(e)) from e
        log.info("clone_complete", url=reference.url, path=str(path))

    async def _destroy(self, path: Path) -> None:
        log.debug("working_copy_destroy", path=str(path))
        await run_blocking(shutil.rmtree, path, ignore_errors=True)
