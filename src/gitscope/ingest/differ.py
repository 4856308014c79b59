"""Textual diff between two refs inside a working copy."""

from __future__ import annotations

import threading
from pathlib import Path

import structlog

from gitscope.core.errors import DiffError
from gitscope.core.threads import run_blocking, run_cancellable
from gitscope.git import GitError, GitOps, get_default_callbacks

log = structlog.get_logger(__name__)


def no_differences(base: str, head: str) -> str:
    return f"No differences found between {base} and {head}"


def _branch_refspec(ref: str) -> str:
    return f"+refs/heads/{ref}:refs/remotes/origin/{ref}"


async def diff_refs(
    path: Path,
    base: str,
    head: str,
    *,
    token: str | None = None,
    fetch_timeout: float | None = None,
    timeout: float | None = None,
) -> str:
    """Unified diff from base to head.

    Both refs are fetched from ``origin`` first. A failed fetch is logged
    and ignored since the refs may already exist locally.

    Raises:
        DiffError: The working copy cannot be opened, a ref cannot be
            resolved, or the diff times out.
    """
    try:
        ops = await run_blocking(GitOps, path)
    except GitError as e:
        raise DiffError.diff_failed(base, head, str(e)) from e

    for ref in dict.fromkeys((base, head)):
        abort = threading.Event()
        try:
            await run_cancellable(
                ops.fetch,
                refspecs=[_branch_refspec(ref)],
                callbacks=get_default_callbacks(token, abort),
                cancel=abort,
                timeout=fetch_timeout,
            )
        except (GitError, TimeoutError) as e:
            log.warning("diff_fetch_failed", ref=ref, error=str(e))

    try:
        patch = await run_blocking(ops.diff, base, head, timeout=timeout)
    except TimeoutError as e:
        raise DiffError.diff_failed(base, head, f"timed out after {timeout:g}s") from e
    except GitError as e:
        raise DiffError.diff_failed(base, head, str(e)) from e

    if not patch.strip():
        return no_differences(base, head)
    return patch
