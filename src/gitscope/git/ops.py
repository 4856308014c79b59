"""Git operations via pygit2 for read-only working copies."""

from __future__ import annotations

from collections.abc import Sequence
from functools import partial
from pathlib import Path
from typing import Any

import pygit2

from gitscope.git._internal import (
    DEFAULT_REMOTE,
    CheckoutPlanner,
    DiffPlanner,
    RepoAccess,
    must_commit,
)
from gitscope.git.credentials import SystemCredentialCallback, get_default_callbacks
from gitscope.git.errors import AuthenticationError, CloneFailedError, is_auth_failure


class GitOps:
    """Thin wrapper around pygit2.Repository with cleaner error handling."""

    def __init__(self, repo_path: Path | str) -> None:
        self._access = RepoAccess(repo_path)
        self._diff_planner = DiffPlanner(self._access)
        self._checkout_planner = CheckoutPlanner(self._access)

    @classmethod
    def clone(
        cls,
        url: str,
        path: Path | str,
        *,
        depth: int = 0,
        callbacks: SystemCredentialCallback | None = None,
    ) -> GitOps:
        """Clone url into path and open it.

        A depth of zero performs a full clone.
        """
        kwargs: dict[str, Any] = {"callbacks": callbacks or get_default_callbacks()}
        if depth > 0:
            kwargs["depth"] = depth
        try:
            pygit2.clone_repository(url, str(path), **kwargs)
        except pygit2.GitError as e:
            if is_auth_failure(e):
                raise AuthenticationError(url, "clone") from e
            raise CloneFailedError(url, str(e)) from e
        return cls(path)

    @property
    def repo(self) -> pygit2.Repository:
        """
        Direct access to underlying pygit2 Repository.

        Escape hatch for tests and advanced consumers. Bypasses GitOps error
        mapping.
        """
        return self._access.repo

    @property
    def path(self) -> Path:
        """Repository root path."""
        return self._access.path

    # =========================================================================
    # Read Operations
    # =========================================================================

    def remote_url(self, remote: str = DEFAULT_REMOTE) -> str | None:
        """URL configured for the remote, or None if it does not exist."""
        return self._access.remote_url(remote)

    def head_sha(self) -> str:
        """Hex sha of the checked-out commit."""
        return str(must_commit(self._access).id)

    def default_branch(self) -> str | None:
        """Name of origin's default branch, or None if it cannot be told."""
        return self._access.default_branch()

    def diff(self, base: str, head: str) -> str:
        """Unified patch text between two refs. Empty when they match."""
        plan = self._diff_planner.plan(base, head)
        raw = self._diff_planner.execute(plan)
        return raw.patch or ""

    # =========================================================================
    # Write Operations
    # =========================================================================

    def checkout(self, ref: str) -> None:
        """Move the working tree to ref."""
        plan = self._checkout_planner.plan(ref)
        self._checkout_planner.execute(plan)

    def fetch(
        self,
        remote: str = DEFAULT_REMOTE,
        refspecs: Sequence[str] | None = None,
        callbacks: SystemCredentialCallback | None = None,
    ) -> None:
        """Fetch from remote. With no refspecs the remote's defaults apply."""
        cbs = callbacks or get_default_callbacks()
        specs = list(refspecs) if refspecs else None
        self._access.run_remote_operation(
            remote, "fetch", partial(pygit2.Remote.fetch, refspecs=specs, callbacks=cbs)
        )
