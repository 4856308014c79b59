"""Repository access layer - owns pygit2.Repository and exposes computed facts."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pygit2

from gitscope.git.errors import (
    AuthenticationError,
    GitError,
    NotARepositoryError,
    RefNotFoundError,
    RemoteError,
    is_auth_failure,
)

DEFAULT_REMOTE = "origin"


class RepoAccess:
    """Owns pygit2.Repository and provides normalized access to repo state."""

    def __init__(self, repo_path: Path | str) -> None:
        self._path = Path(repo_path)
        try:
            self._repo = pygit2.Repository(str(self._path))
        except pygit2.GitError as e:
            raise NotARepositoryError(str(self._path)) from e

    @property
    def repo(self) -> pygit2.Repository:
        return self._repo

    @property
    def path(self) -> Path:
        return Path(self._repo.workdir) if self._repo.workdir else self._path

    @property
    def is_unborn(self) -> bool:
        return self._repo.head_is_unborn

    # =========================================================================
    # Resolution Helpers
    # =========================================================================

    def resolve_commit(self, ref: str) -> pygit2.Commit:
        """Resolve a branch, tag or sha to a commit.

        Remote-tracking branches win over same-named local branches so a
        freshly fetched copy reports the remote's state.
        """
        for candidate in (f"{DEFAULT_REMOTE}/{ref}", ref):
            try:
                obj, _ = self._repo.resolve_refish(candidate)
            except (pygit2.GitError, KeyError, ValueError):
                continue
            commit = obj.peel(pygit2.Commit)
            if isinstance(commit, pygit2.Commit):
                return commit
        raise RefNotFoundError(ref)

    def default_branch(self) -> str | None:
        """Branch that origin's HEAD pointed at when the copy was cloned.

        Falls back to the local branch the clone created, which is the only
        local branch since working copies are only ever checked out detached.
        """
        prefix = f"refs/remotes/{DEFAULT_REMOTE}/"
        try:
            target = self._repo.references[f"{prefix}HEAD"].target
        except KeyError:
            target = None
        if isinstance(target, str) and target.startswith(prefix):
            return target.removeprefix(prefix)
        return next(iter(self._repo.branches.local), None)

    def head_commit(self) -> pygit2.Commit | None:
        if self.is_unborn:
            return None
        return self._repo.head.peel(pygit2.Commit)

    # =========================================================================
    # Low-level pygit2 Operations
    # =========================================================================

    def checkout_detached(self, commit: pygit2.Commit) -> None:
        self._repo.checkout_tree(commit, strategy=pygit2.enums.CheckoutStrategy.FORCE)
        self._repo.set_head(commit.id)

    def diff_commits(self, base: pygit2.Commit, head: pygit2.Commit) -> pygit2.Diff:
        return self._repo.diff(base, head)

    # =========================================================================
    # Remote Access
    # =========================================================================

    def remote_url(self, name: str = DEFAULT_REMOTE) -> str | None:
        for remote in self._repo.remotes:
            if remote.name == name:
                return remote.url
        return None

    def get_remote(self, name: str) -> pygit2.Remote:
        if name not in [r.name for r in self._repo.remotes]:
            raise RemoteError(name, "Remote not found")
        return self._repo.remotes[name]

    def run_remote_operation(
        self,
        remote_name: str,
        op_name: str,
        operation: Callable[[pygit2.Remote], Any],
    ) -> Any:
        """
        Run a remote operation with centralized error mapping.

        Error mapping:
            - Authentication/credential errors -> AuthenticationError(remote_name, op_name)
            - Other pygit2.GitError -> RemoteError(remote_name, "{op_name} failed: {msg}")
        """
        remote = self.get_remote(remote_name)
        try:
            return operation(remote)
        except pygit2.GitError as e:
            if is_auth_failure(e):
                raise AuthenticationError(remote_name, op_name) from e
            raise RemoteError(remote_name, f"{op_name} failed: {e}") from e


def must_commit(access: RepoAccess) -> pygit2.Commit:
    commit = access.head_commit()
    if commit is None:
        raise GitError("HEAD has no commits (unborn branch)")
    return commit
