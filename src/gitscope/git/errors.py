"""Errors raised by the git layer.

These are plain exceptions. The ingestion layer maps them onto the
structured taxonomy in ``gitscope.core.errors``.
"""

from __future__ import annotations

import pygit2


class GitError(Exception):
    """Base error for git operations."""


class NotARepositoryError(GitError):
    def __init__(self, path: str) -> None:
        super().__init__(f"Not a git repository: {path}")
        self.path = path


class RefNotFoundError(GitError):
    """Branch, tag or commit could not be resolved locally or on origin."""

    def __init__(self, ref: str) -> None:
        super().__init__(f"Reference not found: {ref}")
        self.ref = ref


class RemoteError(GitError):
    """Fetch or clone transport failure for a named remote or URL."""

    def __init__(self, remote: str, message: str) -> None:
        super().__init__(f"Remote error ({remote}): {message}")
        self.remote = remote


class AuthenticationError(RemoteError):
    """The remote rejected (or never asked for) our credentials."""

    def __init__(self, remote: str, operation: str) -> None:
        super().__init__(remote, f"authentication failed during {operation}")
        self.operation = operation


class CloneFailedError(RemoteError):
    def __init__(self, url: str, message: str) -> None:
        super().__init__(url, f"clone failed: {message}")
        self.url = url


def is_auth_failure(error: pygit2.GitError) -> bool:
    """libgit2 reports credential problems only through the message text."""
    msg = str(error).lower()
    return "authentication" in msg or "credential" in msg


class TransferAborted(GitError):
    """Raised from a progress callback to make libgit2 stop a clone or fetch."""

    def __init__(self) -> None:
        super().__init__("transfer aborted")
