"""Git operations module."""

from gitscope.git.credentials import SystemCredentialCallback, get_default_callbacks
from gitscope.git.errors import (
    AuthenticationError,
    CloneFailedError,
    GitError,
    NotARepositoryError,
    RefNotFoundError,
    RemoteError,
    TransferAborted,
)
from gitscope.git.ops import GitOps

__all__ = [
    # Main class
    "GitOps",
    # Credentials
    "SystemCredentialCallback",
    "get_default_callbacks",
    # Errors
    "GitError",
    "NotARepositoryError",
    "RefNotFoundError",
    "RemoteError",
    "AuthenticationError",
    "CloneFailedError",
    "TransferAborted",
]
