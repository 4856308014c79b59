"""Core module exports."""

from gitscope.core.errors import (
    CacheError,
    CloneError,
    ConfigError,
    DiffError,
    ErrorCode,
    GitScopeError,
    InternalError,
    RemoteAPIError,
    ScanError,
    SearchError,
)
from gitscope.core.logging import (
    bind_reference,
    clear_request_id,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)
from gitscope.core.threads import KeyedLocks, run_blocking, run_cancellable

__all__ = [
    # Errors
    "GitScopeError",
    "ErrorCode",
    "CacheError",
    "CloneError",
    "ConfigError",
    "DiffError",
    "InternalError",
    "RemoteAPIError",
    "ScanError",
    "SearchError",
    # Logging
    "bind_reference",
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "get_request_id",
    "set_request_id",
    # Concurrency
    "run_blocking",
    "run_cancellable",
    "KeyedLocks",
]
