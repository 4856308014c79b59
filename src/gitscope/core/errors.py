"""gitscope error types with typed error codes.

Error code ranges:
- 1xxx: Cache
- 2xxx: Config
- 3xxx: Clone / working copy
- 4xxx: Scan
- 5xxx: Search
- 6xxx: Diff
- 7xxx: Remote API
- 9xxx: Internal

Recovery policy: cache errors degrade to a miss, clone/search/diff errors
fall back to the remote API, remote API errors are terminal.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Cache (1xxx)
    CACHE_READ_ERROR = 1001
    CACHE_WRITE_ERROR = 1002

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Clone (3xxx)
    CLONE_FAILED = 3001
    CLONE_TIMEOUT = 3002
    WORKSPACE_UNWRITABLE = 3003

    # Scan (4xxx)
    SCAN_FAILED = 4001

    # Search (5xxx)
    SEARCH_FAILED = 5001

    # Diff (6xxx)
    DIFF_FAILED = 6001

    # Remote API (7xxx)
    REMOTE_REQUEST_FAILED = 7001
    REMOTE_UNSUPPORTED = 7002

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class GitScopeError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CLONE_FAILED')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class CacheError(GitScopeError):
    """Snapshot cache read/write failure. Never surfaced to callers."""

    @classmethod
    def read_failed(cls, key: str, reason: str) -> "CacheError":
        return cls(
            code=ErrorCode.CACHE_READ_ERROR,
            message=f"Failed to read cache entry {key}: {reason}",
            details={"key": key, "reason": reason},
        )

    @classmethod
    def write_failed(cls, key: str, reason: str) -> "CacheError":
        return cls(
            code=ErrorCode.CACHE_WRITE_ERROR,
            message=f"Failed to write cache entry {key}: {reason}",
            details={"key": key, "reason": reason},
        )


class ConfigError(GitScopeError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class CloneError(GitScopeError):
    """Working copy could not be materialized."""

    @classmethod
    def clone_failed(cls, url: str, reason: str) -> "CloneError":
        return cls(
            code=ErrorCode.CLONE_FAILED,
            message=f"Failed to clone repository: {reason}",
            retryable=True,
            details={"url": url, "reason": reason},
        )

    @classmethod
    def timed_out(cls, url: str, seconds: float) -> "CloneError":
        return cls(
            code=ErrorCode.CLONE_TIMEOUT,
            message=f"Cloning {url} timed out after {seconds:g}s",
            retryable=True,
            details={"url": url, "timeout_sec": seconds},
        )

    @classmethod
    def unwritable(cls, path: str, reason: str) -> "CloneError":
        return cls(
            code=ErrorCode.WORKSPACE_UNWRITABLE,
            message=f"Cannot write working copy at {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class ScanError(GitScopeError):
    """Working copy could not be scanned."""

    @classmethod
    def scan_failed(cls, path: str, reason: str) -> "ScanError":
        return cls(
            code=ErrorCode.SCAN_FAILED,
            message=f"Failed to scan {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class SearchError(GitScopeError):
    """Local search failed as a whole."""

    @classmethod
    def search_failed(cls, reason: str) -> "SearchError":
        return cls(
            code=ErrorCode.SEARCH_FAILED,
            message=f"Failed to search repository: {reason}",
            details={"reason": reason},
        )


class DiffError(GitScopeError):
    """Local diff failed."""

    @classmethod
    def diff_failed(cls, base: str, head: str, reason: str) -> "DiffError":
        return cls(
            code=ErrorCode.DIFF_FAILED,
            message=f"Failed to get diff between {base} and {head}: {reason}",
            details={"base": base, "head": head, "reason": reason},
        )


class RemoteAPIError(GitScopeError):
    """Remote query API returned a non-success response or was unreachable."""

    @classmethod
    def request_failed(
        cls, endpoint: str, reason: str, status_code: int | None = None
    ) -> "RemoteAPIError":
        return cls(
            code=ErrorCode.REMOTE_REQUEST_FAILED,
            message=f"Remote API request to {endpoint} failed: {reason}",
            retryable=status_code is None or status_code >= 500 or status_code == 429,
            details={"endpoint": endpoint, "reason": reason, "status_code": status_code},
        )

    @classmethod
    def unsupported(cls, url: str) -> "RemoteAPIError":
        return cls(
            code=ErrorCode.REMOTE_UNSUPPORTED,
            message=f"Remote API fallback is only available for GitHub repositories: {url}",
            details={"url": url},
        )


class InternalError(GitScopeError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
