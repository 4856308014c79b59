"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (GITSCOPE__SECTION__KEY)
3. Repo YAML (.gitscope/config.yaml in the working directory)
4. Global YAML (~/.config/gitscope/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    GITSCOPE__<SECTION>__<KEY>=<VALUE>

Examples:
    GITSCOPE__LOGGING__LEVEL=DEBUG
    GITSCOPE__CACHE__EXPIRY_MINUTES=15
    GITSCOPE__REMOTE__TOKEN=ghp_...
    GITSCOPE__TIMEOUTS__CLONE_SEC=600
"""

import tempfile
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        GITSCOPE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every clone, fetch and cache decision.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class CacheConfig(BaseModel):
    """Snapshot cache configuration.

    Env vars:
        GITSCOPE__CACHE__DIRECTORY: Where cache JSON files are written
        GITSCOPE__CACHE__EXPIRY_MINUTES: Entry time-to-live
    """

    directory: str = Field(
        default_factory=lambda: str(Path.cwd() / ".gitscope-cache"),
        description="Cache directory. Default: .gitscope-cache/ in the working directory.",
    )
    expiry_minutes: float = Field(
        default=60.0,
        description="Entries older than this are treated as absent. "
        "TRADEOFF: Longer expiry serves staler trees but saves clones.",
    )

    @field_validator("expiry_minutes")
    @classmethod
    def validate_expiry(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"expiry_minutes must be positive, got {v}")
        return v


class WorkspaceConfig(BaseModel):
    """Working-copy storage configuration.

    Env vars:
        GITSCOPE__WORKSPACE__ROOT: Directory holding working copies
        GITSCOPE__WORKSPACE__CLONE_DEPTH: Shallow clone depth (0 = full history)
    """

    root: str = Field(
        default_factory=tempfile.gettempdir,
        description="Directory under which working copies are created.",
    )
    clone_depth: int = Field(
        default=0,
        description="Shallow clone depth. 0 clones full history. "
        "RISK: Shallow copies cannot diff refs outside the fetched history.",
    )

    @field_validator("clone_depth")
    @classmethod
    def validate_depth(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"clone_depth must be >= 0, got {v}")
        return v


class RemoteConfig(BaseModel):
    """Remote query API (GitHub REST) configuration.

    Env vars:
        GITSCOPE__REMOTE__API_BASE_URL: API root
        GITSCOPE__REMOTE__TOKEN: Bearer token (falls back to GITHUB_TOKEN)
        GITSCOPE__REMOTE__ENRICH_METADATA: Merge stars/forks into scanned summaries
    """

    api_base_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API root. Override for GitHub Enterprise.",
    )
    token: str | None = Field(
        default=None,
        description="API token. Unauthenticated requests are heavily rate limited.",
    )
    important_files: list[str] = Field(
        default_factory=lambda: ["README.md", "package.json", "pyproject.toml", ".gitignore"],
        description="Files fetched for snapshot content when cloning is unavailable.",
    )
    enrich_metadata: bool = Field(
        default=True,
        description="Fetch stars/forks/description after a local scan.",
    )
    user_agent: str = Field(default="gitscope", description="User-Agent header.")


class TimeoutsConfig(BaseModel):
    """Timeouts for network-bound operations.

    Env vars:
        GITSCOPE__TIMEOUTS__CLONE_SEC: Clone timeout
        GITSCOPE__TIMEOUTS__FETCH_SEC: Fetch/checkout timeout
        GITSCOPE__TIMEOUTS__DIFF_SEC: Diff timeout
        GITSCOPE__TIMEOUTS__HTTP_SEC: Per-request remote API timeout
    """

    clone_sec: float = Field(
        default=300.0,
        description="Clone timeout. RISK: Large repositories may need more.",
    )
    fetch_sec: float = Field(default=120.0, description="Fetch and checkout timeout.")
    diff_sec: float = Field(default=60.0, description="Diff computation timeout.")
    http_sec: float = Field(default=30.0, description="Remote API request timeout.")


class LimitsConfig(BaseModel):
    """Query limit defaults.

    See constants.py for hard maximums that cannot be exceeded.

    Env vars:
        GITSCOPE__LIMITS__SEARCH_DEFAULT: Default search results
    """

    search_default: int = Field(
        default=10,
        description="Default search results when the caller gives no limit.",
    )


class ServerConfig(BaseModel):
    """MCP server configuration.

    Env vars:
        GITSCOPE__SERVER__HOST: Bind address for the HTTP transport
        GITSCOPE__SERVER__PORT: Port for the HTTP transport
        GITSCOPE__SERVER__HEARTBEAT_INTERVAL_SEC: Heartbeat period
    """

    host: str = Field(default="127.0.0.1", description="Bind address (HTTP transport only).")
    port: int = Field(default=7655, description="Port (HTTP transport only).")
    heartbeat_interval_sec: float = Field(
        default=30.0,
        description="Interval of the low-priority heartbeat log event.",
    )

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not (0 <= v <= 65535):
            raise ValueError(f"Port must be 0-65535, got {v}")
        return v


class GitScopeConfig(BaseModel):
    """Root configuration for gitscope.

    All settings can be configured via:
    1. Environment variables: GITSCOPE__SECTION__KEY
    2. YAML config files (repo or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
