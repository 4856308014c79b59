"""Config module exports."""

from gitscope.config.loader import load_config
from gitscope.config.models import (
    CacheConfig,
    GitScopeConfig,
    LimitsConfig,
    LoggingConfig,
    LogOutputConfig,
    RemoteConfig,
    ServerConfig,
    TimeoutsConfig,
    WorkspaceConfig,
)

__all__ = [
    "load_config",
    "GitScopeConfig",
    "CacheConfig",
    "LimitsConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "RemoteConfig",
    "ServerConfig",
    "TimeoutsConfig",
    "WorkspaceConfig",
]
