"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (GITSCOPE__SECTION__KEY)
3. Project config (.gitscope/config.yaml under the given directory)
4. Global config (~/.config/gitscope/config.yaml)
5. Built-in defaults (lowest priority)
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from gitscope.config.models import (
    CacheConfig,
    GitScopeConfig,
    LimitsConfig,
    LoggingConfig,
    RemoteConfig,
    ServerConfig,
    TimeoutsConfig,
    WorkspaceConfig,
)
from gitscope.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/gitscope/config.yaml").expanduser()
PROJECT_CONFIG_NAME = Path(".gitscope") / "config.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Create a Settings class with instance-based YAML source."""

    class GitScopeSettings(BaseSettings):
        """Root config. Env vars: GITSCOPE__LOGGING__LEVEL, GITSCOPE__CACHE__DIRECTORY, etc."""

        model_config = SettingsConfigDict(
            env_prefix="GITSCOPE__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        cache: CacheConfig = CacheConfig()
        workspace: WorkspaceConfig = WorkspaceConfig()
        remote: RemoteConfig = RemoteConfig()
        timeouts: TimeoutsConfig = TimeoutsConfig()
        limits: LimitsConfig = LimitsConfig()
        server: ServerConfig = ServerConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml files
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return GitScopeSettings


def load_config(project_dir: Path | None = None, **kwargs: Any) -> GitScopeConfig:
    """Load config: defaults < global yaml < project yaml < env vars < kwargs.

    Args:
        project_dir: Directory containing .gitscope/config.yaml.
                     Defaults to current working directory.
        **kwargs: Override values (highest precedence).

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On invalid YAML syntax or validation errors.
    """
    project_dir = project_dir or Path.cwd()

    yaml_config = _deep_merge(
        _load_yaml(GLOBAL_CONFIG_PATH),
        _load_yaml(project_dir / PROJECT_CONFIG_NAME),
    )

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e

    config = GitScopeConfig.model_validate(settings.model_dump())
    if config.remote.token is None and (token := os.environ.get("GITHUB_TOKEN")):
        config.remote.token = token
    return config
