"""Application settings."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings

CONFIG_FILENAME = "config.yaml"


def default_search_paths() -> list[Path]:
    """Config file locations, in the order they are tried."""
    home = Path.home()
    return [
        Path.cwd() / CONFIG_FILENAME,
        home / ".config" / "tasksync" / CONFIG_FILENAME,
        home / ".tasksync" / CONFIG_FILENAME,
    ]


class ConfigError(Exception):
    """The config file could not be found or parsed."""

    pass


class Settings(BaseSettings):
    """Application settings."""

    api_url: str = Field(
        default="http://localhost:8000",
        description="Root URL of the central task service",
    )

    api_key: str | None = Field(
        default=None,
        description="Optional API key for the central task service",
    )

    verbose: int = Field(
        default=0,
        description="Verbosity level (0=off, 1=INFO, 2+=DEBUG)",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional path to write logs to file",
    )

    plugins: dict[str, dict[str, str]] = Field(
        default_factory=dict,
        description="Per-system plugin configuration; TASKSYNC_PLUGIN_* variables win",
    )

    model_config = {
        "env_prefix": "TASKSYNC_",
    }


def find_config_file(search_paths: list[Path] | None = None) -> Path | None:
    """Return the first existing config file, or None."""
    for path in search_paths if search_paths is not None else default_search_paths():
        if path.is_file():
            return path
    return None


def load_settings(
    config_path: Path | None = None,
    search_paths: list[Path] | None = None,
    **overrides: Any,
) -> Settings:
    """Build settings from a config file, the environment and overrides.

    Precedence, highest first: overrides, TASKSYNC_* environment variables,
    the config file, field defaults.

    Args:
        config_path: Explicit config file; must exist when given
        search_paths: Locations tried when no explicit path is given
        **overrides: Values that win over every other source, e.g. CLI flags

    Raises:
        ConfigError: If the explicit file is missing, or the file or values are invalid
    """
    if config_path is not None:
        if not config_path.is_file():
            raise ConfigError(f"config file not found: {config_path}")
        path: Path | None = config_path
    else:
        path = find_config_file(search_paths)

    file_values = _read_config_file(path) if path is not None else {}

    # Init values beat the environment in BaseSettings; re-apply env values over the file
    try:
        env_values = Settings().model_dump(exclude_unset=True)
        return Settings(**{**file_values, **env_values, **overrides})
    except ValidationError as e:
        raise ConfigError(f"invalid settings: {e}") from e


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping")
    return data
