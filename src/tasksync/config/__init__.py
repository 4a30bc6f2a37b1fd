"""Configuration for tasksync."""

from .settings import ConfigError, Settings, default_search_paths, find_config_file, load_settings

__all__ = ["ConfigError", "Settings", "default_search_paths", "find_config_file", "load_settings"]
