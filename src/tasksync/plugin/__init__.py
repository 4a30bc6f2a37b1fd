"""Plugin contract, error vocabulary and registry."""

from .config import load_plugin_config
from .errors import (
    ErrorKind,
    NotConfiguredError,
    NotFoundError,
    NotSupportedError,
    PluginError,
    UnauthorizedError,
    is_error_kind,
    is_not_found,
    is_not_supported,
)
from .protocol import PluginProtocol
from .registry import PluginFactory, PluginRegistry, RegistryError, default_registry, register

__all__ = [
    "ErrorKind",
    "NotConfiguredError",
    "NotFoundError",
    "NotSupportedError",
    "PluginError",
    "PluginFactory",
    "PluginProtocol",
    "PluginRegistry",
    "RegistryError",
    "UnauthorizedError",
    "default_registry",
    "is_error_kind",
    "is_not_found",
    "is_not_supported",
    "load_plugin_config",
    "register",
]
