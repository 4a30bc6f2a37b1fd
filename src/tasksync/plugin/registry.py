"""Registry mapping system identifiers to plugin factories."""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Callable

from .protocol import PluginProtocol

logger = logging.getLogger(__name__)

PluginFactory = Callable[[], PluginProtocol]

# Lowercase alphanumeric with hyphens, e.g. "github", "test-system"
_NAME_PATTERN = re.compile(r"^[a-z0-9-]+$")


class RegistryError(Exception):
    """Plugin registration or lookup failed."""

    pass


class PluginRegistry:
    """Maps an identifier to a factory that builds a fresh plugin instance.

    Safe to use from several threads.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._factories: dict[str, PluginFactory] = {}

    def register(self, name: str, factory: PluginFactory) -> None:
        """Register a plugin factory.

        Raises:
            RegistryError: If the name is invalid or already registered.
        """
        if not _NAME_PATTERN.match(name):
            raise RegistryError(
                f"invalid plugin name {name!r}: must be lowercase alphanumeric with hyphens"
            )

        with self._lock:
            if name in self._factories:
                raise RegistryError(f"plugin {name!r} already registered")
            self._factories[name] = factory

        logger.debug("Registered plugin: %s", name)

    def list(self) -> list[str]:
        """Registered plugin names, sorted."""
        with self._lock:
            return sorted(self._factories)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._factories

    def create(self, name: str, config: dict[str, str]) -> PluginProtocol:
        """Build and configure a plugin instance.

        Raises:
            RegistryError: If the plugin is not registered.
            PluginError: If the plugin rejects the configuration.
        """
        with self._lock:
            factory = self._factories.get(name)

        if factory is None:
            raise RegistryError(f"plugin {name!r} not registered")

        plugin = factory()
        plugin.configure(config)
        return plugin


# Registry used by the CLI; see tasksync.plugins.register_builtin_plugins
default_registry = PluginRegistry()


def register(name: str, factory: PluginFactory) -> None:
    """Register a plugin with the default registry."""
    default_registry.register(name, factory)
