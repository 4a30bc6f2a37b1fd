"""Built-in plugins for external task systems."""

from ..plugin.registry import PluginRegistry, default_registry
from .github import GitHubPlugin
from .local import LocalPlugin
from .markdown import MarkdownPlugin

BUILTIN_PLUGINS = {
    LocalPlugin.name: LocalPlugin,
    MarkdownPlugin.name: MarkdownPlugin,
    GitHubPlugin.name: GitHubPlugin,
}


def register_builtin_plugins(registry: PluginRegistry | None = None) -> PluginRegistry:
    """Register every built-in plugin not already present in `registry`."""
    if registry is None:
        registry = default_registry
    for name, factory in BUILTIN_PLUGINS.items():
        if name not in registry:
            registry.register(name, factory)
    return registry


__all__ = [
    "BUILTIN_PLUGINS",
    "GitHubPlugin",
    "LocalPlugin",
    "MarkdownPlugin",
    "register_builtin_plugins",
]
