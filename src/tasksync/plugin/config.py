"""Plugin configuration loading.

Plugin settings come from environment variables of the form
``TASKSYNC_PLUGIN_<IDENTIFIER>_<KEY>``, e.g.::

    export TASKSYNC_PLUGIN_GITHUB_TOKEN=ghp_abc123
    export TASKSYNC_PLUGIN_GITHUB_URL=https://api.github.com

gives ``{"token": "ghp_abc123", "url": "https://api.github.com"}`` for the
``github`` system. Hyphens in the identifier are kept as-is, so
``test-system`` reads ``TASKSYNC_PLUGIN_TEST-SYSTEM_TOKEN``.
"""

import os
from collections.abc import Mapping

ENV_PREFIX = "TASKSYNC_PLUGIN_"


def load_plugin_config(
    identifier: str,
    environ: Mapping[str, str] | None = None,
    defaults: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Load configuration for the plugin behind a system identifier.

    Args:
        identifier: System identifier, e.g. "github"
        environ: Environment to read (default: os.environ)
        defaults: Values from the config file; environment variables win

    Returns:
        Mapping of lowercase config keys to values

    Raises:
        ValueError: If identifier is empty
    """
    if not identifier:
        raise ValueError("plugin name cannot be empty")

    if environ is None:
        environ = os.environ

    config: dict[str, str] = {key.lower(): str(value) for key, value in (defaults or {}).items()}
    prefix = f"{ENV_PREFIX}{identifier.upper()}_"

    for key, value in environ.items():
        if key.startswith(prefix) and len(key) > len(prefix):
            config[key[len(prefix) :].lower()] = value

    return config
