"""Error vocabulary shared by all plugins.

Plugins raise these so the sync engine can tell expected outcomes apart
from arbitrary failures. Errors are compared by kind, never by message.
A plugin that does not implement an optional operation (a read-only
integration asked to create a task, a system without comments) raises
NotSupportedError, and the engine counts the task as skipped.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Kinds of plugin failure the engine knows how to handle."""

    NOT_SUPPORTED = "not_supported"
    NOT_CONFIGURED = "not_configured"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"


_DEFAULT_MESSAGES = {
    ErrorKind.NOT_SUPPORTED: "operation not supported by this plugin",
    ErrorKind.NOT_CONFIGURED: "plugin not properly configured",
    ErrorKind.NOT_FOUND: "resource not found",
    ErrorKind.UNAUTHORIZED: "unauthorized",
}


class PluginError(Exception):
    """Base exception for plugin errors with a known kind."""

    def __init__(self, kind: ErrorKind, message: str | None = None):
        self.kind = kind
        self.message = message
        text = _DEFAULT_MESSAGES[kind]
        if message:
            text = f"{text}: {message}"
        super().__init__(text)


class NotSupportedError(PluginError):
    """The plugin does not implement this operation."""

    def __init__(self, message: str | None = None):
        super().__init__(ErrorKind.NOT_SUPPORTED, message)


class NotConfiguredError(PluginError):
    """Required configuration is missing or invalid."""

    def __init__(self, message: str | None = None):
        super().__init__(ErrorKind.NOT_CONFIGURED, message)


class NotFoundError(PluginError):
    """The requested project, task or comment does not exist."""

    def __init__(self, message: str | None = None):
        super().__init__(ErrorKind.NOT_FOUND, message)


class UnauthorizedError(PluginError):
    """Credentials were rejected or lack permission."""

    def __init__(self, message: str | None = None):
        super().__init__(ErrorKind.UNAUTHORIZED, message)


def is_error_kind(exc: BaseException | None, kind: ErrorKind) -> bool:
    """Whether `exc`, or an exception it was raised from, has the given kind."""
    seen: set[int] = set()
    while exc is not None and id(exc) not in seen:
        if isinstance(exc, PluginError) and exc.kind == kind:
            return True
        seen.add(id(exc))
        exc = exc.__cause__
    return False


def is_not_supported(exc: BaseException | None) -> bool:
    """Shortcut for `is_error_kind(exc, ErrorKind.NOT_SUPPORTED)`."""
    return is_error_kind(exc, ErrorKind.NOT_SUPPORTED)


def is_not_found(exc: BaseException | None) -> bool:
    """Shortcut for `is_error_kind(exc, ErrorKind.NOT_FOUND)`."""
    return is_error_kind(exc, ErrorKind.NOT_FOUND)
